"""
Mock integration clients.

These clients return fake (but realistic) Daraja responses without calling any external API.
They are used when:
- Daraja sandbox credentials are not configured
- We want to exercise the checkout end-to-end without network access

Important:
- Mock clients must follow the SAME PushPaymentGateway interface as real HTTP clients.

Switching to real:
Set INTEGRATIONS_MODE=real (or provide MPESA_CONSUMER_KEY) to use clients/real_http/* instead.
"""
