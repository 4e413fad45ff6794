"""
Contracts (data models).

This folder defines the request/response shapes exchanged with the Daraja
gateway and with the front-end:
- STK push request/result formats
- Webhook callback payload and the derived transaction outcome
- Client-side payment state snapshots

Both mock and real HTTP clients should use these contracts.
"""
