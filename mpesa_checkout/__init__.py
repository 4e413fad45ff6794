"""
M-Pesa STK Push checkout service.
"""

__version__ = "1.0.0"
