"""Razorpay payment provider with payment-session reconciliation."""

__version__ = "0.1.0"
