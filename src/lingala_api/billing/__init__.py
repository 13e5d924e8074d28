"""
lingala_api.billing

Billing bridge to the payment provider (Stripe).

Responsibilities:
- REST client for customers and checkout sessions.
- Signed webhook verification and event ingestion into subscription/payment rows.
"""

# Package marker.
