"""
lingala_api.entitlements

Entitlement policy for the platform.

Responsibilities:
- A pure decision function over (principal, resource, action, facts).
- Request/identifier preconditions checked before any decision.
- The async gate that loads facts and turns denials into API errors.
"""

# Package marker.
