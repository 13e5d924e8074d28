"""
lingala_api

Backend for a Lingala learning platform: public catalog, learner enrollment and
progress, subscription billing, and an admin content/user console.

Access decisions for every route go through `lingala_api.entitlements`.
"""

__all__ = ["__version__"]

__version__ = "0.1.0"
