"""
lingala_api.observability

structlog configuration (`logging`) and per-request context binding (`middleware`).
"""
