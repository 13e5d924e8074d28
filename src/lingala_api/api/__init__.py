"""
lingala_api.api

FastAPI app factory, dependency providers, camelCase response schemas, public
routers under `/api/*` and admin routers under `/api/admin/*`.
"""
