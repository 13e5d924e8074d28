"""
lingala_api.api.routers.admin

Admin namespace (`/api/admin/*`). Every route authenticates with an admin bearer
token and is authorized through `require_admin`.
"""
