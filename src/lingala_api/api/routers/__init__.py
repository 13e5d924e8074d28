"""
lingala_api.api.routers

Route modules; `api.app` includes each router explicitly.
"""
