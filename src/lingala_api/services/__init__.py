"""
lingala_api.services

Accounts, catalog, enrollments, progress, reorder and analytics workflows. Each
service commits its own unit of work; routers only parse input and shape output.
"""
