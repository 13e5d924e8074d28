"""
lingala_api.auth

Two identity channels that never mix:
- learners carry a signed JWT (cookie or bearer) resolved by `resolver`;
- admins carry an opaque token looked up in `admin_sessions`.

`deps` exposes both as FastAPI dependencies; passwords for either are hashed by `passwords`.
"""
