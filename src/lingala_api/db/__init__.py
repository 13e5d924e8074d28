"""
lingala_api.db

SQLAlchemy async persistence: declarative models, engine/session factories, and one
repository per aggregate under `repositories/`. Repositories flush; services commit.
"""
