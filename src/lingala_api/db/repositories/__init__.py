"""
lingala_api.db.repositories

One gateway class per aggregate (`CourseRepo`, `EnrollmentRepo`, `SubscriptionRepo`, ...),
each bound to an `AsyncSession`. Import them from their submodules.
"""


# --- Module Notes -----------------------------------------------------------
# Repositories flush but never commit; entitlement checks live in the access gate.
