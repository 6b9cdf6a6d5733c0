"""Users app package.

Defines the custom user model (``apps.users.models.CustomUser``, the
project's AUTH_USER_MODEL) with email login and a scheduling role.
Administrators are the only users allowed to bypass per-schedule
permission checks.
"""
