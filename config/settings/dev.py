"""Development settings.

Extends the base settings with debug enabled and verbose scheduling logs.
Do not use these settings in production!
"""

from .base import *  # noqa: F401,F403

# Enable debug mode for development
DEBUG = True

# Allow all hosts in development
ALLOWED_HOSTS = ['*']

LOGGING["loggers"]["apps"]["level"] = "DEBUG"  # noqa: F405
