"""Top-level package for Django configuration.

Contains settings modules for the different environments and the Celery
application used for the notification hand-off.
"""

# Import the Celery application as soon as Django starts. Without this
# the shared task registry will not be populated.
from .celery import app as celery_app  # noqa: F401
