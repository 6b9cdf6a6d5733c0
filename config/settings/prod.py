"""Production settings.

Extends the base settings for production. Sensitive values and the
PostgreSQL connection are provided via environment variables.
"""

from .base import *  # noqa: F401,F403

# Never run with debug enabled in production
DEBUG = False

# Allowed hosts should be defined explicitly via environment variable
ALLOWED_HOSTS = os.environ.get('DJANGO_ALLOWED_HOSTS', '').split(',')  # noqa: F405

DB_ENGINE = os.environ.get('DB_ENGINE', 'django.db.backends.postgresql')  # noqa: F405

DATABASES['default'].update(  # noqa: F405
    {
        'ENGINE': DB_ENGINE,
        'CONN_MAX_AGE': int(os.environ.get('DB_CONN_MAX_AGE', 60)),  # noqa: F405
        'OPTIONS': dict(SQLITE_OPTIONS) if DB_ENGINE == 'django.db.backends.sqlite3' else {},  # noqa: F405
    }
)
