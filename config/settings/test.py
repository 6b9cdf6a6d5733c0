"""Test settings.

File-backed SQLite in IMMEDIATE transaction mode, eager Celery tasks and a
fast password hasher.
"""

from .base import *  # noqa: F401,F403

SECRET_KEY = 'test-secret-key'

DATABASES = {
    'default': {
        'ENGINE': 'django.db.backends.sqlite3',
        'NAME': BASE_DIR / 'test.sqlite3',  # noqa: F405
        'OPTIONS': dict(SQLITE_OPTIONS),  # noqa: F405
        # A file, not :memory:, so concurrent-booking tests get one connection per thread
        'TEST': {'NAME': str(BASE_DIR / 'test_scheduling.sqlite3')},  # noqa: F405
    }
}

PASSWORD_HASHERS = ['django.contrib.auth.hashers.MD5PasswordHasher']

CELERY_TASK_ALWAYS_EAGER = True
CELERY_TASK_EAGER_PROPAGATES = True
CELERY_BROKER_URL = 'memory://'
CELERY_RESULT_BACKEND = 'cache+memory://'

LOGGING["root"]["level"] = "ERROR"  # noqa: F405
LOGGING["loggers"]["apps"]["level"] = "WARNING"  # noqa: F405
LOGGING["loggers"]["shared"]["level"] = "WARNING"  # noqa: F405
