"""Test settings - uses SQLite for fast local testing."""
from .settings import *  # noqa: F401,F403

DEBUG = True

DATABASES = {
    'default': {
        'ENGINE': 'django.db.backends.sqlite3',
        'NAME': ':memory:',
    }
}

# Faster password hashing in tests
PASSWORD_HASHERS = [
    'django.contrib.auth.hashers.MD5PasswordHasher',
]

CACHES = {
    'default': {
        'BACKEND': 'django.core.cache.backends.locmem.LocMemCache',
    }
}

EMAIL_BACKEND = 'django.core.mail.backends.locmem.EmailBackend'

PAYMENT_CLIENT_SECRET = 'test-secret'
PAYMENT_MERCHANT_ID = 'TEST_MERCHANT'
PAYMENT_BASE_URL = 'https://gateway.test'

COMMISSION_RATE = 0.10
COMMISSION_THRESHOLD = 700
COMMISSION_DUE_DAYS = 30

# Disable logging noise during tests
LOGGING['handlers'].pop('file')  # noqa: F405
LOGGING['root']['handlers'] = ['console']  # noqa: F405
LOGGING['root']['level'] = 'WARNING'  # noqa: F405
for _name in ('apps', 'core'):
    LOGGING['loggers'][_name]['handlers'] = ['console']  # noqa: F405
    LOGGING['loggers'][_name]['level'] = 'WARNING'  # noqa: F405
