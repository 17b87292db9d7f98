"""Base settings for all environments.

This configuration file defines the common settings used in development,
test and production. It wires the Django ORM, Celery and structlog-based
logging, and exposes the venue settings consumed by the quotation, booking
and invoice handlers. Environment-specific settings are overridden in
`dev.py`, `prod.py` or `test.py`.
"""

import os
from pathlib import Path

import structlog
from dotenv import load_dotenv

# Build paths inside the project like this: BASE_DIR / 'subdir'.
BASE_DIR = Path(__file__).resolve().parent.parent.parent

load_dotenv(BASE_DIR / ".env")

# SECURITY WARNING: keep the secret key used in production secret!
SECRET_KEY = os.environ.get('DJANGO_SECRET_KEY', 'replace-me-in-production')

# SECURITY WARNING: don't run with debug turned on in production!
DEBUG = False

ALLOWED_HOSTS: list[str] = os.environ.get('DJANGO_ALLOWED_HOSTS', '*').split(',')

# Application definition

INSTALLED_APPS = [
    'django.contrib.contenttypes',
    # Domain apps
    'apps.pricing',
    'apps.bookings',
    'apps.quotations',
    'apps.invoices',
    'apps.notifications',
    'apps.audit',
]

# Database

DATABASES = {
    'default': {
        'ENGINE': os.environ.get('DB_ENGINE', 'django.db.backends.sqlite3'),
        'NAME': os.environ.get('DB_NAME', BASE_DIR / 'db.sqlite3'),
        'USER': os.environ.get('DB_USER', ''),
        'PASSWORD': os.environ.get('DB_PASSWORD', ''),
        'HOST': os.environ.get('DB_HOST', ''),
        'PORT': os.environ.get('DB_PORT', ''),
    }
}

# Internationalization

LANGUAGE_CODE = 'en-au'

TIME_ZONE = os.environ.get('VENUE_TIME_ZONE', 'Australia/Sydney')

USE_I18N = True

# Venue times are naive wall-clock values
USE_TZ = False

DEFAULT_AUTO_FIELD = 'django.db.models.BigAutoField'

# Email defaults
DEFAULT_FROM_EMAIL = os.environ.get('DEFAULT_FROM_EMAIL', 'no-reply@venue.local')

# Celery configuration (Broker and Result backend handled in environment)
CELERY_BROKER_URL = os.environ.get('CELERY_BROKER_URL', 'redis://localhost:6379/0')
CELERY_RESULT_BACKEND = os.environ.get('CELERY_RESULT_BACKEND', 'redis://localhost:6379/0')

# Venue
VENUE_CURRENCY = os.environ.get('VENUE_CURRENCY', 'AUD')
VENUE_DEFAULT_TAX_RATE = os.environ.get('VENUE_DEFAULT_TAX_RATE', '0.10')
VENUE_OVERPAYMENT_TOLERANCE = os.environ.get('VENUE_OVERPAYMENT_TOLERANCE', '0.00')
VENUE_QUOTATION_VALIDITY_DAYS = int(os.environ.get('VENUE_QUOTATION_VALIDITY_DAYS', 14))
VENUE_INVOICE_DUE_DAYS = int(os.environ.get('VENUE_INVOICE_DUE_DAYS', 7))

# Collaborators (dotted paths, instantiated without arguments)
VENUE_NOTIFIER = os.environ.get('VENUE_NOTIFIER', 'apps.notifications.services.EmailNotifier')
VENUE_DOCUMENT_RENDERER = os.environ.get('VENUE_DOCUMENT_RENDERER', '')
VENUE_PAYMENT_GATEWAY = os.environ.get('VENUE_PAYMENT_GATEWAY', '')
VENUE_AUDIT_LOG = os.environ.get('VENUE_AUDIT_LOG', 'apps.audit.services.DjangoAuditLog')

# Logging
structlog.configure(
    processors=[
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.add_log_level,
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)

LOGGING = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "json": {
            "()": "structlog.stdlib.ProcessorFormatter",
            "processor": structlog.processors.JSONRenderer(),
            "foreign_pre_chain": [
                structlog.stdlib.add_logger_name,
                structlog.processors.TimeStamper(fmt="iso"),
                structlog.processors.add_log_level,
            ],
        }
    },
    "handlers": {
        "console": {
            "class": "logging.StreamHandler",
            "formatter": "json",
            "level": "INFO",
        }
    },
    "root": {"handlers": ["console"], "level": "WARNING"},
    "loggers": {
        "django": {"handlers": ["console"], "level": "INFO", "propagate": False},
        "apps": {"handlers": ["console"], "level": "INFO", "propagate": False},
        "shared": {"handlers": ["console"], "level": "INFO", "propagate": False},
    },
}
