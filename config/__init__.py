"""Top-level package for Django configuration.

This package exposes application configuration for the venue project:
settings modules for different environments, the Celery application and
the wiring that builds the transition orchestrator.
"""

# Import the Celery application as soon as Django starts. Without this
# the shared task registry will not be populated.
from .celery import app as celery_app  # noqa: F401
