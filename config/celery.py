import os

from celery import Celery
from celery.schedules import crontab  # type: ignore

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "config.settings.dev")

app = Celery("venue")

app.config_from_object("django.conf:settings", namespace="CELERY")
app.autodiscover_tasks()


# ============================================================================
# CELERY BEAT SCHEDULE (Periodic Tasks)
# ============================================================================

app.conf.beat_schedule = {
    # Quotations past valid_until -> Expired, daily shortly after midnight
    "expire-stale-quotations": {
        "task": "quotations.expire_stale_quotations",
        "schedule": crontab(minute=5, hour=0),
    },
    # Unpaid invoices past due -> OVERDUE, daily in the morning
    "mark-overdue-invoices": {
        "task": "invoices.mark_overdue_invoices",
        "schedule": crontab(minute=0, hour=8),
    },
}

app.conf.timezone = os.environ.get("VENUE_TIME_ZONE", "Australia/Sydney")
