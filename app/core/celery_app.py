from celery import Celery
from app.core.config import settings

celery_app = Celery(
    "rounds",
    broker=settings.CELERY_BROKER_URL,
    backend=settings.CELERY_RESULT_BACKEND,
    include=["app.worker"],
)

celery_app.conf.update(
    task_serializer="json",
    result_serializer="json",
    accept_content=["json"],
    timezone="UTC",
    enable_utc=True,
    beat_schedule={
        "sweep-late-contributions": {
            "task": "app.worker.sweep_late_contributions",
            "schedule": float(settings.LATE_SWEEP_INTERVAL_SECONDS),
        },
    },
)
