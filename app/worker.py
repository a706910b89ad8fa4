import asyncio
import logging

from app.core.celery_app import celery_app
from app.services.email import email_service
from app.utils.time import utcnow

logger = logging.getLogger(__name__)


@celery_app.task(acks_late=True)
def send_email_task(email_to: str, subject: str, html_template: str, environment: dict):
    logger.info(f"Sending email to {email_to} with template {html_template}")
    try:
        email_service.send_email(
            email_to=email_to,
            subject=subject,
            template_name=html_template,
            context=environment,
        )
    except Exception as e:
        logger.error(f"Failed to send email to {email_to}: {e}")
        raise
    return "Email sent successfully"


async def run_late_sweep() -> int:
    """
    Persists late status for overdue contributions using a worker-owned engine.
    """
    from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine
    from app.core.config import settings
    from app.services.ledger import sweep_late

    engine = create_async_engine(str(settings.DATABASE_URL))
    session_factory = async_sessionmaker(bind=engine, expire_on_commit=False)
    try:
        async with session_factory() as session:
            return await sweep_late(session, utcnow())
    finally:
        await engine.dispose()


@celery_app.task(acks_late=True)
def sweep_late_contributions() -> int:
    updated = asyncio.run(run_late_sweep())
    logger.info(f"Late sweep finished: {updated} contributions updated")
    return updated
