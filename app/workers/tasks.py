# app/workers/tasks.py
import asyncio
from celery import Task

from app.core.audit_log import AuditLogger
from app.core.config import settings
from app.core.logging import logger
from app.db.database import build_engine, build_session_factory
from app.workers.celery_app import celery_app
from app.workers.jobs import AgreementExpirationJob, ProvisionalCleanupJob


class MaintenanceTask(Task):
    """Custom task class for scheduled maintenance jobs"""

    def on_failure(self, exc, task_id, args, kwargs, einfo):
        """Handle task failure"""
        logger.error(f"Maintenance task {self.name} ({task_id}) failed: {exc}", exc_info=True)


async def _run_job(job_cls) -> dict:
    # Pooled connections belong to the loop that opened them; asyncio.run makes a new one per call.
    engine = build_engine(settings.DATABASE_URL)
    try:
        session_factory = build_session_factory(engine)
        job = job_cls(session_factory, AuditLogger(session_factory))
        result = await job.run()
        return result.as_dict()
    finally:
        await engine.dispose()


@celery_app.task(bind=True, base=MaintenanceTask, name="app.workers.tasks.provisional_cleanup_task")
def provisional_cleanup_task(self):
    """Purge expired provisional equipment"""
    return asyncio.run(_run_job(ProvisionalCleanupJob))


@celery_app.task(bind=True, base=MaintenanceTask, name="app.workers.tasks.agreement_expiration_task")
def agreement_expiration_task(self):
    """Move lapsed covered customers to pending"""
    return asyncio.run(_run_job(AgreementExpirationJob))
