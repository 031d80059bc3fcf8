"""
Celery tasks for admin session housekeeping.
"""
import logging
from importlib import import_module

from celery import shared_task
from django.conf import settings

logger = logging.getLogger(__name__)


@shared_task
def purge_expired_sessions():
    """
    Periodic task removing expired admin sessions from the session store.

    Can be scheduled via Celery Beat.
    """
    engine = import_module(settings.SESSION_ENGINE)
    engine.SessionStore.clear_expired()
    logger.info("Expired admin sessions purged")
    return {'status': 'success'}
