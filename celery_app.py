"""
assocly-api/celery_app.py
Configuration de Celery et planification des tâches de maintenance (beat)

Lancer le worker et le planificateur :
    celery -A celery_app worker --loglevel=info
    celery -A celery_app beat --loglevel=info
"""

import logging
from contextlib import contextmanager
from typing import Iterator, Optional

from celery import Celery
from celery.schedules import crontab

from config import Config
from infrastructure.database.session import Database
from infrastructure.database.repositories import (
    SQLAlchemyMemberRepository,
    SQLAlchemyCotisationRepository,
    SQLAlchemyEvenementRepository,
    SQLAlchemyInscriptionRepository
)
from infrastructure.external.email_client import build_email_client
from application.services.cotisation_service import CotisationService
from application.services.evenement_service import EvenementService
from application.services.notification_service import NotificationService
from application.services.maintenance_service import MaintenanceService

config = Config()
logger = logging.getLogger(__name__)

# Créer l'instance Celery
celery_app = Celery(
    'assocly',
    broker=config.celery_broker_url,
    backend=config.celery_result_backend
)

# Configuration de Celery
celery_app.conf.update(
    # Sérialisation
    task_serializer='json',
    accept_content=['json'],
    result_serializer='json',

    # Les horaires du planificateur sont exprimés dans le fuseau de l'association
    timezone=config.scheduler_timezone,
    enable_utc=True,

    worker_prefetch_multiplier=1,
    result_expires=3600,

    # Une tâche interrompue est rejouée (toutes sont idempotentes)
    task_acks_late=True,
    task_reject_on_worker_lost=True,
)

celery_app.conf.beat_schedule = {
    # Tous les jours à 02:00
    'sweep-expired-dues': {
        'task': 'maintenance.sweep_expired_dues',
        'schedule': crontab(hour=2, minute=0),
    },
    # Tous les lundis à 09:00
    'send-dues-reminders': {
        'task': 'maintenance.send_dues_reminders',
        'schedule': crontab(hour=9, minute=0, day_of_week='mon'),
    },
    # Tous les jours à 08:00
    'send-event-reminders': {
        'task': 'maintenance.send_event_reminders',
        'schedule': crontab(hour=8, minute=0),
    },
    # Le 1er de chaque mois à 08:00
    'monthly-report': {
        'task': 'maintenance.monthly_report',
        'schedule': crontab(hour=8, minute=0, day_of_month=1),
    },
}

_database: Optional[Database] = None


def get_database() -> Database:
    """Handle partagé par toutes les tâches du worker"""
    global _database
    if _database is None:
        _database = Database.from_config(config)
    return _database


@contextmanager
def maintenance_service() -> Iterator[MaintenanceService]:
    """Construit la chaîne de services sur une session dédiée à la tâche"""
    with get_database().session_scope() as db:
        member_repository = SQLAlchemyMemberRepository(db)
        notification_service = NotificationService(
            build_email_client(config),
            association_name=config.association_name,
            frontend_url=config.frontend_url
        )
        cotisation_service = CotisationService(
            SQLAlchemyCotisationRepository(db),
            member_repository,
            max_page_size=config.max_page_size
        )
        evenement_service = EvenementService(
            SQLAlchemyEvenementRepository(db),
            SQLAlchemyInscriptionRepository(db),
            member_repository,
            notification_service=notification_service,
            max_page_size=config.max_page_size
        )
        yield MaintenanceService(cotisation_service, evenement_service, member_repository, notification_service)


@celery_app.task(name='maintenance.sweep_expired_dues')
def sweep_expired_dues_task():
    """Passe les cotisations échues en EXPIREE"""
    with maintenance_service() as service:
        return service.run_sweep()


@celery_app.task(name='maintenance.send_dues_reminders')
def send_dues_reminders_task(days: Optional[int] = None):
    with maintenance_service() as service:
        return service.run_dues_reminders(days if days is not None else config.dues_reminder_days)


@celery_app.task(name='maintenance.send_event_reminders')
def send_event_reminders_task():
    with maintenance_service() as service:
        return service.run_event_reminders()


@celery_app.task(name='maintenance.monthly_report')
def monthly_report_task():
    """Statistiques des cotisations ; le montant est converti pour la sérialisation JSON"""
    with maintenance_service() as service:
        stats = service.run_monthly_report()
    stats["montant_mois"] = str(stats["montant_mois"])
    return stats


if __name__ == "__main__":
    celery_app.worker_main([
        'worker',
        '--beat',
        '--loglevel=info',
        '--concurrency=1'
    ])
