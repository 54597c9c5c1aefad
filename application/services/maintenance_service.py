"""
MaintenanceService - Tâches périodiques (balayage des cotisations, rappels, rapport)

Appelé par le planificateur Celery comme par les endpoints d'administration :
aucune logique métier n'est dupliquée ici, tout passe par les services.
"""

import logging
from datetime import datetime, timedelta
from typing import Any, Callable, Dict

from domain.repositories import MemberRepository
from application.services.cotisation_service import CotisationService
from application.services.evenement_service import EvenementService
from application.services.notification_service import NotificationResult, NotificationService

logger = logging.getLogger(__name__)


def _empty_report(total: int = 0) -> Dict[str, int]:
    return {"total": total, "sent": 0, "failed": 0, "skipped": 0}


def _count(report: Dict[str, int], result: NotificationResult) -> None:
    if not result.ok:
        report["failed"] += 1
    elif result == NotificationResult.SENT:
        report["sent"] += 1
    else:
        report["skipped"] += 1


class MaintenanceService:
    """Exécute les passes de maintenance et retourne un résumé"""

    def __init__(
        self,
        cotisation_service: CotisationService,
        evenement_service: EvenementService,
        member_repository: MemberRepository,
        notification_service: NotificationService,
        clock: Callable[[], datetime] = datetime.utcnow
    ):
        self.cotisation_service = cotisation_service
        self.evenement_service = evenement_service
        self.member_repository = member_repository
        self.notification_service = notification_service
        self.clock = clock

    def run_sweep(self) -> Dict[str, int]:
        """Une erreur de la requête de mise à jour est propagée telle quelle"""
        logger.info("[MAINTENANCE] Début de la mise à jour des cotisations expirées...")
        expired = self.cotisation_service.sweep_expired_dues()
        logger.info(f"[MAINTENANCE] ✅ {expired} cotisation(s) mise(s) à jour")
        return {"expired": expired}

    def run_dues_reminders(self, days: int = 30) -> Dict[str, int]:
        """Un email par cotisation A_JOUR expirant dans les `days` prochains jours"""
        cotisations = self.cotisation_service.list_expiring_dues(days)
        logger.info(f"[MAINTENANCE] {len(cotisations)} cotisation(s) proche(s) de l'expiration")

        now = self.clock()
        report = _empty_report(len(cotisations))
        for cotisation in cotisations:
            member = self.member_repository.find_by_id(cotisation.membre_id)
            if member is None:
                report["skipped"] += 1
                continue
            result = self.notification_service.send_dues_reminder(
                member, cotisation, cotisation.days_remaining(now)
            )
            _count(report, result)

        logger.info(f"[MAINTENANCE] ✅ {report['sent']} email(s) envoyé(s), {report['failed']} échec(s)")
        return report

    def run_event_reminders(self) -> Dict[str, int]:
        """Rappel à chaque inscrit confirmé des événements qui commencent demain"""
        tomorrow = (self.clock() + timedelta(days=1)).replace(hour=0, minute=0, second=0, microsecond=0)
        evenements = self.evenement_service.list_events_starting_between(
            tomorrow, tomorrow + timedelta(days=1)
        )

        report = _empty_report()
        report["events"] = len(evenements)
        for evenement in evenements:
            for participant in self.evenement_service.list_participants(evenement.id):
                report["total"] += 1
                _count(report, self.notification_service.send_event_reminder(participant, evenement))

        logger.info(
            f"[MAINTENANCE] Rappels événements : {report['events']} événement(s), "
            f"{report['sent']} email(s) envoyé(s), {report['failed']} échec(s)"
        )
        return report

    def run_monthly_report(self) -> Dict[str, Any]:
        stats = self.cotisation_service.get_statistics()
        logger.info("[MAINTENANCE] Rapport mensuel :")
        logger.info(f"- Total cotisations : {stats['total']}")
        logger.info(f"- Cotisations à jour : {stats['a_jour']}")
        logger.info(f"- Cotisations expirées : {stats['expirees']}")
        logger.info(f"- Montant total du mois : {stats['montant_mois']}")
        return stats
