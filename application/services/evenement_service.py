"""
EvenementService - Événements, capacité et inscriptions
"""

import logging
import uuid
from dataclasses import replace
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional, Tuple

from domain.entities import (
    Evenement, EvenementUpdate, Inscription, Participant, RegistrationStatus
)
from domain.entities.cotisation import to_naive_utc
from domain.errors import (
    CapacityExceededError, ConflictError, InvalidInputError, InvalidStateError, NotFoundError
)
from domain.repositories import EvenementRepository, InscriptionRepository, MemberRepository
from application.services.notification_service import NotificationService
from application.services.pagination import Page, normalize_pagination

logger = logging.getLogger(__name__)


class EvenementService:
    """Service pour la gestion des événements et des inscriptions"""

    def __init__(
        self,
        evenement_repository: EvenementRepository,
        inscription_repository: InscriptionRepository,
        member_repository: MemberRepository,
        notification_service: Optional[NotificationService] = None,
        clock: Callable[[], datetime] = datetime.utcnow,
        max_page_size: int = 100
    ):
        self.evenement_repository = evenement_repository
        self.inscription_repository = inscription_repository
        self.member_repository = member_repository
        self.notification_service = notification_service
        self.clock = clock
        self.max_page_size = max_page_size

    # --- Événements ---

    def create_evenement(
        self,
        titre: str,
        date_debut: datetime,
        lieu: str,
        places_total: int,
        description: Optional[str] = None,
        date_fin: Optional[datetime] = None,
        est_publie: bool = True,
        createur_id: Optional[str] = None
    ) -> Evenement:
        """Crée un événement ; toutes les places sont disponibles"""
        evenement = Evenement(
            id=str(uuid.uuid4()),
            titre=titre.strip() if titre else titre,
            date_debut=to_naive_utc(date_debut),
            lieu=lieu.strip() if lieu else lieu,
            places_total=places_total,
            places_restantes=places_total,
            est_publie=est_publie,
            description=description,
            date_fin=to_naive_utc(date_fin) if date_fin else None,
            createur_id=createur_id,
            created_at=self.clock()
        )
        saved = self.evenement_repository.save(evenement)
        logger.info(f"✅ Événement créé : '{saved.titre}' le {saved.date_debut:%Y-%m-%d} ({saved.places_total} places)")
        return saved

    def get_evenement(self, evenement_id: str) -> Evenement:
        """Récupère un événement par son ID"""
        evenement = self.evenement_repository.find_by_id(evenement_id)
        if not evenement:
            raise NotFoundError(f"Event '{evenement_id}' not found")
        return evenement

    def update_evenement(self, evenement_id: str, changes: EvenementUpdate) -> Evenement:
        """
        Modifie les champs descriptifs puis, si la capacité change, applique
        le redimensionnement atomique (les places occupées sont conservées).
        """
        evenement = self.get_evenement(evenement_id)
        updates = changes.supplied()
        new_total = updates.pop("places_total", None)

        for name in ("date_debut", "date_fin"):
            if updates.get(name) is not None:
                updates[name] = to_naive_utc(updates[name])

        # replace() revalide titre, lieu et cohérence des dates
        evenement = replace(evenement, **updates)
        if new_total is not None and new_total < 1:
            raise InvalidInputError("Event capacity must be at least 1")

        evenement = self.evenement_repository.save(evenement)
        if new_total is not None and new_total != evenement.places_total:
            evenement = self.set_capacity(evenement_id, new_total)

        logger.info(f"Événement {evenement_id} mis à jour")
        return evenement

    def set_capacity(self, evenement_id: str, new_total: int) -> Evenement:
        """remaining = max(0, new_total - places occupées)"""
        if new_total < 1:
            raise InvalidInputError("Event capacity must be at least 1")
        evenement = self.evenement_repository.resize(evenement_id, new_total)
        if evenement is None:
            raise NotFoundError(f"Event '{evenement_id}' not found")
        logger.info(
            f"Capacité de l'événement {evenement_id} : {evenement.places_total} "
            f"({evenement.places_restantes} restantes)"
        )
        return evenement

    def delete_evenement(self, evenement_id: str) -> None:
        evenement = self.get_evenement(evenement_id)
        self.evenement_repository.delete(evenement.id)
        logger.info(f"🗑️ Événement supprimé : '{evenement.titre}'")

    def list_events(
        self,
        page: int = 1,
        limit: int = 10,
        est_publie: Optional[bool] = None,
        a_venir: bool = False,
        search: Optional[str] = None
    ) -> Page:
        """Liste paginée, par date de début croissante"""
        page, limit = normalize_pagination(page, limit, self.max_page_size)
        filters = {
            "est_publie": est_publie,
            "starts_after": self.clock() if a_venir else None,
            "search": search or None
        }
        items = self.evenement_repository.find_all(page=page, limit=limit, **filters)
        total = self.evenement_repository.count(**filters)
        return Page(items=items, total=total, page=page, limit=limit)

    def get_calendar(self, month: int, year: int) -> List[Evenement]:
        """Événements publiés commençant dans le mois donné"""
        if not 1 <= month <= 12:
            raise InvalidInputError("Month must be between 1 and 12")
        start = datetime(year, month, 1)
        end = datetime(year + 1, 1, 1) if month == 12 else datetime(year, month + 1, 1)
        return self.evenement_repository.find_starting_between(start, end, published_only=True)

    def list_events_starting_between(self, start: datetime, end: datetime) -> List[Evenement]:
        return self.evenement_repository.find_starting_between(start, end, published_only=True)

    # --- Inscriptions ---

    def list_participants(self, evenement_id: str) -> List[Participant]:
        self.get_evenement(evenement_id)
        return self.inscription_repository.find_participants(evenement_id)

    def register(self, evenement_id: str, membre_id: str) -> Inscription:
        """
        Inscrit un membre à un événement.

        Raises:
            NotFoundError: événement ou membre inconnu
            InvalidStateError: événement non publié
            ConflictError: inscription déjà confirmée, même si l'événement est complet
            CapacityExceededError: plus de place
        """
        evenement = self.get_evenement(evenement_id)
        if not evenement.est_publie:
            raise InvalidStateError("Event is not published")

        member = self.member_repository.find_by_id(membre_id)
        if not member:
            raise NotFoundError(f"Member '{membre_id}' not found")

        existing = self.inscription_repository.find_by_pair(membre_id, evenement_id)
        if existing and existing.statut == RegistrationStatus.CONFIRMEE:
            raise ConflictError("Member is already registered for this event")

        if evenement.is_full():
            raise CapacityExceededError("No seats left for this event")

        # Réservation de la place et écriture de l'inscription : une seule transaction
        inscription = self.inscription_repository.register(evenement_id, membre_id)
        logger.info(f"✅ {member.email} inscrit à '{evenement.titre}'")

        if self.notification_service:
            self.notification_service.send_registration_confirmation(member, evenement)
        return inscription

    def cancel_registration(self, evenement_id: str, membre_id: str) -> Inscription:
        inscription = self.inscription_repository.find_by_pair(membre_id, evenement_id)
        if not inscription:
            raise NotFoundError("No registration found for this member and event")
        inscription.ensure_cancellable()

        cancelled = self.inscription_repository.cancel(inscription.id)
        logger.info(f"Inscription {inscription.id} annulée")
        return cancelled

    def list_member_registrations(
        self, membre_id: str, upcoming_only: bool = False
    ) -> List[Tuple[Inscription, Evenement]]:
        if not self.member_repository.find_by_id(membre_id):
            raise NotFoundError(f"Member '{membre_id}' not found")
        starts_after = self.clock() if upcoming_only else None
        return self.inscription_repository.find_for_member(membre_id, starts_after=starts_after)

    def get_statistics(self) -> Dict[str, Any]:
        now = self.clock()
        return {
            "total": self.evenement_repository.count_all(),
            "a_venir": self.evenement_repository.count_upcoming(now),
            "complets": self.evenement_repository.count_upcoming(now, full_only=True),
            "inscriptions_confirmees": self.inscription_repository.count_confirmed()
        }
