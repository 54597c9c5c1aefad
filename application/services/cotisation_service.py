"""
CotisationService - Cycle de vie des cotisations

Date d'expiration et statut sont toujours dérivés par les fonctions de
domain.entities.cotisation, aussi bien à la création, à la mise à jour
que lors du balayage périodique (sweep).
"""

import logging
import uuid
from dataclasses import dataclass, replace
from datetime import datetime, timedelta
from decimal import Decimal
from typing import Any, Callable, Dict, List, Optional

from domain.entities import Cotisation, CotisationUpdate, DuesStatus, PaymentMode
from domain.entities.cotisation import (
    derive_status, parse_periode, resolve_expiration, to_naive_utc
)
from domain.errors import ConflictError, InvalidInputError, NotFoundError, coerce_enum
from domain.repositories import CotisationRepository, MemberRepository
from application.services.pagination import Page, normalize_pagination

logger = logging.getLogger(__name__)

AUCUNE_COTISATION = "AUCUNE_COTISATION"


@dataclass
class MemberDuesStatus:
    """Situation de cotisation d'un membre, d'après son dernier paiement"""
    statut: str
    message: str
    cotisation: Optional[Cotisation] = None
    jours_restants: int = 0


class CotisationService:
    """Service pour la gestion des cotisations"""

    def __init__(
        self,
        cotisation_repository: CotisationRepository,
        member_repository: MemberRepository,
        clock: Callable[[], datetime] = datetime.utcnow,
        max_page_size: int = 100
    ):
        self.cotisation_repository = cotisation_repository
        self.member_repository = member_repository
        self.clock = clock
        self.max_page_size = max_page_size

    def _ensure_member(self, membre_id: str) -> None:
        if not self.member_repository.find_by_id(membre_id):
            raise NotFoundError(f"Member '{membre_id}' not found")

    def _ensure_periode_free(self, membre_id: str, periode: str, exclude_id: Optional[str] = None) -> None:
        parse_periode(periode)
        if self.cotisation_repository.periode_exists(membre_id, periode, exclude_id=exclude_id):
            raise ConflictError(f"A dues record already exists for period {periode}")

    def create_cotisation(
        self,
        membre_id: str,
        date_paiement: datetime,
        montant: Any,
        mode_paiement: PaymentMode,
        periode: Optional[str] = None,
        date_expiration: Optional[datetime] = None,
        notes: Optional[str] = None,
        statut: Optional[DuesStatus] = None
    ) -> Cotisation:
        """
        Enregistre un paiement.

        L'expiration vaut, par priorité : la date fournie, la fin du mois de
        la période, la date de paiement + 1 an. Sans statut explicite, le
        statut est A_JOUR, ou EXPIRE si l'expiration est déjà passée.
        """
        self._ensure_member(membre_id)
        periode = periode or None
        if periode:
            self._ensure_periode_free(membre_id, periode)

        date_paiement = to_naive_utc(date_paiement)
        expiration = resolve_expiration(date_paiement, periode, date_expiration)
        now = self.clock()

        cotisation = Cotisation(
            id=str(uuid.uuid4()),
            membre_id=membre_id,
            date_paiement=date_paiement,
            montant=montant,
            mode_paiement=mode_paiement,
            date_expiration=expiration,
            statut=statut if statut is not None else derive_status(expiration, now),
            notes=notes,
            periode=periode,
            created_at=now
        )

        saved = self.cotisation_repository.save(cotisation)
        logger.info(
            f"✅ Cotisation {saved.id} créée pour le membre {membre_id} "
            f"({saved.montant}, expire le {saved.date_expiration:%Y-%m-%d}, {saved.statut.value})"
        )
        return saved

    def update_cotisation(self, cotisation_id: str, changes: CotisationUpdate) -> Cotisation:
        """
        Modification partielle. Si une date (paiement, période, expiration)
        change, l'expiration est recalculée et, sauf statut fourni, le
        statut aussi.
        """
        cotisation = self.get_cotisation(cotisation_id)
        updates = changes.supplied()

        if "periode" in updates:
            # Une période vide ou nulle retire la période existante
            updates["periode"] = updates["periode"] or None
            if updates["periode"] and updates["periode"] != cotisation.periode:
                self._ensure_periode_free(cotisation.membre_id, updates["periode"], exclude_id=cotisation.id)
        if "date_paiement" in updates:
            updates["date_paiement"] = to_naive_utc(updates["date_paiement"])

        if changes.touches_dates():
            updates["date_expiration"] = resolve_expiration(
                updates.get("date_paiement", cotisation.date_paiement),
                updates.get("periode", cotisation.periode),
                updates.get("date_expiration")
            )
            if "statut" not in updates:
                updates["statut"] = derive_status(updates["date_expiration"], self.clock())

        updated = self.cotisation_repository.save(replace(cotisation, **updates))
        logger.info(f"Cotisation {cotisation_id} mise à jour ({', '.join(sorted(updates))})")
        return updated

    def delete_cotisation(self, cotisation_id: str) -> None:
        cotisation = self.get_cotisation(cotisation_id)
        self.cotisation_repository.delete(cotisation.id)
        logger.info(f"🗑️ Cotisation {cotisation_id} supprimée")

    def get_cotisation(self, cotisation_id: str) -> Cotisation:
        """Récupère une cotisation par son ID"""
        cotisation = self.cotisation_repository.find_by_id(cotisation_id)
        if not cotisation:
            raise NotFoundError(f"Dues record '{cotisation_id}' not found")
        return cotisation

    def list_dues(
        self,
        page: int = 1,
        limit: int = 25,
        statut: Optional[str] = None,
        membre_id: Optional[str] = None,
        mode_paiement: Optional[str] = None,
        date_debut: Optional[datetime] = None,
        date_fin: Optional[datetime] = None
    ) -> Page:
        """Liste paginée des cotisations, la plus récente d'abord"""
        page, limit = normalize_pagination(page, limit, self.max_page_size)
        filters = {
            "statut": coerce_enum(DuesStatus, statut).value if statut else None,
            "membre_id": membre_id,
            "mode_paiement": coerce_enum(PaymentMode, mode_paiement).value if mode_paiement else None,
            "date_debut": to_naive_utc(date_debut) if date_debut else None,
            "date_fin": to_naive_utc(date_fin) if date_fin else None
        }
        items = self.cotisation_repository.find_all(page=page, limit=limit, **filters)
        total = self.cotisation_repository.count(**filters)
        return Page(items=items, total=total, page=page, limit=limit)

    def list_member_dues(self, membre_id: str) -> List[Cotisation]:
        self._ensure_member(membre_id)
        return self.cotisation_repository.find_by_member(membre_id)

    def sweep_expired_dues(self) -> int:
        """Passe en EXPIRE les cotisations échues ; retourne le nombre modifié"""
        count = self.cotisation_repository.mark_expired(self.clock())
        logger.info(f"🔄 {count} cotisation(s) passée(s) en EXPIRE")
        return count

    def list_expiring_dues(self, days: int) -> List[Cotisation]:
        """Cotisations A_JOUR expirant dans [maintenant, maintenant + days], la plus proche d'abord"""
        if days < 0:
            raise InvalidInputError("Number of days must be >= 0")
        now = self.clock()
        return self.cotisation_repository.find_expiring_between(now, now + timedelta(days=days))

    def list_expired_dues(self, days_before: int = 0) -> List[Cotisation]:
        """Cotisations échues, ou qui le seront d'ici days_before jours"""
        if days_before < 0:
            raise InvalidInputError("Number of days must be >= 0")
        return self.cotisation_repository.find_expired_before(self.clock() + timedelta(days=days_before))

    def get_member_dues_status(self, membre_id: str) -> MemberDuesStatus:
        self._ensure_member(membre_id)
        latest = self.cotisation_repository.find_latest_for_member(membre_id)
        if latest is None:
            return MemberDuesStatus(statut=AUCUNE_COTISATION, message="No dues record for this member")

        now = self.clock()
        if latest.is_expired(now):
            return MemberDuesStatus(
                statut=DuesStatus.EXPIRE.value,
                message=f"Dues expired on {latest.date_expiration:%Y-%m-%d}",
                cotisation=latest
            )

        jours_restants = latest.days_remaining(now)
        return MemberDuesStatus(
            statut=DuesStatus.A_JOUR.value,
            message=f"Dues valid for {jours_restants} more day(s)",
            cotisation=latest,
            jours_restants=jours_restants
        )

    def get_statistics(self) -> Dict[str, Any]:
        now = self.clock()
        by_status = self.cotisation_repository.count_by_status(valid_at=now)
        by_mode = self.cotisation_repository.count_by_mode()
        month_start = datetime(now.year, now.month, 1)
        paid = self.cotisation_repository.paid_between(month_start, now)
        return {
            "total": sum(self.cotisation_repository.count_by_status().values()),
            "a_jour": by_status.get(DuesStatus.A_JOUR.value, 0),
            "expirees": by_status.get(DuesStatus.EXPIRE.value, 0),
            "en_attente": by_status.get(DuesStatus.EN_ATTENTE.value, 0),
            "cotisations_mois": int(paid["count"]),
            "montant_mois": Decimal(paid["total"]),
            "par_mode": {mode.value: by_mode.get(mode.value, 0) for mode in PaymentMode}
        }
