"""
Implémentations des repositories SQLAlchemy
"""

import logging
from datetime import datetime
from decimal import Decimal
from typing import List, Optional, Dict, Tuple
from sqlalchemy.orm import Session, joinedload
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy import case, func, or_, update

from domain.entities import (
    Member, Cotisation, Evenement, Inscription, Participant,
    DuesStatus, RegistrationStatus, normalize_email
)
from domain.errors import (
    ConflictError, CapacityExceededError, InvalidStateError, NotFoundError
)
from domain.repositories import (
    MemberRepository, CotisationRepository, EvenementRepository, InscriptionRepository
)
from infrastructure.database.models import (
    MemberModel, CotisationModel, EvenementModel, InscriptionModel
)
from infrastructure.database.mappers import (
    MemberMapper, CotisationMapper, EvenementMapper, InscriptionMapper
)

logger = logging.getLogger(__name__)


def _release_seat(session: Session, evenement_id: str):
    """Rend une place à l'événement sans dépasser la capacité totale"""
    return session.execute(
        update(EvenementModel)
        .where(
            EvenementModel.id == evenement_id,
            EvenementModel.places_restantes < EvenementModel.places_total
        )
        .values(places_restantes=EvenementModel.places_restantes + 1)
        .execution_options(synchronize_session=False)
    )


class SQLAlchemyMemberRepository(MemberRepository):
    """Implémentation SQLAlchemy du MemberRepository"""

    def __init__(self, session: Session):
        self.session = session

    def find_by_id(self, member_id: str) -> Optional[Member]:
        """Trouve un membre par son ID"""
        model = self.session.query(MemberModel).filter(MemberModel.id == member_id).first()
        return MemberMapper.to_domain(model) if model else None

    def find_by_email(self, email: str) -> Optional[Member]:
        """Trouve un membre par son email"""
        model = self.session.query(MemberModel).filter(
            func.lower(MemberModel.email) == normalize_email(email)
        ).first()
        return MemberMapper.to_domain(model) if model else None

    def _filtered(self, search: Optional[str], statut: Optional[str], role: Optional[str]):
        query = self.session.query(MemberModel)
        if statut:
            query = query.filter(MemberModel.statut == statut)
        if role:
            query = query.filter(MemberModel.role == role)
        if search:
            search_term = f"%{search}%"
            query = query.filter(
                or_(
                    MemberModel.nom.ilike(search_term),
                    MemberModel.prenom.ilike(search_term),
                    MemberModel.email.ilike(search_term)
                )
            )
        return query

    def find_all(
        self,
        page: int = 1,
        limit: int = 25,
        search: Optional[str] = None,
        statut: Optional[str] = None,
        role: Optional[str] = None
    ) -> List[Member]:
        """Trouve les membres avec filtres et pagination"""
        offset = (page - 1) * limit
        models = (
            self._filtered(search, statut, role)
            .order_by(MemberModel.created_at.desc(), MemberModel.nom)
            .limit(limit)
            .offset(offset)
            .all()
        )
        return [MemberMapper.to_domain(model) for model in models]

    def count(
        self,
        search: Optional[str] = None,
        statut: Optional[str] = None,
        role: Optional[str] = None
    ) -> int:
        return self._filtered(search, statut, role).count()

    def count_by_status(self) -> Dict[str, int]:
        """Compte les membres par statut"""
        rows = (
            self.session.query(MemberModel.statut, func.count(MemberModel.id))
            .group_by(MemberModel.statut)
            .all()
        )
        return {statut: count for statut, count in rows}

    def find_with_active_reset_token(self, now: datetime) -> List[Member]:
        models = self.session.query(MemberModel).filter(
            MemberModel.reset_token_hash.isnot(None),
            MemberModel.reset_token_expires_at > now
        ).all()
        return [MemberMapper.to_domain(model) for model in models]

    def save(self, member: Member) -> Member:
        """Sauvegarde un membre"""
        model = self.session.query(MemberModel).filter(MemberModel.id == member.id).first()

        if model:
            model = MemberMapper.to_model(member, model)
        else:
            model = MemberMapper.to_model(member)
            self.session.add(model)

        try:
            self.session.commit()
            self.session.refresh(model)
            return MemberMapper.to_domain(model)
        except IntegrityError:
            self.session.rollback()
            raise ConflictError(f"Email '{member.email}' is already in use")
        except SQLAlchemyError as e:
            self.session.rollback()
            logger.error(f"Error saving member: {e}")
            raise

    def delete(self, member_id: str) -> None:
        """
        Supprime un membre. Les places de ses inscriptions confirmées sont
        rendues aux événements avant la suppression en cascade.
        """
        model = self.session.query(MemberModel).filter(MemberModel.id == member_id).first()
        if not model:
            return

        try:
            confirmed = self.session.query(InscriptionModel.evenement_id).filter(
                InscriptionModel.membre_id == member_id,
                InscriptionModel.statut == RegistrationStatus.CONFIRMEE.value
            ).all()
            for (evenement_id,) in confirmed:
                _release_seat(self.session, evenement_id)
            self.session.delete(model)
            self.session.commit()
        except SQLAlchemyError as e:
            self.session.rollback()
            logger.error(f"Error deleting member {member_id}: {e}")
            raise


class SQLAlchemyCotisationRepository(CotisationRepository):
    """Implémentation SQLAlchemy du CotisationRepository"""

    def __init__(self, session: Session):
        self.session = session

    def find_by_id(self, cotisation_id: str) -> Optional[Cotisation]:
        """Trouve une cotisation par son ID"""
        model = self.session.query(CotisationModel).filter(
            CotisationModel.id == cotisation_id
        ).first()
        return CotisationMapper.to_domain(model) if model else None

    def find_by_member(self, membre_id: str) -> List[Cotisation]:
        models = (
            self.session.query(CotisationModel)
            .filter(CotisationModel.membre_id == membre_id)
            .order_by(CotisationModel.date_paiement.desc())
            .all()
        )
        return [CotisationMapper.to_domain(model) for model in models]

    def find_latest_for_member(self, membre_id: str) -> Optional[Cotisation]:
        model = (
            self.session.query(CotisationModel)
            .filter(CotisationModel.membre_id == membre_id)
            .order_by(CotisationModel.date_paiement.desc(), CotisationModel.created_at.desc())
            .first()
        )
        return CotisationMapper.to_domain(model) if model else None

    def periode_exists(self, membre_id: str, periode: str, exclude_id: Optional[str] = None) -> bool:
        query = self.session.query(CotisationModel.id).filter(
            CotisationModel.membre_id == membre_id,
            CotisationModel.periode == periode
        )
        if exclude_id:
            query = query.filter(CotisationModel.id != exclude_id)
        return query.first() is not None

    def _filtered(self, statut, membre_id, mode_paiement, date_debut, date_fin):
        query = self.session.query(CotisationModel)
        if statut:
            query = query.filter(CotisationModel.statut == statut)
        if membre_id:
            query = query.filter(CotisationModel.membre_id == membre_id)
        if mode_paiement:
            query = query.filter(CotisationModel.mode_paiement == mode_paiement)
        if date_debut:
            query = query.filter(CotisationModel.date_paiement >= date_debut)
        if date_fin:
            query = query.filter(CotisationModel.date_paiement <= date_fin)
        return query

    def find_all(
        self,
        page: int = 1,
        limit: int = 25,
        statut: Optional[str] = None,
        membre_id: Optional[str] = None,
        mode_paiement: Optional[str] = None,
        date_debut: Optional[datetime] = None,
        date_fin: Optional[datetime] = None
    ) -> List[Cotisation]:
        """Trouve les cotisations avec filtres et pagination"""
        offset = (page - 1) * limit
        models = (
            self._filtered(statut, membre_id, mode_paiement, date_debut, date_fin)
            .order_by(CotisationModel.date_paiement.desc())
            .limit(limit)
            .offset(offset)
            .all()
        )
        return [CotisationMapper.to_domain(model) for model in models]

    def count(
        self,
        statut: Optional[str] = None,
        membre_id: Optional[str] = None,
        mode_paiement: Optional[str] = None,
        date_debut: Optional[datetime] = None,
        date_fin: Optional[datetime] = None
    ) -> int:
        return self._filtered(statut, membre_id, mode_paiement, date_debut, date_fin).count()

    def save(self, cotisation: Cotisation) -> Cotisation:
        """Sauvegarde une cotisation"""
        model = self.session.query(CotisationModel).filter(
            CotisationModel.id == cotisation.id
        ).first()

        if model:
            model = CotisationMapper.to_model(cotisation, model)
        else:
            model = CotisationMapper.to_model(cotisation)
            self.session.add(model)

        try:
            self.session.commit()
            self.session.refresh(model)
            return CotisationMapper.to_domain(model)
        except IntegrityError:
            self.session.rollback()
            raise ConflictError(
                f"A dues record already exists for period {cotisation.periode}"
            )
        except SQLAlchemyError as e:
            self.session.rollback()
            logger.error(f"Error saving dues record: {e}")
            raise

    def delete(self, cotisation_id: str) -> None:
        """Supprime une cotisation"""
        model = self.session.query(CotisationModel).filter(
            CotisationModel.id == cotisation_id
        ).first()
        if model:
            self.session.delete(model)
            self.session.commit()

    def mark_expired(self, now: datetime) -> int:
        """Un seul UPDATE conditionnel : rejouable et sûr en concurrence"""
        try:
            result = self.session.execute(
                update(CotisationModel)
                .where(
                    CotisationModel.statut != DuesStatus.EXPIRE.value,
                    CotisationModel.date_expiration < now
                )
                .values(statut=DuesStatus.EXPIRE.value)
                .execution_options(synchronize_session=False)
            )
            self.session.commit()
            return result.rowcount
        except SQLAlchemyError as e:
            self.session.rollback()
            logger.error(f"Error marking expired dues: {e}")
            raise

    def find_expiring_between(self, start: datetime, end: datetime) -> List[Cotisation]:
        models = (
            self.session.query(CotisationModel)
            .filter(
                CotisationModel.statut == DuesStatus.A_JOUR.value,
                CotisationModel.date_expiration >= start,
                CotisationModel.date_expiration <= end
            )
            .order_by(CotisationModel.date_expiration.asc())
            .all()
        )
        return [CotisationMapper.to_domain(model) for model in models]

    def find_expired_before(self, reference: datetime) -> List[Cotisation]:
        models = (
            self.session.query(CotisationModel)
            .filter(
                CotisationModel.statut.in_([DuesStatus.A_JOUR.value, DuesStatus.EXPIRE.value]),
                CotisationModel.date_expiration <= reference
            )
            .order_by(CotisationModel.date_expiration.asc())
            .all()
        )
        return [CotisationMapper.to_domain(model) for model in models]

    def count_by_status(self, valid_at: Optional[datetime] = None) -> Dict[str, int]:
        """Compte les cotisations par statut"""
        result = {status.value: 0 for status in DuesStatus}
        rows = (
            self.session.query(CotisationModel.statut, func.count(CotisationModel.id))
            .group_by(CotisationModel.statut)
            .all()
        )
        for statut, count in rows:
            result[statut] = count

        if valid_at is not None:
            result[DuesStatus.A_JOUR.value] = self.session.query(CotisationModel).filter(
                CotisationModel.statut == DuesStatus.A_JOUR.value,
                CotisationModel.date_expiration >= valid_at
            ).count()

        return result

    def paid_between(self, start: datetime, end: datetime) -> Dict[str, Decimal]:
        row = (
            self.session.query(
                func.count(CotisationModel.id).label("count"),
                func.sum(CotisationModel.montant).label("total")
            )
            .filter(
                CotisationModel.date_paiement >= start,
                CotisationModel.date_paiement <= end
            )
            .one()
        )
        return {
            "count": row.count or 0,
            "total": Decimal(str(row.total or 0)).quantize(Decimal("0.01"))
        }

    def count_by_mode(self) -> Dict[str, int]:
        rows = (
            self.session.query(CotisationModel.mode_paiement, func.count(CotisationModel.id))
            .group_by(CotisationModel.mode_paiement)
            .all()
        )
        return {mode: count for mode, count in rows}


class SQLAlchemyEvenementRepository(EvenementRepository):
    """Implémentation SQLAlchemy de l'EvenementRepository"""

    def __init__(self, session: Session):
        self.session = session

    def find_by_id(self, evenement_id: str) -> Optional[Evenement]:
        """Trouve un événement par son ID"""
        model = self.session.query(EvenementModel).filter(
            EvenementModel.id == evenement_id
        ).first()
        return EvenementMapper.to_domain(model) if model else None

    def _filtered(self, est_publie, starts_after, search):
        query = self.session.query(EvenementModel)
        if est_publie is not None:
            query = query.filter(EvenementModel.est_publie == est_publie)
        if starts_after is not None:
            query = query.filter(EvenementModel.date_debut >= starts_after)
        if search:
            search_term = f"%{search}%"
            query = query.filter(
                or_(
                    EvenementModel.titre.ilike(search_term),
                    EvenementModel.description.ilike(search_term),
                    EvenementModel.lieu.ilike(search_term)
                )
            )
        return query

    def find_all(
        self,
        page: int = 1,
        limit: int = 10,
        est_publie: Optional[bool] = None,
        starts_after: Optional[datetime] = None,
        search: Optional[str] = None
    ) -> List[Evenement]:
        """Trouve les événements avec filtres et pagination"""
        offset = (page - 1) * limit
        models = (
            self._filtered(est_publie, starts_after, search)
            .order_by(EvenementModel.date_debut.asc())
            .limit(limit)
            .offset(offset)
            .all()
        )
        return [EvenementMapper.to_domain(model) for model in models]

    def count(
        self,
        est_publie: Optional[bool] = None,
        starts_after: Optional[datetime] = None,
        search: Optional[str] = None
    ) -> int:
        return self._filtered(est_publie, starts_after, search).count()

    def find_starting_between(
        self, start: datetime, end: datetime, published_only: bool = True
    ) -> List[Evenement]:
        query = self.session.query(EvenementModel).filter(
            EvenementModel.date_debut >= start,
            EvenementModel.date_debut < end
        )
        if published_only:
            query = query.filter(EvenementModel.est_publie.is_(True))
        models = query.order_by(EvenementModel.date_debut.asc()).all()
        return [EvenementMapper.to_domain(model) for model in models]

    def save(self, evenement: Evenement) -> Evenement:
        """Sauvegarde un événement"""
        model = self.session.query(EvenementModel).filter(
            EvenementModel.id == evenement.id
        ).first()

        if model:
            model = EvenementMapper.to_model(evenement, model)
        else:
            model = EvenementMapper.to_model(evenement)
            self.session.add(model)

        try:
            self.session.commit()
            self.session.refresh(model)
            return EvenementMapper.to_domain(model)
        except SQLAlchemyError as e:
            self.session.rollback()
            logger.error(f"Error saving event: {e}")
            raise

    def resize(self, evenement_id: str, new_total: int) -> Optional[Evenement]:
        """
        remaining' = max(0, new_total - (total - remaining)), calculé par la
        base sur les valeurs courantes de la ligne.
        """
        places_utilisees = EvenementModel.places_total - EvenementModel.places_restantes
        try:
            result = self.session.execute(
                update(EvenementModel)
                .where(EvenementModel.id == evenement_id)
                .values(
                    places_total=new_total,
                    places_restantes=case(
                        (new_total - places_utilisees > 0, new_total - places_utilisees),
                        else_=0
                    )
                )
                .execution_options(synchronize_session=False)
            )
            self.session.commit()
        except SQLAlchemyError as e:
            self.session.rollback()
            logger.error(f"Error resizing event {evenement_id}: {e}")
            raise

        if result.rowcount == 0:
            return None
        return self.find_by_id(evenement_id)

    def delete(self, evenement_id: str) -> None:
        """Supprime un événement"""
        model = self.session.query(EvenementModel).filter(
            EvenementModel.id == evenement_id
        ).first()
        if model:
            self.session.delete(model)
            self.session.commit()

    def count_upcoming(self, now: datetime, full_only: bool = False) -> int:
        query = self.session.query(EvenementModel).filter(
            EvenementModel.date_debut >= now,
            EvenementModel.est_publie.is_(True)
        )
        if full_only:
            query = query.filter(EvenementModel.places_restantes <= 0)
        return query.count()

    def count_all(self) -> int:
        return self.session.query(EvenementModel).count()


class SQLAlchemyInscriptionRepository(InscriptionRepository):
    """Implémentation SQLAlchemy de l'InscriptionRepository"""

    def __init__(self, session: Session):
        self.session = session

    def find_by_pair(self, membre_id: str, evenement_id: str) -> Optional[Inscription]:
        model = self.session.query(InscriptionModel).filter(
            InscriptionModel.membre_id == membre_id,
            InscriptionModel.evenement_id == evenement_id
        ).first()
        return InscriptionMapper.to_domain(model) if model else None

    def register(self, evenement_id: str, membre_id: str) -> Inscription:
        """
        Réserve une place puis écrit l'inscription dans la même transaction.

        Une inscription déjà confirmée est refusée (ConflictError) avant toute
        réservation, que l'événement soit complet ou non.

        La réservation est un UPDATE conditionnel (places_restantes > 0) :
        deux appels concurrents sur la dernière place ne peuvent pas réussir
        tous les deux, le second ne trouve plus de ligne à modifier.
        """
        try:
            model = self.session.query(InscriptionModel).filter(
                InscriptionModel.membre_id == membre_id,
                InscriptionModel.evenement_id == evenement_id
            ).first()
            if model is not None and model.statut == RegistrationStatus.CONFIRMEE.value:
                self.session.rollback()
                raise ConflictError("Member is already registered for this event")

            reserved = self.session.execute(
                update(EvenementModel)
                .where(
                    EvenementModel.id == evenement_id,
                    EvenementModel.places_restantes > 0
                )
                .values(places_restantes=EvenementModel.places_restantes - 1)
                .execution_options(synchronize_session=False)
            )
            if reserved.rowcount == 0:
                self.session.rollback()
                raise CapacityExceededError("No seats left for this event")

            if model is None:
                model = InscriptionModel(
                    membre_id=membre_id,
                    evenement_id=evenement_id,
                    statut=RegistrationStatus.CONFIRMEE.value,
                    date_inscription=datetime.utcnow()
                )
                self.session.add(model)
            else:
                # Réactivation de la ligne existante, seulement si elle n'est pas déjà confirmée
                reactivated = self.session.execute(
                    update(InscriptionModel)
                    .where(
                        InscriptionModel.id == model.id,
                        InscriptionModel.statut != RegistrationStatus.CONFIRMEE.value
                    )
                    .values(statut=RegistrationStatus.CONFIRMEE.value)
                    .execution_options(synchronize_session=False)
                )
                if reactivated.rowcount == 0:
                    self.session.rollback()
                    raise ConflictError("Member is already registered for this event")

            self.session.commit()
        except IntegrityError:
            self.session.rollback()
            raise ConflictError("Member is already registered for this event")
        except SQLAlchemyError as e:
            self.session.rollback()
            logger.error(f"Error registering member {membre_id} to event {evenement_id}: {e}")
            raise

        return self.find_by_pair(membre_id, evenement_id)

    def cancel(self, inscription_id: str) -> Inscription:
        """Passe l'inscription en ANNULEE et rend la place, dans une transaction"""
        try:
            model = self.session.query(InscriptionModel).filter(
                InscriptionModel.id == inscription_id
            ).first()
            if model is None:
                raise NotFoundError(f"Registration '{inscription_id}' not found")
            evenement_id = model.evenement_id
            held_seat = model.statut == RegistrationStatus.CONFIRMEE.value

            cancelled = self.session.execute(
                update(InscriptionModel)
                .where(
                    InscriptionModel.id == inscription_id,
                    InscriptionModel.statut != RegistrationStatus.ANNULEE.value
                )
                .values(statut=RegistrationStatus.ANNULEE.value)
                .execution_options(synchronize_session=False)
            )
            if cancelled.rowcount == 0:
                self.session.rollback()
                raise InvalidStateError("Registration is already cancelled")

            if held_seat:
                _release_seat(self.session, evenement_id)
            self.session.commit()
        except SQLAlchemyError as e:
            self.session.rollback()
            logger.error(f"Error cancelling registration {inscription_id}: {e}")
            raise

        model = self.session.query(InscriptionModel).filter(
            InscriptionModel.id == inscription_id
        ).first()
        return InscriptionMapper.to_domain(model)

    def find_participants(self, evenement_id: str) -> List[Participant]:
        models = (
            self.session.query(InscriptionModel)
            .options(joinedload(InscriptionModel.membre))
            .filter(
                InscriptionModel.evenement_id == evenement_id,
                InscriptionModel.statut == RegistrationStatus.CONFIRMEE.value
            )
            .order_by(InscriptionModel.date_inscription.asc())
            .all()
        )
        return [InscriptionMapper.to_participant(model) for model in models]

    def find_for_member(
        self, membre_id: str, starts_after: Optional[datetime] = None
    ) -> List[Tuple[Inscription, Evenement]]:
        query = (
            self.session.query(InscriptionModel)
            .join(InscriptionModel.evenement)
            .options(joinedload(InscriptionModel.evenement))
            .filter(
                InscriptionModel.membre_id == membre_id,
                InscriptionModel.statut == RegistrationStatus.CONFIRMEE.value
            )
        )
        if starts_after is not None:
            query = query.filter(EvenementModel.date_debut >= starts_after)
        models = query.order_by(EvenementModel.date_debut.asc()).all()
        return [
            (InscriptionMapper.to_domain(model), EvenementMapper.to_domain(model.evenement))
            for model in models
        ]

    def count_confirmed(self, evenement_id: Optional[str] = None) -> int:
        query = self.session.query(InscriptionModel).filter(
            InscriptionModel.statut == RegistrationStatus.CONFIRMEE.value
        )
        if evenement_id:
            query = query.filter(InscriptionModel.evenement_id == evenement_id)
        return query.count()
