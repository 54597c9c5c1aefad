"""Fixtures partagées : base SQLite temporaire, horloge figée, services câblés."""

from datetime import datetime

import pytest

from domain.entities import MemberStatus, Role
from infrastructure.database.session import Database
from infrastructure.database.repositories import (
    SQLAlchemyMemberRepository,
    SQLAlchemyCotisationRepository,
    SQLAlchemyEvenementRepository,
    SQLAlchemyInscriptionRepository
)
from infrastructure.external.email_client import LoggingEmailClient
from infrastructure.security.password_hasher import PasswordHasher
from application.services.member_service import MemberService
from application.services.cotisation_service import CotisationService
from application.services.evenement_service import EvenementService
from application.services.notification_service import NotificationService
from application.services.maintenance_service import MaintenanceService

NOW = datetime(2024, 6, 15, 12, 0, 0)


class FrozenClock:
    """Horloge injectable ; `now` peut être déplacé pendant un test."""

    def __init__(self, now: datetime = NOW) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now


@pytest.fixture
def clock():
    return FrozenClock()


@pytest.fixture
def database(tmp_path):
    db = Database(f"sqlite:///{tmp_path / 'assocly-test.db'}")
    db.create_all()
    yield db
    db.dispose()


@pytest.fixture
def session(database):
    with database.session_scope() as db:
        yield db


@pytest.fixture
def password_hasher():
    # 4 tours : le minimum accepté par bcrypt, suffisant pour les tests
    return PasswordHasher(rounds=4)


@pytest.fixture
def email_client():
    return LoggingEmailClient()


@pytest.fixture
def notification_service(email_client):
    return NotificationService(email_client, association_name="Club Test", frontend_url="http://front.test/")


@pytest.fixture
def member_repository(session):
    return SQLAlchemyMemberRepository(session)


@pytest.fixture
def member_service(member_repository, password_hasher):
    return MemberService(member_repository, password_hasher)


@pytest.fixture
def cotisation_service(session, member_repository, clock):
    return CotisationService(SQLAlchemyCotisationRepository(session), member_repository, clock=clock)


@pytest.fixture
def evenement_service(session, member_repository, notification_service, clock):
    return EvenementService(
        SQLAlchemyEvenementRepository(session),
        SQLAlchemyInscriptionRepository(session),
        member_repository,
        notification_service=notification_service,
        clock=clock
    )


@pytest.fixture
def maintenance_service(cotisation_service, evenement_service, member_repository, notification_service, clock):
    return MaintenanceService(
        cotisation_service, evenement_service, member_repository, notification_service, clock=clock
    )


@pytest.fixture
def make_member(member_service):
    """Fabrique de membres avec des emails uniques."""
    counter = {"n": 0}

    def _make(email=None, role=Role.MEMBRE, statut=MemberStatus.ACTIF, password="Secret123"):
        counter["n"] += 1
        return member_service.create_member(
            nom=f"Nom{counter['n']}",
            prenom=f"Prenom{counter['n']}",
            email=email or f"membre{counter['n']}@example.org",
            password=password,
            role=role,
            statut=statut
        )

    return _make


@pytest.fixture
def make_evenement(evenement_service):
    def _make(places_total=10, date_debut=datetime(2024, 7, 1, 18, 0), est_publie=True, titre="Assemblée générale"):
        return evenement_service.create_evenement(
            titre=titre,
            date_debut=date_debut,
            lieu="Salle des fêtes",
            places_total=places_total,
            est_publie=est_publie
        )

    return _make
