"""
Dépendances FastAPI pour l'injection de services

Le handle Database et le client email sont créés au démarrage
(lifespan) et rangés dans app.state.
"""

from typing import Generator
from sqlalchemy.orm import Session
from fastapi import Depends, Request

from infrastructure.database.session import Database
from infrastructure.database.repositories import (
    SQLAlchemyMemberRepository,
    SQLAlchemyCotisationRepository,
    SQLAlchemyEvenementRepository,
    SQLAlchemyInscriptionRepository
)
from infrastructure.external.email_client import EmailClient
from infrastructure.security.password_hasher import PasswordHasher
from infrastructure.security.jwt_service import JWTService
from application.services.member_service import MemberService
from application.services.auth_service import AuthService
from application.services.cotisation_service import CotisationService
from application.services.evenement_service import EvenementService
from application.services.notification_service import NotificationService
from application.services.maintenance_service import MaintenanceService
from config import Config

config = Config()


def get_database(request: Request) -> Database:
    """Handle de base de données ouvert au démarrage de l'application"""
    return request.app.state.database


def get_db(database: Database = Depends(get_database)) -> Generator[Session, None, None]:
    """Dépendance pour obtenir une session de base de données"""
    db = database.session()
    try:
        yield db
    finally:
        db.close()


def get_member_repository(db: Session = Depends(get_db)) -> SQLAlchemyMemberRepository:
    """Dépendance pour obtenir le MemberRepository"""
    return SQLAlchemyMemberRepository(db)


def get_cotisation_repository(db: Session = Depends(get_db)) -> SQLAlchemyCotisationRepository:
    """Dépendance pour obtenir le CotisationRepository"""
    return SQLAlchemyCotisationRepository(db)


def get_evenement_repository(db: Session = Depends(get_db)) -> SQLAlchemyEvenementRepository:
    """Dépendance pour obtenir l'EvenementRepository"""
    return SQLAlchemyEvenementRepository(db)


def get_inscription_repository(db: Session = Depends(get_db)) -> SQLAlchemyInscriptionRepository:
    """Dépendance pour obtenir l'InscriptionRepository"""
    return SQLAlchemyInscriptionRepository(db)


def get_password_hasher() -> PasswordHasher:
    """Dépendance pour obtenir le PasswordHasher"""
    return PasswordHasher()


def get_jwt_service() -> JWTService:
    """Dépendance pour obtenir le JWTService"""
    return JWTService(
        secret_key=config.jwt_secret_key,
        algorithm=config.jwt_algorithm,
        expire_minutes=config.jwt_expire_minutes
    )


def get_email_client(request: Request) -> EmailClient:
    return request.app.state.email_client


def get_notification_service(email_client: EmailClient = Depends(get_email_client)) -> NotificationService:
    """Dépendance pour obtenir le NotificationService"""
    return NotificationService(
        email_client,
        association_name=config.association_name,
        frontend_url=config.frontend_url
    )


def get_member_service(
    member_repository: SQLAlchemyMemberRepository = Depends(get_member_repository),
    password_hasher: PasswordHasher = Depends(get_password_hasher)
) -> MemberService:
    """Dépendance pour obtenir le MemberService"""
    return MemberService(member_repository, password_hasher, max_page_size=config.max_page_size)


def get_auth_service(
    member_service: MemberService = Depends(get_member_service),
    jwt_service: JWTService = Depends(get_jwt_service),
    notification_service: NotificationService = Depends(get_notification_service)
) -> AuthService:
    """Dépendance pour obtenir l'AuthService"""
    return AuthService(
        member_service,
        jwt_service,
        notification_service=notification_service,
        reset_token_expire_minutes=config.reset_token_expire_minutes
    )


def get_cotisation_service(
    cotisation_repository: SQLAlchemyCotisationRepository = Depends(get_cotisation_repository),
    member_repository: SQLAlchemyMemberRepository = Depends(get_member_repository)
) -> CotisationService:
    """Dépendance pour obtenir le CotisationService"""
    return CotisationService(cotisation_repository, member_repository, max_page_size=config.max_page_size)


def get_evenement_service(
    evenement_repository: SQLAlchemyEvenementRepository = Depends(get_evenement_repository),
    inscription_repository: SQLAlchemyInscriptionRepository = Depends(get_inscription_repository),
    member_repository: SQLAlchemyMemberRepository = Depends(get_member_repository),
    notification_service: NotificationService = Depends(get_notification_service)
) -> EvenementService:
    """Dépendance pour obtenir l'EvenementService"""
    return EvenementService(
        evenement_repository,
        inscription_repository,
        member_repository,
        notification_service=notification_service,
        max_page_size=config.max_page_size
    )


def get_maintenance_service(
    cotisation_service: CotisationService = Depends(get_cotisation_service),
    evenement_service: EvenementService = Depends(get_evenement_service),
    member_repository: SQLAlchemyMemberRepository = Depends(get_member_repository),
    notification_service: NotificationService = Depends(get_notification_service)
) -> MaintenanceService:
    """Dépendance pour obtenir le MaintenanceService"""
    return MaintenanceService(cotisation_service, evenement_service, member_repository, notification_service)
