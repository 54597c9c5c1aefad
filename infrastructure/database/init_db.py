"""
Initialisation de la base de données
"""

import logging

from domain.entities import MemberStatus, Role
from infrastructure.database.session import Database
from infrastructure.database.repositories import SQLAlchemyMemberRepository
from infrastructure.security.password_hasher import PasswordHasher
from application.services.member_service import MemberService

logger = logging.getLogger(__name__)


def init_db(database: Database, config) -> None:
    """Initialise la base de données (crée les tables et le compte administrateur)"""
    database.create_all()
    logger.info("✅ Tables de base de données créées")

    with database.session_scope() as db:
        member_service = MemberService(SQLAlchemyMemberRepository(db), PasswordHasher())

        admin = member_service.get_member_by_email(config.admin_email)
        if admin:
            logger.info(f"✅ Administrateur '{admin.email}' déjà existant.")
            return

        logger.info(f"Administrateur '{config.admin_email}' non trouvé. Création...")
        member_service.create_member(
            nom="Admin",
            prenom="Super",
            email=config.admin_email,
            password=config.admin_password,
            role=Role.ADMIN,
            statut=MemberStatus.BUREAU
        )
        logger.info("=" * 70)
        logger.info(f"🔑 Administrateur '{config.admin_email}' créé")
        logger.info("Changez son mot de passe après la première connexion")
        logger.info("=" * 70)
