"""
AuthService - Inscription, connexion et gestion des mots de passe
"""

import logging
from datetime import datetime, timedelta
from typing import Callable, Optional

from domain.entities import Member, MemberStatus, Role
from domain.errors import AuthenticationError, InvalidInputError, PermissionDeniedError
from application.services.member_service import MemberService, validate_password
from application.services.notification_service import NotificationService
from infrastructure.security.jwt_service import JWTService

logger = logging.getLogger(__name__)


class AuthService:
    """Service d'authentification des membres"""

    def __init__(
        self,
        member_service: MemberService,
        jwt_service: JWTService,
        notification_service: Optional[NotificationService] = None,
        reset_token_expire_minutes: int = 60,
        clock: Callable[[], datetime] = datetime.utcnow
    ):
        self.member_service = member_service
        self.member_repository = member_service.member_repository
        self.password_hasher = member_service.password_hasher
        self.jwt_service = jwt_service
        self.notification_service = notification_service
        self.reset_token_expire_minutes = reset_token_expire_minutes
        self.clock = clock

    def register(
        self,
        nom: str,
        prenom: str,
        email: str,
        password: str,
        telephone: Optional[str] = None
    ) -> Member:
        """Inscription libre : toujours MEMBRE / ACTIF"""
        member = self.member_service.create_member(
            nom=nom,
            prenom=prenom,
            email=email,
            password=password,
            telephone=telephone,
            role=Role.MEMBRE,
            statut=MemberStatus.ACTIF
        )
        if self.notification_service:
            self.notification_service.send_welcome(member)
        return member

    def authenticate(self, email: str, password: str) -> Member:
        """Vérifie les identifiants et l'état du compte"""
        member = self.member_repository.find_by_email(email)
        if not member:
            logger.warning(f"Authentication failed: Member '{email}' not found")
            raise AuthenticationError("Invalid email or password")

        if not self.password_hasher.verify(password, member.hashed_password):
            logger.warning(f"Authentication failed: Invalid password for '{member.email}'")
            raise AuthenticationError("Invalid email or password")

        if not member.can_login():
            logger.warning(f"Authentication refused: account '{member.email}' is inactive")
            raise PermissionDeniedError("This account is disabled")

        logger.info(f"Authentication success: '{member.email}' authenticated")
        return member

    def issue_token(self, member: Member) -> str:
        return self.jwt_service.create_member_token(member)

    def member_from_token(self, token: str) -> Member:
        """Retrouve le membre porteur d'un token d'accès"""
        member_id = self.jwt_service.get_member_id_from_token(token)
        if not member_id:
            raise AuthenticationError("Could not validate credentials")

        member = self.member_repository.find_by_id(member_id)
        if not member:
            raise AuthenticationError("Could not validate credentials")
        if not member.can_login():
            raise PermissionDeniedError("This account is disabled")
        return member

    def change_password(self, member_id: str, current_password: str, new_password: str) -> Member:
        member = self.member_service.get_member(member_id)
        if not self.password_hasher.verify(current_password, member.hashed_password):
            raise AuthenticationError("Current password is incorrect")
        validate_password(new_password)

        member.hashed_password = self.password_hasher.hash(new_password)
        member = self.member_repository.save(member)
        logger.info(f"🔑 Mot de passe modifié pour {member.email}")

        if self.notification_service:
            self.notification_service.send_password_changed(member)
        return member

    def forgot_password(self, email: str) -> None:
        """
        Génère un token de réinitialisation et l'envoie par email.
        Un email inconnu ne lève pas d'erreur : la réponse ne doit pas
        révéler quels comptes existent.
        """
        member = self.member_repository.find_by_email(email)
        if not member:
            logger.info(f"Password reset requested for unknown email '{email}'")
            return

        token = self.password_hasher.generate_token()
        expires_at = self.clock() + timedelta(minutes=self.reset_token_expire_minutes)
        member.set_reset_token(self.password_hasher.hash(token), expires_at)
        member = self.member_repository.save(member)
        logger.info(f"Token de réinitialisation généré pour {member.email}")

        if self.notification_service:
            self.notification_service.send_password_reset(member, token, self.reset_token_expire_minutes)

    def reset_password(self, token: str, new_password: str) -> Member:
        """Réinitialise le mot de passe à partir d'un token non expiré (usage unique)"""
        validate_password(new_password)

        candidates = self.member_repository.find_with_active_reset_token(self.clock())
        member = next(
            (m for m in candidates if self.password_hasher.verify(token, m.reset_token_hash)),
            None
        )
        if not member:
            raise InvalidInputError("Reset token is invalid or expired")

        member.hashed_password = self.password_hasher.hash(new_password)
        member.clear_reset_token()
        member = self.member_repository.save(member)
        logger.info(f"🔑 Mot de passe réinitialisé pour {member.email}")

        if self.notification_service:
            self.notification_service.send_password_changed(member)
        return member
