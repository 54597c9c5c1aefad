"""
assocly-api/api/auth.py
Dépendances d'authentification (token Bearer, rôle administrateur)
"""

import logging

from fastapi import Depends
from fastapi.security import OAuth2PasswordBearer

from domain.entities import Member
from domain.errors import PermissionDeniedError
from infrastructure.dependencies import get_auth_service
from application.services.auth_service import AuthService

logger = logging.getLogger(__name__)

# Cible l'endpoint /api/auth/token
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/auth/token")


def get_current_member(
    token: str = Depends(oauth2_scheme),
    auth_service: AuthService = Depends(get_auth_service)
) -> Member:
    """
    Dépendance FastAPI : décode le token JWT et retourne le membre.
    Un token invalide donne 401, un compte désactivé 403.
    """
    return auth_service.member_from_token(token)


def get_current_admin(current_member: Member = Depends(get_current_member)) -> Member:
    """
    Dépendance qui vérifie que le membre courant est administrateur.
    """
    if not current_member.is_admin:
        logger.warning(f"Admin access refused for '{current_member.email}'")
        raise PermissionDeniedError("Admin access required")
    return current_member


def ensure_self_or_admin(current_member: Member, membre_id: str) -> None:
    """Un membre n'agit que pour lui-même, sauf administrateur"""
    if current_member.id != membre_id and not current_member.is_admin:
        raise PermissionDeniedError("You can only act on your own account")
