"""
Sécurité - Hachage bcrypt (mots de passe, tokens de réinitialisation) et tokens d'accès JWT
"""

from infrastructure.security.password_hasher import PasswordHasher
from infrastructure.security.jwt_service import JWTService

__all__ = ["PasswordHasher", "JWTService"]
