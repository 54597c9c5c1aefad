"""
PasswordHasher - Hachage des mots de passe et des tokens de réinitialisation
"""

import secrets

from passlib.context import CryptContext


class PasswordHasher:
    """Service pour le hachage et la vérification des secrets (bcrypt)"""
    
    def __init__(self, rounds: int = 12):
        self.pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto", bcrypt__rounds=rounds)
    
    def hash(self, password: str) -> str:
        """Génère un hachage pour un mot de passe ou un token"""
        return self.pwd_context.hash(password)
    
    def verify(self, plain_password: str, hashed_password: str) -> bool:
        """Vérifie un secret en clair contre son hachage"""
        if not plain_password or not hashed_password:
            return False
        return self.pwd_context.verify(plain_password, hashed_password)
    
    @staticmethod
    def generate_token(nbytes: int = 32) -> str:
        """Token aléatoire envoyé par email (seul son hachage est stocké)"""
        return secrets.token_urlsafe(nbytes)
