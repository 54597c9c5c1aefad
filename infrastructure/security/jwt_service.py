"""
JWTService - Service pour la gestion des tokens JWT
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import Optional, Dict, Any
from jose import JWTError, jwt

from domain.entities import Member

logger = logging.getLogger(__name__)


class JWTService:
    """Service pour la gestion des tokens JWT"""
    
    def __init__(self, secret_key: str, algorithm: str = "HS256", expire_minutes: int = 1440):
        self.secret_key = secret_key
        self.algorithm = algorithm
        self.expire_minutes = expire_minutes
    
    def create_access_token(self, data: Dict[str, Any], expires_delta: Optional[timedelta] = None) -> str:
        """Crée un token JWT"""
        to_encode = data.copy()
        expire = datetime.now(timezone.utc) + (expires_delta or timedelta(minutes=self.expire_minutes))
        to_encode.update({"exp": expire})
        return jwt.encode(to_encode, self.secret_key, algorithm=self.algorithm)
    
    def create_member_token(self, member: Member) -> str:
        """Token d'accès d'un membre : sub = id, plus le rôle pour le front"""
        return self.create_access_token({
            "sub": member.id,
            "email": member.email,
            "role": member.role.value
        })
    
    def decode_token(self, token: str) -> Dict[str, Any]:
        """Décode un token JWT"""
        try:
            return jwt.decode(token, self.secret_key, algorithms=[self.algorithm])
        except JWTError as e:
            logger.warning(f"JWT decode error: {e}")
            raise ValueError(f"Invalid token: {str(e)}")
    
    def get_member_id_from_token(self, token: str) -> Optional[str]:
        """Extrait l'ID du membre depuis un token JWT"""
        try:
            payload = self.decode_token(token)
            return payload.get("sub")
        except ValueError:
            return None
