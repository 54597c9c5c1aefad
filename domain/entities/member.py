"""
Entité Member - Modèle métier pour les membres de l'association
"""

from datetime import datetime
from typing import Any, Dict, Optional
from dataclasses import dataclass
from enum import Enum

from domain.errors import InvalidInputError, coerce_enum
from domain.entities.partial import UNSET, supplied_fields


class Role(str, Enum):
    """Rôle applicatif d'un membre"""
    ADMIN = "ADMIN"
    MEMBRE = "MEMBRE"


class MemberStatus(str, Enum):
    """Statut d'un membre dans l'association"""
    ACTIF = "ACTIF"
    INACTIF = "INACTIF"
    BUREAU = "BUREAU"


def normalize_email(email: str) -> str:
    """Les emails sont uniques sans tenir compte de la casse"""
    return (email or "").strip().lower()


@dataclass
class Member:
    """Entité Member du domaine"""
    id: str
    nom: str
    prenom: str
    email: str
    hashed_password: str
    role: Role = Role.MEMBRE
    statut: MemberStatus = MemberStatus.ACTIF
    telephone: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    reset_token_hash: Optional[str] = None
    reset_token_expires_at: Optional[datetime] = None

    def __post_init__(self):
        """Validation de l'entité"""
        if not self.nom or not self.nom.strip():
            raise InvalidInputError("Member last name cannot be empty")
        if not self.prenom or not self.prenom.strip():
            raise InvalidInputError("Member first name cannot be empty")
        self.email = normalize_email(self.email)
        if "@" not in self.email:
            raise InvalidInputError(f"Invalid email address: '{self.email}'")
        if not self.hashed_password:
            raise InvalidInputError("Hashed password cannot be empty")
        self.role = coerce_enum(Role, self.role)
        self.statut = coerce_enum(MemberStatus, self.statut)

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN

    @property
    def full_name(self) -> str:
        return f"{self.prenom} {self.nom}"

    def can_login(self) -> bool:
        """Un compte INACTIF ne peut plus se connecter"""
        return self.statut != MemberStatus.INACTIF

    def set_reset_token(self, token_hash: str, expires_at: datetime) -> None:
        self.reset_token_hash = token_hash
        self.reset_token_expires_at = expires_at

    def clear_reset_token(self) -> None:
        self.reset_token_hash = None
        self.reset_token_expires_at = None


@dataclass
class MemberUpdate:
    """Modification partielle d'un membre (UNSET = champ inchangé, None efface le téléphone)"""
    nom: Optional[str] = UNSET
    prenom: Optional[str] = UNSET
    email: Optional[str] = UNSET
    telephone: Optional[str] = UNSET
    role: Optional[Role] = UNSET
    statut: Optional[MemberStatus] = UNSET
    password: Optional[str] = UNSET

    NULLABLE = ("telephone",)

    def supplied(self) -> Dict[str, Any]:
        return supplied_fields(self, self.NULLABLE)
