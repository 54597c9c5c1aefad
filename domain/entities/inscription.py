"""
Entité Inscription - Inscription d'un membre à un événement
"""

from datetime import datetime
from typing import Optional
from dataclasses import dataclass
from enum import Enum

from domain.errors import InvalidStateError, coerce_enum


class RegistrationStatus(str, Enum):
    """Statut d'une inscription"""
    CONFIRMEE = "CONFIRMEE"
    EN_ATTENTE = "EN_ATTENTE"
    ANNULEE = "ANNULEE"


@dataclass
class Inscription:
    """Entité Inscription du domaine (unique par couple membre/événement)"""
    id: str
    membre_id: str
    evenement_id: str
    statut: RegistrationStatus = RegistrationStatus.CONFIRMEE
    date_inscription: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    def __post_init__(self):
        self.statut = coerce_enum(RegistrationStatus, self.statut)

    def is_active(self) -> bool:
        return self.statut == RegistrationStatus.CONFIRMEE

    def is_cancelled(self) -> bool:
        return self.statut == RegistrationStatus.ANNULEE

    def ensure_cancellable(self) -> None:
        if self.is_cancelled():
            raise InvalidStateError("Registration is already cancelled")


@dataclass
class Participant:
    """Vue d'un participant confirmé à un événement"""
    membre_id: str
    nom: str
    prenom: str
    email: str
    telephone: Optional[str]
    date_inscription: Optional[datetime]
    statut: RegistrationStatus
