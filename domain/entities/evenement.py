"""
Entité Evenement - Modèle métier pour les événements de l'association
"""

from datetime import datetime
from typing import Any, Dict, Optional
from dataclasses import dataclass

from domain.errors import InvalidInputError
from domain.entities.partial import UNSET, supplied_fields


@dataclass
class Evenement:
    """Entité Evenement du domaine"""
    id: str
    titre: str
    date_debut: datetime
    lieu: str
    places_total: int
    places_restantes: int
    est_publie: bool = True
    description: Optional[str] = None
    date_fin: Optional[datetime] = None
    createur_id: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    def __post_init__(self):
        """Validation de l'entité"""
        if not self.titre or not self.titre.strip():
            raise InvalidInputError("Event title cannot be empty")
        if not self.lieu or not self.lieu.strip():
            raise InvalidInputError("Event location cannot be empty")
        if self.places_total < 1:
            raise InvalidInputError("Event capacity must be at least 1")
        if not 0 <= self.places_restantes <= self.places_total:
            raise InvalidInputError(
                f"Remaining seats must be between 0 and {self.places_total}"
            )
        if self.date_fin is not None and self.date_fin < self.date_debut:
            raise InvalidInputError("Event end date cannot precede its start date")

    @property
    def places_utilisees(self) -> int:
        return self.places_total - self.places_restantes

    def is_full(self) -> bool:
        return self.places_restantes <= 0


@dataclass
class EvenementUpdate:
    """Modification partielle d'un événement (UNSET = champ inchangé, None efface description ou date de fin)"""
    titre: Optional[str] = UNSET
    description: Optional[str] = UNSET
    date_debut: Optional[datetime] = UNSET
    date_fin: Optional[datetime] = UNSET
    lieu: Optional[str] = UNSET
    places_total: Optional[int] = UNSET
    est_publie: Optional[bool] = UNSET

    NULLABLE = ("description", "date_fin")

    def supplied(self) -> Dict[str, Any]:
        return supplied_fields(self, self.NULLABLE)
