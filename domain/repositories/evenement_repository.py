"""
Interface EvenementRepository - Définit les opérations d'accès aux données pour Evenement
"""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import List, Optional
from domain.entities.evenement import Evenement


class EvenementRepository(ABC):
    """Interface pour le repository des événements"""
    
    @abstractmethod
    def find_by_id(self, evenement_id: str) -> Optional[Evenement]:
        """Trouve un événement par son ID"""
        pass
    
    @abstractmethod
    def find_all(
        self,
        page: int = 1,
        limit: int = 10,
        est_publie: Optional[bool] = None,
        starts_after: Optional[datetime] = None,
        search: Optional[str] = None
    ) -> List[Evenement]:
        """Trouve les événements avec filtres et pagination, par date de début"""
        pass
    
    @abstractmethod
    def count(
        self,
        est_publie: Optional[bool] = None,
        starts_after: Optional[datetime] = None,
        search: Optional[str] = None
    ) -> int:
        """Compte les événements avec filtres"""
        pass
    
    @abstractmethod
    def find_starting_between(
        self, start: datetime, end: datetime, published_only: bool = True
    ) -> List[Evenement]:
        """Événements dont le début est dans [start, end)"""
        pass
    
    @abstractmethod
    def save(self, evenement: Evenement) -> Evenement:
        """Sauvegarde un événement (création ou mise à jour des champs descriptifs)"""
        pass
    
    @abstractmethod
    def resize(self, evenement_id: str, new_total: int) -> Optional[Evenement]:
        """Change la capacité totale de façon atomique en conservant les places occupées"""
        pass
    
    @abstractmethod
    def delete(self, evenement_id: str) -> None:
        """Supprime un événement et ses inscriptions"""
        pass
    
    @abstractmethod
    def count_upcoming(self, now: datetime, full_only: bool = False) -> int:
        """Compte les événements à venir (publiés, ou complets si full_only)"""
        pass
    
    @abstractmethod
    def count_all(self) -> int:
        """Nombre total d'événements"""
        pass
