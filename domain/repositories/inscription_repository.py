"""
Interface InscriptionRepository - Inscriptions et compteur de places

Les opérations register / cancel modifient l'inscription ET les places
restantes de l'événement dans une seule transaction.
"""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import List, Optional, Tuple
from domain.entities.evenement import Evenement
from domain.entities.inscription import Inscription, Participant


class InscriptionRepository(ABC):
    """Interface pour le repository des inscriptions"""
    
    @abstractmethod
    def find_by_pair(self, membre_id: str, evenement_id: str) -> Optional[Inscription]:
        """Trouve l'inscription d'un membre à un événement"""
        pass
    
    @abstractmethod
    def register(self, evenement_id: str, membre_id: str) -> Inscription:
        """
        Réserve une place et crée (ou réactive) l'inscription, atomiquement.
        
        Raises:
            CapacityExceededError: plus aucune place au moment de la réservation
            ConflictError: une inscription confirmée existe déjà
        """
        pass
    
    @abstractmethod
    def cancel(self, inscription_id: str) -> Inscription:
        """
        Annule l'inscription et libère une place, atomiquement.
        
        Raises:
            InvalidStateError: l'inscription est déjà annulée
        """
        pass
    
    @abstractmethod
    def find_participants(self, evenement_id: str) -> List[Participant]:
        """Participants confirmés, par ordre d'inscription"""
        pass
    
    @abstractmethod
    def find_for_member(
        self, membre_id: str, starts_after: Optional[datetime] = None
    ) -> List[Tuple[Inscription, Evenement]]:
        """Inscriptions confirmées d'un membre avec leur événement"""
        pass
    
    @abstractmethod
    def count_confirmed(self, evenement_id: Optional[str] = None) -> int:
        """Nombre d'inscriptions confirmées (toutes ou pour un événement)"""
        pass
