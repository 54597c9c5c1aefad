"""
Interface CotisationRepository - Définit les opérations d'accès aux données pour Cotisation
"""

from abc import ABC, abstractmethod
from datetime import datetime
from decimal import Decimal
from typing import Dict, List, Optional
from domain.entities.cotisation import Cotisation


class CotisationRepository(ABC):
    """Interface pour le repository des cotisations"""
    
    @abstractmethod
    def find_by_id(self, cotisation_id: str) -> Optional[Cotisation]:
        """Trouve une cotisation par son ID"""
        pass
    
    @abstractmethod
    def find_by_member(self, membre_id: str) -> List[Cotisation]:
        """Cotisations d'un membre, la plus récente d'abord"""
        pass
    
    @abstractmethod
    def find_latest_for_member(self, membre_id: str) -> Optional[Cotisation]:
        """Dernière cotisation payée par un membre"""
        pass
    
    @abstractmethod
    def periode_exists(self, membre_id: str, periode: str, exclude_id: Optional[str] = None) -> bool:
        """Vérifie si la période est déjà utilisée par une autre cotisation du membre"""
        pass
    
    @abstractmethod
    def find_all(
        self,
        page: int = 1,
        limit: int = 25,
        statut: Optional[str] = None,
        membre_id: Optional[str] = None,
        mode_paiement: Optional[str] = None,
        date_debut: Optional[datetime] = None,
        date_fin: Optional[datetime] = None
    ) -> List[Cotisation]:
        """Trouve les cotisations avec filtres et pagination"""
        pass
    
    @abstractmethod
    def count(
        self,
        statut: Optional[str] = None,
        membre_id: Optional[str] = None,
        mode_paiement: Optional[str] = None,
        date_debut: Optional[datetime] = None,
        date_fin: Optional[datetime] = None
    ) -> int:
        """Compte les cotisations avec filtres"""
        pass
    
    @abstractmethod
    def save(self, cotisation: Cotisation) -> Cotisation:
        """Sauvegarde une cotisation (création ou mise à jour)"""
        pass
    
    @abstractmethod
    def delete(self, cotisation_id: str) -> None:
        """Supprime une cotisation"""
        pass
    
    @abstractmethod
    def mark_expired(self, now: datetime) -> int:
        """Passe en EXPIRE toutes les cotisations échues, retourne le nombre modifié"""
        pass
    
    @abstractmethod
    def find_expiring_between(self, start: datetime, end: datetime) -> List[Cotisation]:
        """Cotisations A_JOUR dont l'expiration est dans [start, end], les plus proches d'abord"""
        pass
    
    @abstractmethod
    def find_expired_before(self, reference: datetime) -> List[Cotisation]:
        """Cotisations A_JOUR ou EXPIRE dont l'expiration est <= reference"""
        pass
    
    @abstractmethod
    def count_by_status(self, valid_at: Optional[datetime] = None) -> Dict[str, int]:
        """
        Compte les cotisations par statut.
        Si valid_at est fourni, les A_JOUR déjà échues à cette date ne sont pas comptées.
        """
        pass
    
    @abstractmethod
    def paid_between(self, start: datetime, end: datetime) -> Dict[str, Decimal]:
        """Nombre et somme des cotisations payées dans l'intervalle"""
        pass
    
    @abstractmethod
    def count_by_mode(self) -> Dict[str, int]:
        """Répartition par mode de paiement"""
        pass
