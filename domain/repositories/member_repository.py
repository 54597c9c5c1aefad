"""
Interface MemberRepository - Définit les opérations d'accès aux données pour Member
"""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Dict, List, Optional
from domain.entities.member import Member


class MemberRepository(ABC):
    """Interface pour le repository des membres"""
    
    @abstractmethod
    def find_by_id(self, member_id: str) -> Optional[Member]:
        """Trouve un membre par son ID"""
        pass
    
    @abstractmethod
    def find_by_email(self, email: str) -> Optional[Member]:
        """Trouve un membre par son email (insensible à la casse)"""
        pass
    
    @abstractmethod
    def find_all(
        self,
        page: int = 1,
        limit: int = 25,
        search: Optional[str] = None,
        statut: Optional[str] = None,
        role: Optional[str] = None
    ) -> List[Member]:
        """Trouve les membres avec filtres et pagination"""
        pass
    
    @abstractmethod
    def count(
        self,
        search: Optional[str] = None,
        statut: Optional[str] = None,
        role: Optional[str] = None
    ) -> int:
        """Compte les membres avec filtres"""
        pass
    
    @abstractmethod
    def count_by_status(self) -> Dict[str, int]:
        """Compte les membres par statut"""
        pass
    
    @abstractmethod
    def find_with_active_reset_token(self, now: datetime) -> List[Member]:
        """Membres ayant un token de réinitialisation non expiré"""
        pass
    
    @abstractmethod
    def save(self, member: Member) -> Member:
        """Sauvegarde un membre (création ou mise à jour)"""
        pass
    
    @abstractmethod
    def delete(self, member_id: str) -> None:
        """Supprime un membre, ses cotisations et ses inscriptions"""
        pass
