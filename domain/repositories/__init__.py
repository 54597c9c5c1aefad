"""
Repositories - Interfaces pour l'accès aux données
"""

from domain.repositories.member_repository import MemberRepository
from domain.repositories.cotisation_repository import CotisationRepository
from domain.repositories.evenement_repository import EvenementRepository
from domain.repositories.inscription_repository import InscriptionRepository

__all__ = [
    "MemberRepository",
    "CotisationRepository",
    "EvenementRepository",
    "InscriptionRepository"
]
