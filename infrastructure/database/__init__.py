"""
Infrastructure Database - Configuration et repositories SQLAlchemy
"""

from infrastructure.database.session import Database
from infrastructure.database.models import (
    Base, MemberModel, CotisationModel, EvenementModel, InscriptionModel
)
from infrastructure.database.repositories import (
    SQLAlchemyMemberRepository,
    SQLAlchemyCotisationRepository,
    SQLAlchemyEvenementRepository,
    SQLAlchemyInscriptionRepository
)

__all__ = [
    "Base",
    "Database",
    "MemberModel",
    "CotisationModel",
    "EvenementModel",
    "InscriptionModel",
    "SQLAlchemyMemberRepository",
    "SQLAlchemyCotisationRepository",
    "SQLAlchemyEvenementRepository",
    "SQLAlchemyInscriptionRepository"
]
