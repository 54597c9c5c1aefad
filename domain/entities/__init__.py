"""
Entités du domaine
"""

from domain.entities.member import Member, MemberUpdate, Role, MemberStatus, normalize_email
from domain.entities.cotisation import Cotisation, CotisationUpdate, DuesStatus, PaymentMode
from domain.entities.evenement import Evenement, EvenementUpdate
from domain.entities.inscription import Inscription, Participant, RegistrationStatus

__all__ = [
    "Member",
    "MemberUpdate",
    "Role",
    "MemberStatus",
    "normalize_email",
    "Cotisation",
    "CotisationUpdate",
    "DuesStatus",
    "PaymentMode",
    "Evenement",
    "EvenementUpdate",
    "Inscription",
    "Participant",
    "RegistrationStatus"
]
