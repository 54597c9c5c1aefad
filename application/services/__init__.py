"""
Services applicatifs
"""

from application.services.member_service import MemberService
from application.services.auth_service import AuthService
from application.services.cotisation_service import CotisationService, MemberDuesStatus
from application.services.evenement_service import EvenementService
from application.services.notification_service import NotificationService, NotificationResult
from application.services.maintenance_service import MaintenanceService
from application.services.pagination import Page

__all__ = [
    "MemberService",
    "AuthService",
    "CotisationService",
    "MemberDuesStatus",
    "EvenementService",
    "NotificationService",
    "NotificationResult",
    "MaintenanceService",
    "Page"
]
