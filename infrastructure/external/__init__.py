"""
Services externes (envoi d'emails)
"""

from infrastructure.external.email_client import (
    EmailClient,
    SMTPEmailClient,
    LoggingEmailClient,
    EmailServiceUnavailable,
    EmailDeliveryError,
    build_email_client
)

__all__ = [
    "EmailClient",
    "SMTPEmailClient",
    "LoggingEmailClient",
    "EmailServiceUnavailable",
    "EmailDeliveryError",
    "build_email_client"
]
