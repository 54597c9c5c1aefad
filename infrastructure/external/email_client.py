"""
EmailClient - Envoi des emails transactionnels (SMTP)

Chaque envoi est borné par SMTP_TIMEOUT. Un serveur injoignable ou trop lent
lève EmailServiceUnavailable ; un refus du serveur lève EmailDeliveryError.
"""

import logging
import smtplib
import socket
from abc import ABC, abstractmethod
from email.message import EmailMessage
from typing import List, Optional

logger = logging.getLogger(__name__)


class EmailServiceUnavailable(Exception):
    """Serveur SMTP injoignable ou délai dépassé"""
    pass


class EmailDeliveryError(Exception):
    """Le serveur SMTP a refusé le message"""
    pass


class EmailClient(ABC):
    """Interface d'envoi d'emails"""

    @abstractmethod
    def send(self, to: str, subject: str, body: str) -> None:
        """Envoie un email texte"""
        pass


class SMTPEmailClient(EmailClient):
    """Client SMTP avec timeout borné"""

    def __init__(
        self,
        host: str,
        port: int = 587,
        username: Optional[str] = None,
        password: Optional[str] = None,
        use_tls: bool = True,
        timeout: float = 5.0,
        sender: str = "noreply@association.fr"
    ):
        self.host = host
        self.port = port
        self.username = username
        self.password = password
        self.use_tls = use_tls
        self.timeout = timeout
        self.sender = sender

    def _build_message(self, to: str, subject: str, body: str) -> EmailMessage:
        message = EmailMessage()
        message["From"] = self.sender
        message["To"] = to
        message["Subject"] = subject
        message.set_content(body)
        return message

    def send(self, to: str, subject: str, body: str) -> None:
        message = self._build_message(to, subject, body)
        try:
            with smtplib.SMTP(self.host, self.port, timeout=self.timeout) as smtp:
                if self.use_tls:
                    smtp.starttls()
                if self.username:
                    smtp.login(self.username, self.password or "")
                smtp.send_message(message)
        except (socket.timeout, TimeoutError, ConnectionError, smtplib.SMTPConnectError,
                smtplib.SMTPServerDisconnected) as e:
            raise EmailServiceUnavailable(f"SMTP server {self.host}:{self.port} unavailable: {e}") from e
        except (smtplib.SMTPException, OSError) as e:
            raise EmailDeliveryError(f"SMTP delivery to {to} failed: {e}") from e

        logger.debug(f"📧 Email envoyé à {to} : {subject}")


class LoggingEmailClient(EmailClient):
    """Mode simulation : les emails sont seulement journalisés (et gardés en mémoire)"""

    def __init__(self):
        self.sent: List[EmailMessage] = []

    def send(self, to: str, subject: str, body: str) -> None:
        message = EmailMessage()
        message["To"] = to
        message["Subject"] = subject
        message.set_content(body)
        self.sent.append(message)
        logger.info(f"📧 [SIMULATION] Email à {to} : {subject}")


def build_email_client(config) -> EmailClient:
    """SMTP si un hôte est configuré, sinon simulation"""
    if not config.smtp_host:
        logger.warning("⚠️ SMTP_HOST non défini : emails en mode simulation")
        return LoggingEmailClient()
    return SMTPEmailClient(
        host=config.smtp_host,
        port=config.smtp_port,
        username=config.smtp_user or None,
        password=config.smtp_password or None,
        use_tls=config.smtp_use_tls,
        timeout=config.smtp_timeout,
        sender=config.email_from
    )
