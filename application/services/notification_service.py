"""
NotificationService - Emails transactionnels de l'association

Les notifications ne font jamais échouer l'opération qui les déclenche :
chaque envoi retourne un NotificationResult et les erreurs sont journalisées.
"""

import logging
from enum import Enum
from typing import Optional, Union

from domain.entities import Member, Cotisation, Evenement, Participant
from infrastructure.external.email_client import (
    EmailClient, EmailServiceUnavailable, EmailDeliveryError
)

logger = logging.getLogger(__name__)

DATE_FORMAT = "%d/%m/%Y"
DATETIME_FORMAT = "%d/%m/%Y à %Hh%M"


class NotificationResult(str, Enum):
    """Issue d'un envoi"""
    SENT = "SENT"
    UNAVAILABLE = "UNAVAILABLE"
    FAILED = "FAILED"
    SKIPPED = "SKIPPED"

    @property
    def ok(self) -> bool:
        return self in (NotificationResult.SENT, NotificationResult.SKIPPED)


class NotificationService:
    """Compose et envoie les emails (texte brut)"""

    def __init__(
        self,
        email_client: Optional[EmailClient],
        association_name: str = "Notre Association",
        frontend_url: str = "http://localhost:5173"
    ):
        self.email_client = email_client
        self.association_name = association_name
        self.frontend_url = frontend_url.rstrip("/")

    def _dispatch(self, to: str, subject: str, body: str) -> NotificationResult:
        if self.email_client is None or not to:
            return NotificationResult.SKIPPED

        try:
            self.email_client.send(to, subject, body)
        except EmailServiceUnavailable as e:
            logger.warning(f"⚠️ Service email indisponible, message '{subject}' non envoyé à {to}: {e}")
            return NotificationResult.UNAVAILABLE
        except EmailDeliveryError as e:
            logger.error(f"❌ Échec d'envoi de '{subject}' à {to}: {e}")
            return NotificationResult.FAILED
        except Exception as e:
            logger.error(f"❌ Erreur inattendue lors de l'envoi de '{subject}' à {to}: {e}", exc_info=True)
            return NotificationResult.FAILED

        return NotificationResult.SENT

    def _signature(self) -> str:
        return f"\n\nCordialement,\nL'équipe {self.association_name}"

    def send_welcome(self, member: Member) -> NotificationResult:
        body = (
            f"Bonjour {member.prenom},\n\n"
            f"Bienvenue dans {self.association_name} ! Votre compte a bien été créé.\n"
            f"Vous pouvez vous connecter ici : {self.frontend_url}/login"
            + self._signature()
        )
        return self._dispatch(member.email, "Bienvenue dans notre association !", body)

    def send_password_reset(self, member: Member, token: str, expire_minutes: int) -> NotificationResult:
        link = f"{self.frontend_url}/reset-password?token={token}"
        body = (
            f"Bonjour {member.prenom},\n\n"
            "Vous avez demandé la réinitialisation de votre mot de passe.\n"
            f"Ce lien est valable {expire_minutes} minutes : {link}\n\n"
            "Si vous n'êtes pas à l'origine de cette demande, ignorez cet email."
            + self._signature()
        )
        return self._dispatch(member.email, "Réinitialisation de votre mot de passe", body)

    def send_password_changed(self, member: Member) -> NotificationResult:
        body = (
            f"Bonjour {member.prenom},\n\n"
            "Votre mot de passe vient d'être modifié. Si vous n'êtes pas à l'origine "
            "de ce changement, contactez immédiatement un administrateur."
            + self._signature()
        )
        return self._dispatch(member.email, "Votre mot de passe a été modifié", body)

    def send_registration_confirmation(self, member: Member, evenement: Evenement) -> NotificationResult:
        body = (
            f"Bonjour {member.prenom},\n\n"
            f"Votre inscription à « {evenement.titre} » est confirmée.\n"
            f"Date : {evenement.date_debut.strftime(DATETIME_FORMAT)}\n"
            f"Lieu : {evenement.lieu}"
            + self._signature()
        )
        return self._dispatch(member.email, f"Inscription confirmée : {evenement.titre}", body)

    def send_dues_reminder(self, member: Member, cotisation: Cotisation, jours_restants: int) -> NotificationResult:
        if jours_restants > 0:
            subject = f"Rappel : Votre cotisation expire dans {jours_restants} jours"
        else:
            subject = "Rappel : Votre cotisation expire bientôt"
        body = (
            f"Bonjour {member.prenom} {member.nom},\n\n"
            f"Votre cotisation de {cotisation.montant} expire le "
            f"{cotisation.date_expiration.strftime(DATE_FORMAT)} "
            f"({jours_restants} jour(s) restant(s)).\n"
            "Pensez à la renouveler pour rester membre actif."
            + self._signature()
        )
        return self._dispatch(member.email, subject, body)

    def send_event_reminder(self, member: Union[Member, Participant], evenement: Evenement) -> NotificationResult:
        body = (
            f"Bonjour {member.prenom},\n\n"
            f"Petit rappel : « {evenement.titre} » a lieu demain, "
            f"le {evenement.date_debut.strftime(DATETIME_FORMAT)}.\n"
            f"Lieu : {evenement.lieu}"
            + self._signature()
        )
        return self._dispatch(member.email, f"Rappel : {evenement.titre} demain", body)
