"""Tests des notifications et du client SMTP (sans serveur réel)."""

import smtplib
from datetime import datetime

import pytest

from domain.entities import Cotisation, Member, PaymentMode
from infrastructure.external import email_client as email_module
from infrastructure.external.email_client import (
    EmailDeliveryError, EmailServiceUnavailable, LoggingEmailClient, SMTPEmailClient, build_email_client
)
from application.services.notification_service import NotificationResult, NotificationService
from config import Config


def _member():
    return Member(
        id="m1", nom="Bernard", prenom="Alice", email="alice@example.org", hashed_password="x"
    )


class _RefusingSMTP:
    def __init__(self, *args, **kwargs):
        pass

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        return False

    def starttls(self):
        pass

    def send_message(self, message):
        raise smtplib.SMTPRecipientsRefused({message["To"]: (550, b"unknown user")})


def test_smtp_timeout_is_unavailable(monkeypatch):
    def timeout(*args, **kwargs):
        raise TimeoutError("timed out")

    monkeypatch.setattr(email_module.smtplib, "SMTP", timeout)
    client = SMTPEmailClient("smtp.example.org", timeout=0.1)

    with pytest.raises(EmailServiceUnavailable):
        client.send("alice@example.org", "Sujet", "Corps")


def test_smtp_refusal_is_a_delivery_error(monkeypatch):
    monkeypatch.setattr(email_module.smtplib, "SMTP", _RefusingSMTP)
    client = SMTPEmailClient("smtp.example.org")

    with pytest.raises(EmailDeliveryError):
        client.send("alice@example.org", "Sujet", "Corps")


def test_notification_failures_are_reported_not_raised(monkeypatch):
    monkeypatch.setattr(email_module.smtplib, "SMTP", _RefusingSMTP)
    service = NotificationService(SMTPEmailClient("smtp.example.org"))

    assert service.send_welcome(_member()) == NotificationResult.FAILED


def test_welcome_email_content():
    client = LoggingEmailClient()
    service = NotificationService(client, association_name="Les Amis du Quartier", frontend_url="http://front/")

    assert service.send_welcome(_member()) == NotificationResult.SENT

    message = client.sent[0]
    assert message["To"] == "alice@example.org"
    assert "Les Amis du Quartier" in message.get_content()
    assert "http://front/login" in message.get_content()


def test_build_email_client_without_smtp_host_simulates(monkeypatch):
    monkeypatch.delenv("SMTP_HOST", raising=False)
    assert isinstance(build_email_client(Config()), LoggingEmailClient)

    monkeypatch.setenv("SMTP_HOST", "smtp.example.org")
    assert isinstance(build_email_client(Config()), SMTPEmailClient)


def test_dues_reminder_subject_mentions_days():
    client = LoggingEmailClient()
    cotisation = Cotisation(
        id="c1",
        membre_id="m1",
        date_paiement=datetime(2024, 1, 1),
        montant="30",
        mode_paiement=PaymentMode.ESPECES,
        date_expiration=datetime(2024, 7, 1)
    )

    NotificationService(client).send_dues_reminder(_member(), cotisation, 12)

    assert client.sent[0]["Subject"] == "Rappel : Votre cotisation expire dans 12 jours"
