"""Tests unitaires des règles de dérivation expiration / statut des cotisations."""

from datetime import date, datetime, time, timedelta, timezone
from decimal import Decimal

import pytest

from domain.entities import Cotisation, CotisationUpdate, DuesStatus, PaymentMode
from domain.entities.cotisation import (
    days_remaining, derive_status, end_of_periode, parse_periode, resolve_expiration, to_naive_utc
)
from domain.errors import InvalidInputError


def test_expiration_defaults_to_one_year_after_payment():
    assert resolve_expiration(datetime(2024, 1, 15)) == datetime(2025, 1, 15)


def test_expiration_one_year_after_leap_day_is_clamped():
    assert resolve_expiration(date(2024, 2, 29)) == datetime(2025, 2, 28)


def test_periode_wins_over_payment_date():
    expiration = resolve_expiration(datetime(2024, 1, 15), periode="02/2024")
    assert expiration == datetime.combine(date(2024, 2, 29), time.max)


def test_explicit_expiration_wins_over_everything():
    explicit = datetime(2030, 5, 1, 10, 0)
    assert resolve_expiration(datetime(2024, 1, 15), "02/2024", explicit) == explicit


def test_end_of_periode_december():
    assert end_of_periode("12/2023") == datetime.combine(date(2023, 12, 31), time.max)


@pytest.mark.parametrize("periode", ["13/2024", "2/2024", "02-2024", "", "00/2024"])
def test_parse_periode_rejects_bad_format(periode):
    with pytest.raises(InvalidInputError):
        parse_periode(periode)


def test_status_is_expired_only_strictly_after_expiration():
    expiration = datetime(2024, 6, 1)
    assert derive_status(expiration, expiration) == DuesStatus.A_JOUR
    assert derive_status(expiration, expiration + timedelta(seconds=1)) == DuesStatus.EXPIRE


def test_days_remaining_rounds_up_and_floors_at_zero():
    now = datetime(2024, 6, 1, 12, 0)
    assert days_remaining(now + timedelta(days=2, hours=1), now) == 3
    assert days_remaining(now - timedelta(days=1), now) == 0


def test_aware_datetimes_are_normalized_to_naive_utc():
    aware = datetime(2024, 1, 15, 12, 0, tzinfo=timezone(timedelta(hours=2)))
    assert to_naive_utc(aware) == datetime(2024, 1, 15, 10, 0)


def test_cotisation_rejects_non_positive_amount():
    with pytest.raises(InvalidInputError):
        Cotisation(
            id="c1",
            membre_id="m1",
            date_paiement=datetime(2024, 1, 1),
            montant="-5",
            mode_paiement=PaymentMode.ESPECES,
            date_expiration=datetime(2025, 1, 1)
        )


def test_cotisation_coerces_amount_and_enums():
    cotisation = Cotisation(
        id="c1",
        membre_id="m1",
        date_paiement=datetime(2024, 1, 1),
        montant=25,
        mode_paiement="CHEQUE",
        date_expiration=datetime(2025, 1, 1),
        statut="EN_ATTENTE"
    )
    assert cotisation.montant == Decimal("25.00")
    assert cotisation.mode_paiement == PaymentMode.CHEQUE
    assert cotisation.statut == DuesStatus.EN_ATTENTE


def test_cotisation_update_only_reports_supplied_fields():
    changes = CotisationUpdate(notes="Payé en retard")
    assert changes.supplied() == {"notes": "Payé en retard"}
    assert not changes.touches_dates()
    assert CotisationUpdate(periode="").touches_dates()


def test_cotisation_update_null_clears_only_nullable_fields():
    assert CotisationUpdate(notes=None).supplied() == {"notes": None}
    assert CotisationUpdate(date_expiration=None).touches_dates()

    with pytest.raises(InvalidInputError):
        CotisationUpdate(statut=None).supplied()
