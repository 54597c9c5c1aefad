"""Tests du CotisationService sur une base SQLite temporaire."""

from datetime import date, datetime, time, timedelta
from decimal import Decimal

import pytest

from domain.entities import CotisationUpdate, DuesStatus, PaymentMode
from domain.errors import ConflictError, InvalidInputError, NotFoundError
from application.services.cotisation_service import AUCUNE_COTISATION


def _pay(service, membre_id, date_paiement, **kwargs):
    kwargs.setdefault("montant", Decimal("30"))
    kwargs.setdefault("mode_paiement", PaymentMode.ESPECES)
    return service.create_cotisation(membre_id=membre_id, date_paiement=date_paiement, **kwargs)


def test_create_without_periode_expires_one_year_later(cotisation_service, make_member):
    member = make_member()

    cotisation = _pay(cotisation_service, member.id, datetime(2024, 1, 15))

    assert cotisation.date_expiration == datetime(2025, 1, 15)
    assert cotisation.statut == DuesStatus.A_JOUR
    assert cotisation.montant == Decimal("30.00")


def test_create_with_leap_periode(cotisation_service, make_member):
    member = make_member()

    cotisation = _pay(cotisation_service, member.id, datetime(2024, 2, 3), periode="02/2024")

    assert cotisation.date_expiration == datetime.combine(date(2024, 2, 29), time.max)
    # La période est passée à la date figée du test (15/06/2024)
    assert cotisation.statut == DuesStatus.EXPIRE


def test_duplicate_periode_for_same_member_is_a_conflict(cotisation_service, make_member):
    member = make_member()
    other = make_member()
    _pay(cotisation_service, member.id, datetime(2024, 2, 3), periode="02/2024")

    with pytest.raises(ConflictError):
        _pay(cotisation_service, member.id, datetime(2024, 2, 10), periode="02/2024")

    # La même période reste libre pour un autre membre
    _pay(cotisation_service, other.id, datetime(2024, 2, 10), periode="02/2024")


def test_create_for_unknown_member(cotisation_service):
    with pytest.raises(NotFoundError):
        _pay(cotisation_service, "inconnu", datetime(2024, 1, 15))


def test_create_with_bad_periode(cotisation_service, make_member):
    member = make_member()
    with pytest.raises(InvalidInputError):
        _pay(cotisation_service, member.id, datetime(2024, 1, 15), periode="2024-01")


def test_explicit_status_is_kept(cotisation_service, make_member):
    member = make_member()
    cotisation = _pay(cotisation_service, member.id, datetime(2024, 6, 1), statut=DuesStatus.EN_ATTENTE)
    assert cotisation.statut == DuesStatus.EN_ATTENTE


def test_update_payment_date_recomputes_expiration_and_status(cotisation_service, make_member):
    member = make_member()
    cotisation = _pay(cotisation_service, member.id, datetime(2023, 1, 10))
    assert cotisation.statut == DuesStatus.EXPIRE

    updated = cotisation_service.update_cotisation(
        cotisation.id, CotisationUpdate(date_paiement=datetime(2024, 3, 1))
    )

    assert updated.date_expiration == datetime(2025, 3, 1)
    assert updated.statut == DuesStatus.A_JOUR


def test_update_notes_only_keeps_dates(cotisation_service, make_member):
    member = make_member()
    cotisation = _pay(cotisation_service, member.id, datetime(2024, 3, 1))

    updated = cotisation_service.update_cotisation(cotisation.id, CotisationUpdate(notes="Reçu n°12"))

    assert updated.notes == "Reçu n°12"
    assert updated.date_expiration == cotisation.date_expiration
    assert updated.statut == cotisation.statut


def test_update_with_null_notes_clears_them(cotisation_service, make_member):
    member = make_member()
    cotisation = _pay(cotisation_service, member.id, datetime(2024, 3, 1), notes="Reçu n°12")

    updated = cotisation_service.update_cotisation(cotisation.id, CotisationUpdate(notes=None))

    assert updated.notes is None
    assert updated.date_expiration == cotisation.date_expiration
    assert cotisation_service.get_cotisation(cotisation.id).notes is None


def test_update_with_null_expiration_falls_back_to_periode(cotisation_service, make_member):
    member = make_member()
    cotisation = _pay(
        cotisation_service, member.id, datetime(2024, 2, 3),
        periode="02/2024", date_expiration=datetime(2024, 12, 31)
    )

    updated = cotisation_service.update_cotisation(cotisation.id, CotisationUpdate(date_expiration=None))

    assert updated.date_expiration == datetime.combine(date(2024, 2, 29), time.max)
    assert updated.statut == DuesStatus.EXPIRE


def test_update_with_null_amount_is_rejected(cotisation_service, make_member):
    member = make_member()
    cotisation = _pay(cotisation_service, member.id, datetime(2024, 3, 1))

    with pytest.raises(InvalidInputError):
        cotisation_service.update_cotisation(cotisation.id, CotisationUpdate(montant=None))


def test_update_to_taken_periode_is_a_conflict(cotisation_service, make_member):
    member = make_member()
    _pay(cotisation_service, member.id, datetime(2024, 1, 3), periode="01/2024")
    february = _pay(cotisation_service, member.id, datetime(2024, 2, 3), periode="02/2024")

    with pytest.raises(ConflictError):
        cotisation_service.update_cotisation(february.id, CotisationUpdate(periode="01/2024"))


def test_sweep_marks_overdue_records_and_is_idempotent(cotisation_service, make_member, clock):
    member = make_member()
    overdue = _pay(cotisation_service, member.id, datetime(2024, 1, 1), date_expiration=datetime(2024, 12, 31))
    valid = _pay(cotisation_service, member.id, datetime(2024, 6, 1))

    clock.now = datetime(2025, 1, 2)
    assert cotisation_service.sweep_expired_dues() == 1
    assert cotisation_service.sweep_expired_dues() == 0

    assert cotisation_service.get_cotisation(overdue.id).statut == DuesStatus.EXPIRE
    assert cotisation_service.get_cotisation(valid.id).statut == DuesStatus.A_JOUR

    page = cotisation_service.list_dues(statut="A_JOUR")
    assert all(not c.is_expired(clock.now) for c in page.items)


def test_list_expiring_dues_window_and_order(cotisation_service, make_member, clock):
    member = make_member()
    now = clock.now
    in_20_days = _pay(cotisation_service, member.id, datetime(2024, 1, 1), date_expiration=now + timedelta(days=20))
    in_5_days = _pay(cotisation_service, member.id, datetime(2024, 1, 2), date_expiration=now + timedelta(days=5))
    _pay(cotisation_service, member.id, datetime(2024, 1, 3), date_expiration=now + timedelta(days=45))
    _pay(cotisation_service, member.id, datetime(2024, 1, 4), date_expiration=now + timedelta(days=10),
         statut=DuesStatus.EN_ATTENTE)

    expiring = cotisation_service.list_expiring_dues(30)

    assert [c.id for c in expiring] == [in_5_days.id, in_20_days.id]


def test_list_expiring_dues_rejects_negative_window(cotisation_service):
    with pytest.raises(InvalidInputError):
        cotisation_service.list_expiring_dues(-1)


def test_member_dues_status(cotisation_service, make_member, clock):
    member = make_member()

    status = cotisation_service.get_member_dues_status(member.id)
    assert status.statut == AUCUNE_COTISATION
    assert status.cotisation is None

    _pay(cotisation_service, member.id, datetime(2024, 6, 1), date_expiration=clock.now + timedelta(days=10))
    status = cotisation_service.get_member_dues_status(member.id)
    assert status.statut == DuesStatus.A_JOUR.value
    assert status.jours_restants == 10

    clock.now = clock.now + timedelta(days=11)
    status = cotisation_service.get_member_dues_status(member.id)
    assert status.statut == DuesStatus.EXPIRE.value
    assert status.jours_restants == 0


def test_list_dues_pagination(cotisation_service, make_member):
    member = make_member()
    for month in range(1, 6):
        _pay(cotisation_service, member.id, datetime(2024, month, 1), periode=f"{month:02d}/2024")

    page = cotisation_service.list_dues(page=2, limit=2, membre_id=member.id)

    assert page.total == 5
    assert page.total_pages == 3
    assert len(page.items) == 2
    # La plus récente d'abord
    assert page.items[0].date_paiement == datetime(2024, 3, 1)


def test_statistics(cotisation_service, make_member, clock):
    member = make_member()
    _pay(cotisation_service, member.id, datetime(2024, 6, 2), montant=Decimal("20"))
    _pay(cotisation_service, member.id, datetime(2024, 6, 3), montant=Decimal("15.50"),
         mode_paiement=PaymentMode.CHEQUE)
    _pay(cotisation_service, member.id, datetime(2022, 1, 1))

    stats = cotisation_service.get_statistics()

    assert stats["total"] == 3
    assert stats["a_jour"] == 2
    assert stats["expirees"] == 1
    assert stats["cotisations_mois"] == 2
    assert stats["montant_mois"] == Decimal("35.50")
    assert stats["par_mode"]["CHEQUE"] == 1
    assert stats["par_mode"]["VIREMENT"] == 0


def test_deleting_member_removes_dues(cotisation_service, member_service, make_member):
    member = make_member()
    cotisation = _pay(cotisation_service, member.id, datetime(2024, 6, 1))

    member_service.delete_member(member.id)

    with pytest.raises(NotFoundError):
        cotisation_service.get_cotisation(cotisation.id)
