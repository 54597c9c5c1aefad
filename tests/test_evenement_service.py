"""Tests de l'EvenementService : capacité, inscriptions, annulations."""

import threading
from datetime import datetime

import pytest

from domain.entities import EvenementUpdate, RegistrationStatus
from domain.errors import (
    CapacityExceededError, ConflictError, InvalidInputError, InvalidStateError, NotFoundError
)
from infrastructure.database.repositories import (
    SQLAlchemyMemberRepository, SQLAlchemyEvenementRepository, SQLAlchemyInscriptionRepository
)
from infrastructure.external.email_client import EmailClient, EmailDeliveryError, EmailServiceUnavailable
from application.services.evenement_service import EvenementService
from application.services.notification_service import NotificationService


def test_new_event_has_all_seats_available(make_evenement):
    evenement = make_evenement(places_total=12)
    assert evenement.places_restantes == 12
    assert evenement.est_publie is True


def test_end_date_before_start_is_rejected(evenement_service):
    with pytest.raises(InvalidInputError):
        evenement_service.create_evenement(
            titre="Sortie",
            date_debut=datetime(2024, 7, 2),
            date_fin=datetime(2024, 7, 1),
            lieu="Parc",
            places_total=5
        )


def test_register_takes_a_seat_and_sends_confirmation(evenement_service, make_evenement, make_member, email_client):
    evenement = make_evenement(places_total=3)
    member = make_member()

    inscription = evenement_service.register(evenement.id, member.id)

    assert inscription.statut == RegistrationStatus.CONFIRMEE
    assert evenement_service.get_evenement(evenement.id).places_restantes == 2
    assert email_client.sent[-1]["To"] == member.email


def test_register_twice_is_a_conflict(evenement_service, make_evenement, make_member):
    evenement = make_evenement(places_total=3)
    member = make_member()
    evenement_service.register(evenement.id, member.id)

    with pytest.raises(ConflictError):
        evenement_service.register(evenement.id, member.id)

    assert evenement_service.get_evenement(evenement.id).places_restantes == 2


def test_register_twice_on_a_full_event_is_still_a_conflict(evenement_service, make_evenement, make_member):
    evenement = make_evenement(places_total=1)
    member = make_member()
    evenement_service.register(evenement.id, member.id)

    with pytest.raises(ConflictError):
        evenement_service.register(evenement.id, member.id)

    assert evenement_service.get_evenement(evenement.id).places_restantes == 0
    with pytest.raises(CapacityExceededError):
        evenement_service.register(evenement.id, make_member().id)


def test_repository_rejects_confirmed_pair_before_reserving(session, make_evenement, make_member):
    evenement = make_evenement(places_total=1)
    member = make_member()
    repository = SQLAlchemyInscriptionRepository(session)
    repository.register(evenement.id, member.id)

    with pytest.raises(ConflictError):
        repository.register(evenement.id, member.id)

    assert SQLAlchemyEvenementRepository(session).find_by_id(evenement.id).places_restantes == 0


@pytest.mark.parametrize("error", [EmailServiceUnavailable, EmailDeliveryError])
def test_failed_confirmation_email_keeps_the_registration(session, member_repository, make_evenement,
                                                          make_member, clock, error):
    class FailingEmailClient(EmailClient):
        def send(self, to: str, subject: str, body: str) -> None:
            raise error("SMTP down")

    service = EvenementService(
        SQLAlchemyEvenementRepository(session),
        SQLAlchemyInscriptionRepository(session),
        member_repository,
        notification_service=NotificationService(FailingEmailClient()),
        clock=clock
    )
    evenement = make_evenement(places_total=2)
    member = make_member()

    inscription = service.register(evenement.id, member.id)

    assert inscription.statut == RegistrationStatus.CONFIRMEE
    assert service.get_evenement(evenement.id).places_restantes == 1
    assert service.inscription_repository.find_by_pair(member.id, evenement.id).statut == RegistrationStatus.CONFIRMEE


def test_cancel_then_register_reuses_the_same_row(evenement_service, make_evenement, make_member):
    evenement = make_evenement(places_total=3)
    member = make_member()
    first = evenement_service.register(evenement.id, member.id)

    cancelled = evenement_service.cancel_registration(evenement.id, member.id)
    assert cancelled.statut == RegistrationStatus.ANNULEE
    assert evenement_service.get_evenement(evenement.id).places_restantes == 3

    again = evenement_service.register(evenement.id, member.id)
    assert again.id == first.id
    assert again.statut == RegistrationStatus.CONFIRMEE
    assert evenement_service.get_evenement(evenement.id).places_restantes == 2


def test_cancelling_twice_is_invalid_state(evenement_service, make_evenement, make_member):
    evenement = make_evenement(places_total=3)
    member = make_member()
    evenement_service.register(evenement.id, member.id)
    evenement_service.cancel_registration(evenement.id, member.id)

    with pytest.raises(InvalidStateError):
        evenement_service.cancel_registration(evenement.id, member.id)

    assert evenement_service.get_evenement(evenement.id).places_restantes == 3


def test_cancel_without_registration(evenement_service, make_evenement, make_member):
    evenement = make_evenement()
    with pytest.raises(NotFoundError):
        evenement_service.cancel_registration(evenement.id, make_member().id)


def test_full_event_rejects_registration(evenement_service, make_evenement, make_member):
    evenement = make_evenement(places_total=1)
    evenement_service.register(evenement.id, make_member().id)

    with pytest.raises(CapacityExceededError):
        evenement_service.register(evenement.id, make_member().id)


def test_unpublished_event_rejects_registration(evenement_service, make_evenement, make_member):
    evenement = make_evenement(est_publie=False)
    with pytest.raises(InvalidStateError):
        evenement_service.register(evenement.id, make_member().id)


def test_unknown_event_or_member(evenement_service, make_evenement, make_member):
    with pytest.raises(NotFoundError):
        evenement_service.register("inconnu", make_member().id)
    with pytest.raises(NotFoundError):
        evenement_service.register(make_evenement().id, "inconnu")


@pytest.mark.parametrize(
    "places_total, taken, new_total, expected_remaining",
    [
        (10, 3, 15, 12),
        (10, 3, 5, 2),
        (10, 8, 5, 0),
    ],
)
def test_set_capacity_keeps_used_seats(
    evenement_service, make_evenement, make_member, places_total, taken, new_total, expected_remaining
):
    evenement = make_evenement(places_total=places_total)
    for _ in range(taken):
        evenement_service.register(evenement.id, make_member().id)

    resized = evenement_service.set_capacity(evenement.id, new_total)

    assert resized.places_total == new_total
    assert resized.places_restantes == expected_remaining
    assert 0 <= resized.places_restantes <= resized.places_total


def test_set_capacity_below_one_is_rejected(evenement_service, make_evenement):
    with pytest.raises(InvalidInputError):
        evenement_service.set_capacity(make_evenement().id, 0)


def test_update_evenement_with_new_capacity(evenement_service, make_evenement, make_member):
    evenement = make_evenement(places_total=4)
    evenement_service.register(evenement.id, make_member().id)

    updated = evenement_service.update_evenement(
        evenement.id, EvenementUpdate(titre="AG extraordinaire", places_total=6)
    )

    assert updated.titre == "AG extraordinaire"
    assert updated.places_total == 6
    assert updated.places_restantes == 5


def test_update_evenement_null_clears_optional_fields(evenement_service):
    evenement = evenement_service.create_evenement(
        titre="Pique-nique",
        date_debut=datetime(2024, 7, 14, 12, 0),
        date_fin=datetime(2024, 7, 14, 17, 0),
        lieu="Parc",
        places_total=20,
        description="Apporter un plat"
    )

    updated = evenement_service.update_evenement(
        evenement.id, EvenementUpdate(description=None, date_fin=None)
    )

    assert updated.description is None
    assert updated.date_fin is None
    assert updated.titre == "Pique-nique"
    assert evenement_service.get_evenement(evenement.id).description is None


def test_update_evenement_rejects_null_title(evenement_service, make_evenement):
    evenement = make_evenement()
    with pytest.raises(InvalidInputError):
        evenement_service.update_evenement(evenement.id, EvenementUpdate(titre=None))


def test_list_events_filters_and_calendar(evenement_service, make_evenement):
    make_evenement(titre="Passé", date_debut=datetime(2024, 5, 1))
    make_evenement(titre="Juillet", date_debut=datetime(2024, 7, 10))
    make_evenement(titre="Brouillon", date_debut=datetime(2024, 7, 20), est_publie=False)

    upcoming = evenement_service.list_events(a_venir=True, est_publie=True)
    assert [e.titre for e in upcoming.items] == ["Juillet"]

    found = evenement_service.list_events(search="brouillon")
    assert found.total == 1

    calendar = evenement_service.get_calendar(7, 2024)
    assert [e.titre for e in calendar] == ["Juillet"]


def test_participants_and_member_registrations(evenement_service, make_evenement, make_member):
    evenement = make_evenement()
    alice = make_member()
    bob = make_member()
    evenement_service.register(evenement.id, alice.id)
    evenement_service.register(evenement.id, bob.id)
    evenement_service.cancel_registration(evenement.id, bob.id)

    participants = evenement_service.list_participants(evenement.id)
    assert [p.email for p in participants] == [alice.email]

    registrations = evenement_service.list_member_registrations(alice.id, upcoming_only=True)
    assert [(i.evenement_id, e.id) for i, e in registrations] == [(evenement.id, evenement.id)]


def test_deleting_member_releases_their_seat(evenement_service, member_service, make_evenement, make_member):
    evenement = make_evenement(places_total=2)
    member = make_member()
    evenement_service.register(evenement.id, member.id)

    member_service.delete_member(member.id)

    assert evenement_service.get_evenement(evenement.id).places_restantes == 2


def test_statistics(evenement_service, make_evenement, make_member):
    full = make_evenement(places_total=1)
    make_evenement(places_total=5)
    evenement_service.register(full.id, make_member().id)

    stats = evenement_service.get_statistics()

    assert stats == {"total": 2, "a_venir": 2, "complets": 1, "inscriptions_confirmees": 1}


def test_concurrent_registration_on_last_seat(database, make_evenement, make_member, clock):
    evenement = make_evenement(places_total=1)
    members = [make_member(), make_member()]
    barrier = threading.Barrier(len(members))
    outcomes = []

    def attempt(membre_id):
        # Une session par thread, comme une requête HTTP
        with database.session_scope() as db:
            member_repository = SQLAlchemyMemberRepository(db)
            service = EvenementService(
                SQLAlchemyEvenementRepository(db),
                SQLAlchemyInscriptionRepository(db),
                member_repository,
                clock=clock
            )
            barrier.wait()
            try:
                service.register(evenement.id, membre_id)
                outcomes.append("ok")
            except CapacityExceededError:
                outcomes.append("full")

    threads = [threading.Thread(target=attempt, args=(m.id,)) for m in members]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join(timeout=60)

    assert sorted(outcomes) == ["full", "ok"]
    with database.session_scope() as db:
        remaining = SQLAlchemyEvenementRepository(db).find_by_id(evenement.id).places_restantes
    assert remaining == 0
