"""Tests unitaires pour MemberService."""

from datetime import datetime
from typing import Dict, List, Optional

import pytest

from domain.entities import Member, MemberStatus, MemberUpdate, Role, normalize_email
from domain.errors import ConflictError, InvalidInputError, NotFoundError
from domain.repositories import MemberRepository
from infrastructure.security.password_hasher import PasswordHasher
from application.services.member_service import MemberService


class InMemoryMemberRepository(MemberRepository):
    """Implémentation en mémoire de MemberRepository pour les tests."""

    def __init__(self) -> None:
        self._members: List[Member] = []

    def find_by_id(self, member_id: str) -> Optional[Member]:
        return next((m for m in self._members if m.id == member_id), None)

    def find_by_email(self, email: str) -> Optional[Member]:
        return next((m for m in self._members if m.email == normalize_email(email)), None)

    def _filtered(self, search, statut, role) -> List[Member]:
        members = self._members
        if statut:
            members = [m for m in members if m.statut.value == statut]
        if role:
            members = [m for m in members if m.role.value == role]
        if search:
            term = search.lower()
            members = [m for m in members if term in f"{m.nom} {m.prenom} {m.email}".lower()]
        return members

    def find_all(self, page=1, limit=25, search=None, statut=None, role=None) -> List[Member]:
        start = (page - 1) * limit
        return self._filtered(search, statut, role)[start:start + limit]

    def count(self, search=None, statut=None, role=None) -> int:
        return len(self._filtered(search, statut, role))

    def count_by_status(self) -> Dict[str, int]:
        counts: Dict[str, int] = {}
        for member in self._members:
            counts[member.statut.value] = counts.get(member.statut.value, 0) + 1
        return counts

    def find_with_active_reset_token(self, now: datetime) -> List[Member]:
        return [
            m for m in self._members
            if m.reset_token_hash and m.reset_token_expires_at and m.reset_token_expires_at > now
        ]

    def save(self, member: Member) -> Member:
        if self.find_by_id(member.id):
            self._members = [member if m.id == member.id else m for m in self._members]
        else:
            self._members.append(member)
        return member

    def delete(self, member_id: str) -> None:
        self._members = [m for m in self._members if m.id != member_id]


@pytest.fixture
def repo():
    return InMemoryMemberRepository()


@pytest.fixture
def service(repo):
    return MemberService(repo, PasswordHasher(rounds=4), max_page_size=2)


def _create(service, email="jean.dupont@example.org", **kwargs):
    return service.create_member(nom="Dupont", prenom="Jean", email=email, password="Secret123", **kwargs)


def test_create_member_hashes_password_and_normalizes_email(service, repo):
    member = _create(service, email="  Jean.Dupont@Example.org ")

    assert member.email == "jean.dupont@example.org"
    assert member.hashed_password != "Secret123"
    assert service.password_hasher.verify("Secret123", member.hashed_password)
    assert member.role == Role.MEMBRE
    assert member.statut == MemberStatus.ACTIF
    assert repo.find_by_id(member.id) is not None


def test_create_member_duplicate_email_ignores_case(service):
    _create(service)

    with pytest.raises(ConflictError):
        _create(service, email="JEAN.DUPONT@example.org")


def test_create_member_rejects_short_password(service):
    with pytest.raises(InvalidInputError):
        service.create_member(nom="Dupont", prenom="Jean", email="j@example.org", password="court")


def test_create_member_rejects_empty_name(service):
    with pytest.raises(InvalidInputError):
        service.create_member(nom=" ", prenom="Jean", email="j@example.org", password="Secret123")


def test_update_member_partial(service):
    member = _create(service, telephone="0102030405")

    updated = service.update_member(member.id, MemberUpdate(statut=MemberStatus.BUREAU))

    assert updated.statut == MemberStatus.BUREAU
    assert updated.telephone == "0102030405"
    assert updated.nom == "Dupont"


def test_update_member_null_clears_phone_only(service):
    member = _create(service, telephone="0102030405")

    updated = service.update_member(member.id, MemberUpdate(telephone=None))
    assert updated.telephone is None

    with pytest.raises(InvalidInputError):
        service.update_member(member.id, MemberUpdate(nom=None))


def test_update_member_email_conflict(service):
    _create(service, email="a@example.org")
    other = _create(service, email="b@example.org")

    with pytest.raises(ConflictError):
        service.update_member(other.id, MemberUpdate(email="A@example.org"))

    # Changer la casse de son propre email n'est pas un conflit
    updated = service.update_member(other.id, MemberUpdate(email="B@Example.org"))
    assert updated.email == "b@example.org"


def test_update_member_password(service):
    member = _create(service)

    updated = service.update_member(member.id, MemberUpdate(password="NouveauMdp1"))

    assert service.password_hasher.verify("NouveauMdp1", updated.hashed_password)


def test_update_member_rejects_unknown_status(service):
    member = _create(service)
    with pytest.raises(InvalidInputError):
        service.update_member(member.id, MemberUpdate(statut="SUSPENDU"))


def test_get_and_delete_unknown_member(service):
    with pytest.raises(NotFoundError):
        service.get_member("inconnu")
    with pytest.raises(NotFoundError):
        service.delete_member("inconnu")


def test_list_members_caps_page_size_and_filters(service):
    _create(service, email="a@example.org")
    _create(service, email="b@example.org", statut=MemberStatus.INACTIF)
    _create(service, email="c@example.org", role=Role.ADMIN)

    page = service.list_members(page=1, limit=50)
    assert page.limit == 2
    assert page.total == 3
    assert page.total_pages == 2

    assert service.list_members(statut="INACTIF").total == 1
    assert service.list_members(role="ADMIN").total == 1
    assert service.list_members(search="c@").total == 1

    with pytest.raises(InvalidInputError):
        service.list_members(role="TRESORIER")


def test_statistics(service):
    _create(service, email="a@example.org")
    _create(service, email="b@example.org", statut=MemberStatus.BUREAU)

    stats = service.get_statistics()

    assert stats == {"ACTIF": 1, "INACTIF": 0, "BUREAU": 1, "total": 2}
