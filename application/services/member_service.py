"""
MemberService - Service applicatif pour la gestion des membres
"""

import logging
import uuid
from dataclasses import replace
from datetime import datetime
from typing import Dict, Optional

from domain.entities import Member, MemberUpdate, MemberStatus, Role, normalize_email
from domain.errors import ConflictError, InvalidInputError, NotFoundError, coerce_enum
from domain.repositories import MemberRepository
from application.services.pagination import Page, normalize_pagination
from infrastructure.security.password_hasher import PasswordHasher

logger = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 8


def validate_password(password: str) -> None:
    if not password or len(password) < MIN_PASSWORD_LENGTH:
        raise InvalidInputError(f"Password must contain at least {MIN_PASSWORD_LENGTH} characters")


class MemberService:
    """Service pour la gestion des membres"""

    def __init__(self, member_repository: MemberRepository, password_hasher: PasswordHasher, max_page_size: int = 100):
        self.member_repository = member_repository
        self.password_hasher = password_hasher
        self.max_page_size = max_page_size

    def create_member(
        self,
        nom: str,
        prenom: str,
        email: str,
        password: str,
        telephone: Optional[str] = None,
        role: Role = Role.MEMBRE,
        statut: MemberStatus = MemberStatus.ACTIF
    ) -> Member:
        """Crée un membre (email unique sans tenir compte de la casse)"""
        if self.member_repository.find_by_email(email):
            raise ConflictError(f"A member with email '{normalize_email(email)}' already exists")
        validate_password(password)

        member = Member(
            id=str(uuid.uuid4()),
            nom=nom.strip() if nom else nom,
            prenom=prenom.strip() if prenom else prenom,
            email=email,
            hashed_password=self.password_hasher.hash(password),
            role=role,
            statut=statut,
            telephone=telephone,
            created_at=datetime.utcnow()
        )

        saved = self.member_repository.save(member)
        logger.info(f"✅ Membre créé : {saved.full_name} ({saved.email})")
        return saved

    def get_member(self, member_id: str) -> Member:
        """Récupère un membre par son ID"""
        member = self.member_repository.find_by_id(member_id)
        if not member:
            raise NotFoundError(f"Member '{member_id}' not found")
        return member

    def get_member_by_email(self, email: str) -> Optional[Member]:
        return self.member_repository.find_by_email(email)

    def list_members(
        self,
        page: int = 1,
        limit: int = 25,
        search: Optional[str] = None,
        statut: Optional[str] = None,
        role: Optional[str] = None
    ) -> Page:
        """Liste paginée des membres"""
        page, limit = normalize_pagination(page, limit, self.max_page_size)
        if statut:
            statut = coerce_enum(MemberStatus, statut).value
        if role:
            role = coerce_enum(Role, role).value

        items = self.member_repository.find_all(page=page, limit=limit, search=search, statut=statut, role=role)
        total = self.member_repository.count(search=search, statut=statut, role=role)
        return Page(items=items, total=total, page=page, limit=limit)

    def update_member(self, member_id: str, changes: MemberUpdate) -> Member:
        """Met à jour un membre (champs fournis uniquement)"""
        member = self.get_member(member_id)
        updates = changes.supplied()

        if "email" in updates:
            updates["email"] = normalize_email(updates["email"])
            if updates["email"] != member.email:
                existing = self.member_repository.find_by_email(updates["email"])
                if existing and existing.id != member.id:
                    raise ConflictError(f"A member with email '{updates['email']}' already exists")

        password = updates.pop("password", None)
        if password is not None:
            validate_password(password)
            updates["hashed_password"] = self.password_hasher.hash(password)

        # replace() revalide l'entité (noms vides, enums inconnus)
        member = replace(member, **updates)

        saved = self.member_repository.save(member)
        logger.info(f"Membre mis à jour : {saved.id} ({', '.join(sorted(updates)) or 'aucun champ'})")
        return saved

    def delete_member(self, member_id: str) -> None:
        """Supprime un membre avec ses cotisations et inscriptions"""
        member = self.get_member(member_id)
        self.member_repository.delete(member.id)
        logger.info(f"🗑️ Membre supprimé : {member.full_name} ({member.email})")

    def get_statistics(self) -> Dict[str, int]:
        """Nombre de membres par statut"""
        by_status = self.member_repository.count_by_status()
        stats = {status.value: by_status.get(status.value, 0) for status in MemberStatus}
        stats["total"] = sum(by_status.values())
        return stats
