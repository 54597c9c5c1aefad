"""
assocly-api/api/schemas.py
Schémas Pydantic pour la validation et la sérialisation
"""

import re
from datetime import datetime
from decimal import Decimal
from typing import Optional, List, Dict
from pydantic import BaseModel, Field, computed_field, field_serializer, field_validator

from domain.entities import (
    Role, MemberStatus, DuesStatus, PaymentMode, RegistrationStatus
)
from domain.entities.cotisation import to_naive_utc


def _check_password_strength(value: str) -> str:
    """8 caractères minimum, avec au moins une minuscule, une majuscule et un chiffre"""
    if len(value) < 8:
        raise ValueError("Password must contain at least 8 characters")
    if not re.search(r"[a-z]", value) or not re.search(r"[A-Z]", value) or not re.search(r"\d", value):
        raise ValueError("Password must contain a lowercase letter, an uppercase letter and a digit")
    return value


EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


def _check_email(value: Optional[str]) -> Optional[str]:
    if value is not None and not EMAIL_PATTERN.match(value.strip()):
        raise ValueError("Invalid email address")
    return value.strip().lower() if value is not None else None


def _iso(dt: Optional[datetime]) -> Optional[str]:
    return dt.isoformat() if dt is not None else None


class PageMixin(BaseModel):
    total: int
    page: int
    limit: int
    total_pages: int


class MessageResponse(BaseModel):
    message: str

# ============================================================================
# AUTHENTIFICATION
# ============================================================================

class Token(BaseModel):
    access_token: str
    token_type: str = "bearer"


class LoginRequest(BaseModel):
    email: str = Field(..., max_length=255)
    password: str


class RegisterRequest(BaseModel):
    """Inscription libre d'un nouveau membre"""
    nom: str = Field(..., min_length=1, max_length=100)
    prenom: str = Field(..., min_length=1, max_length=100)
    email: str = Field(..., max_length=255)
    password: str
    telephone: Optional[str] = Field(None, max_length=30)

    @field_validator('email')
    @classmethod
    def validate_email(cls, value):
        return _check_email(value)

    @field_validator('password')
    @classmethod
    def validate_password(cls, value: str) -> str:
        return _check_password_strength(value)


class ChangePasswordRequest(BaseModel):
    ancien_mot_de_passe: str
    nouveau_mot_de_passe: str

    @field_validator('nouveau_mot_de_passe')
    @classmethod
    def validate_password(cls, value: str) -> str:
        return _check_password_strength(value)


class ForgotPasswordRequest(BaseModel):
    email: str = Field(..., max_length=255)

    @field_validator('email')
    @classmethod
    def validate_email(cls, value):
        return _check_email(value)


class ResetPasswordRequest(BaseModel):
    token: str = Field(..., min_length=1)
    nouveau_mot_de_passe: str

    @field_validator('nouveau_mot_de_passe')
    @classmethod
    def validate_password(cls, value: str) -> str:
        return _check_password_strength(value)

# ============================================================================
# MEMBRES
# ============================================================================

class MembreCreate(BaseModel):
    """Création d'un membre par un administrateur"""
    nom: str = Field(..., min_length=1, max_length=100)
    prenom: str = Field(..., min_length=1, max_length=100)
    email: str = Field(..., max_length=255)
    password: str
    telephone: Optional[str] = Field(None, max_length=30)
    role: Role = Role.MEMBRE
    statut: MemberStatus = MemberStatus.ACTIF

    @field_validator('email')
    @classmethod
    def validate_email(cls, value):
        return _check_email(value)

    @field_validator('password')
    @classmethod
    def validate_password(cls, value: str) -> str:
        return _check_password_strength(value)


class MembreUpdate(BaseModel):
    nom: Optional[str] = Field(None, min_length=1, max_length=100)
    prenom: Optional[str] = Field(None, min_length=1, max_length=100)
    email: Optional[str] = Field(None, max_length=255)
    telephone: Optional[str] = Field(None, max_length=30)
    role: Optional[Role] = None
    statut: Optional[MemberStatus] = None
    password: Optional[str] = None

    @field_validator('email')
    @classmethod
    def validate_email(cls, value):
        return _check_email(value)

    @field_validator('password')
    @classmethod
    def validate_password(cls, value: Optional[str]) -> Optional[str]:
        return _check_password_strength(value) if value is not None else None


class MembreResponse(BaseModel):
    id: str
    nom: str
    prenom: str
    email: str
    telephone: Optional[str] = None
    role: Role
    statut: MemberStatus
    created_at: Optional[datetime] = None

    @field_serializer('created_at')
    def serialize_created_at(self, dt: Optional[datetime], _info):
        return _iso(dt)

    class Config:
        from_attributes = True


class MembrePage(PageMixin):
    items: List[MembreResponse]


class LoginResponse(Token):
    membre: MembreResponse


class MembreStatistics(BaseModel):
    total: int
    ACTIF: int = 0
    INACTIF: int = 0
    BUREAU: int = 0

# ============================================================================
# COTISATIONS
# ============================================================================

class CotisationCreate(BaseModel):
    """Enregistrement d'un paiement de cotisation"""
    membre_id: str
    date_paiement: datetime
    montant: Decimal = Field(..., gt=0, max_digits=10, decimal_places=2)
    mode_paiement: PaymentMode
    periode: Optional[str] = Field(None, description="Période couverte, format MM/YYYY")
    date_expiration: Optional[datetime] = None
    statut: Optional[DuesStatus] = None
    notes: Optional[str] = None

    @field_validator('date_paiement')
    @classmethod
    def validate_date_paiement(cls, value: datetime) -> datetime:
        if to_naive_utc(value) > datetime.utcnow():
            raise ValueError("Payment date cannot be in the future")
        return value


class CotisationUpdate(BaseModel):
    date_paiement: Optional[datetime] = None
    montant: Optional[Decimal] = Field(None, gt=0, max_digits=10, decimal_places=2)
    mode_paiement: Optional[PaymentMode] = None
    periode: Optional[str] = None
    date_expiration: Optional[datetime] = None
    statut: Optional[DuesStatus] = None
    notes: Optional[str] = None

    @field_validator('date_paiement')
    @classmethod
    def validate_date_paiement(cls, value: Optional[datetime]) -> Optional[datetime]:
        if value is not None and to_naive_utc(value) > datetime.utcnow():
            raise ValueError("Payment date cannot be in the future")
        return value


class CotisationResponse(BaseModel):
    id: str
    membre_id: str
    date_paiement: datetime
    montant: Decimal
    mode_paiement: PaymentMode
    date_expiration: datetime
    statut: DuesStatus
    periode: Optional[str] = None
    notes: Optional[str] = None
    created_at: Optional[datetime] = None

    @field_serializer('date_paiement', 'date_expiration', 'created_at')
    def serialize_dates(self, dt: Optional[datetime], _info):
        return _iso(dt)

    class Config:
        from_attributes = True


class CotisationPage(PageMixin):
    items: List[CotisationResponse]


class MemberDuesStatusResponse(BaseModel):
    statut: str
    message: str
    cotisation: Optional[CotisationResponse] = None
    jours_restants: int = 0

    class Config:
        from_attributes = True


class CotisationStatistics(BaseModel):
    total: int
    a_jour: int
    expirees: int
    en_attente: int
    cotisations_mois: int
    montant_mois: Decimal
    par_mode: Dict[str, int]

# ============================================================================
# ÉVÉNEMENTS
# ============================================================================

class EvenementCreate(BaseModel):
    titre: str = Field(..., min_length=1, max_length=200)
    description: Optional[str] = None
    date_debut: datetime
    date_fin: Optional[datetime] = None
    lieu: str = Field(..., min_length=1, max_length=255)
    places_total: int = Field(..., ge=1)
    est_publie: bool = True


class EvenementUpdate(BaseModel):
    titre: Optional[str] = Field(None, min_length=1, max_length=200)
    description: Optional[str] = None
    date_debut: Optional[datetime] = None
    date_fin: Optional[datetime] = None
    lieu: Optional[str] = Field(None, min_length=1, max_length=255)
    places_total: Optional[int] = Field(None, ge=1)
    est_publie: Optional[bool] = None


class CapacityUpdate(BaseModel):
    places_total: int = Field(..., ge=1)


class EvenementResponse(BaseModel):
    id: str
    titre: str
    description: Optional[str] = None
    date_debut: datetime
    date_fin: Optional[datetime] = None
    lieu: str
    places_total: int
    places_restantes: int
    est_publie: bool
    createur_id: Optional[str] = None
    created_at: Optional[datetime] = None

    @computed_field
    @property
    def places_utilisees(self) -> int:
        return self.places_total - self.places_restantes

    @field_serializer('date_debut', 'date_fin', 'created_at')
    def serialize_dates(self, dt: Optional[datetime], _info):
        return _iso(dt)

    class Config:
        from_attributes = True


class EvenementPage(PageMixin):
    items: List[EvenementResponse]


class InscriptionResponse(BaseModel):
    id: str
    membre_id: str
    evenement_id: str
    statut: RegistrationStatus
    date_inscription: Optional[datetime] = None

    @field_serializer('date_inscription')
    def serialize_date_inscription(self, dt: Optional[datetime], _info):
        return _iso(dt)

    class Config:
        from_attributes = True


class ParticipantResponse(BaseModel):
    membre_id: str
    nom: str
    prenom: str
    email: str
    telephone: Optional[str] = None
    statut: RegistrationStatus
    date_inscription: Optional[datetime] = None

    @field_serializer('date_inscription')
    def serialize_date_inscription(self, dt: Optional[datetime], _info):
        return _iso(dt)

    class Config:
        from_attributes = True


class MemberRegistrationResponse(BaseModel):
    inscription: InscriptionResponse
    evenement: EvenementResponse


class EvenementStatistics(BaseModel):
    total: int
    a_venir: int
    complets: int
    inscriptions_confirmees: int

# ============================================================================
# MAINTENANCE
# ============================================================================

class SweepResponse(BaseModel):
    expired: int


class ReminderReport(BaseModel):
    total: int
    sent: int
    failed: int
    skipped: int
    events: Optional[int] = None
