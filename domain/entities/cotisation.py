"""
Entité Cotisation - Modèle métier pour les cotisations (dues)

Toute la dérivation date d'expiration / statut passe par ce module :
la création, la mise à jour et le balayage périodique utilisent
les mêmes fonctions.
"""

import calendar
import math
import re
from datetime import date, datetime, time, timezone
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, Optional, Tuple, Union
from dataclasses import dataclass
from enum import Enum

from dateutil.relativedelta import relativedelta

from domain.errors import InvalidInputError, coerce_enum
from domain.entities.partial import UNSET, supplied_fields

PERIODE_PATTERN = re.compile(r"^(0[1-9]|1[0-2])/(\d{4})$")

DateLike = Union[date, datetime]


class DuesStatus(str, Enum):
    """Statut d'une cotisation"""
    A_JOUR = "A_JOUR"
    EXPIRE = "EXPIRE"
    EN_ATTENTE = "EN_ATTENTE"


class PaymentMode(str, Enum):
    """Mode de paiement d'une cotisation"""
    ESPECES = "ESPECES"
    CHEQUE = "CHEQUE"
    VIREMENT = "VIREMENT"
    CARTE_BANCAIRE = "CARTE_BANCAIRE"


def to_naive_utc(value: DateLike) -> datetime:
    """Normalise une date (ou datetime, avec ou sans fuseau) en datetime UTC naïf"""
    if isinstance(value, datetime):
        if value.tzinfo is not None:
            return value.astimezone(timezone.utc).replace(tzinfo=None)
        return value
    return datetime.combine(value, time.min)


def parse_periode(periode: str) -> Tuple[int, int]:
    """Parse une période 'MM/YYYY' et retourne (mois, année)"""
    match = PERIODE_PATTERN.match(periode or "")
    if not match:
        raise InvalidInputError(f"Invalid period '{periode}': expected MM/YYYY")
    return int(match.group(1)), int(match.group(2))


def end_of_periode(periode: str) -> datetime:
    """Dernier instant du dernier jour du mois de la période"""
    month, year = parse_periode(periode)
    last_day = calendar.monthrange(year, month)[1]
    return datetime.combine(date(year, month, last_day), time.max)


def resolve_expiration(
    date_paiement: DateLike,
    periode: Optional[str] = None,
    date_expiration: Optional[DateLike] = None
) -> datetime:
    """
    Calcule la date d'expiration, par ordre de priorité :
    date explicite, fin du mois de la période, date de paiement + 1 an.
    """
    if date_expiration is not None:
        return to_naive_utc(date_expiration)
    if periode:
        return end_of_periode(periode)
    return to_naive_utc(date_paiement) + relativedelta(years=1)


def is_expired(date_expiration: datetime, now: datetime) -> bool:
    """Une cotisation est expirée dès que son expiration est strictement passée"""
    return date_expiration < now


def derive_status(date_expiration: datetime, now: datetime) -> DuesStatus:
    return DuesStatus.EXPIRE if is_expired(date_expiration, now) else DuesStatus.A_JOUR


def days_remaining(date_expiration: datetime, now: datetime) -> int:
    """Nombre de jours restants (arrondi supérieur), 0 si expirée"""
    if is_expired(date_expiration, now):
        return 0
    return math.ceil((date_expiration - now).total_seconds() / 86400)


def to_amount(value) -> Decimal:
    try:
        amount = Decimal(str(value))
    except (InvalidOperation, TypeError, ValueError):
        raise InvalidInputError(f"Invalid amount: '{value}'")
    if not amount.is_finite() or amount <= 0:
        raise InvalidInputError("Amount must be a positive number")
    return amount.quantize(Decimal("0.01"))


@dataclass
class Cotisation:
    """Entité Cotisation du domaine"""
    id: str
    membre_id: str
    date_paiement: datetime
    montant: Decimal
    mode_paiement: PaymentMode
    date_expiration: datetime
    statut: DuesStatus = DuesStatus.A_JOUR
    notes: Optional[str] = None
    periode: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    def __post_init__(self):
        """Validation de l'entité"""
        if not self.membre_id:
            raise InvalidInputError("Dues record must belong to a member")
        self.montant = to_amount(self.montant)
        self.mode_paiement = coerce_enum(PaymentMode, self.mode_paiement)
        self.statut = coerce_enum(DuesStatus, self.statut)
        if self.periode:
            parse_periode(self.periode)
        else:
            self.periode = None

    def is_expired(self, now: datetime) -> bool:
        return is_expired(self.date_expiration, now)

    def days_remaining(self, now: datetime) -> int:
        return days_remaining(self.date_expiration, now)


@dataclass
class CotisationUpdate:
    """
    Modification partielle d'une cotisation.

    UNSET = champ inchangé. None efface la période et les notes ; sur
    date_expiration il retire la date explicite (recalcul).
    """
    date_paiement: Optional[datetime] = UNSET
    montant: Optional[Decimal] = UNSET
    mode_paiement: Optional[PaymentMode] = UNSET
    periode: Optional[str] = UNSET
    date_expiration: Optional[datetime] = UNSET
    statut: Optional[DuesStatus] = UNSET
    notes: Optional[str] = UNSET

    DATE_FIELDS = ("date_paiement", "periode", "date_expiration")
    NULLABLE = ("periode", "date_expiration", "notes")

    def supplied(self) -> Dict[str, Any]:
        return supplied_fields(self, self.NULLABLE)

    def touches_dates(self) -> bool:
        return any(getattr(self, name) is not UNSET for name in self.DATE_FIELDS)
