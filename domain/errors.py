"""
Erreurs métier - Types d'erreurs levées par les services applicatifs
"""


class DomainError(Exception):
    """Erreur métier de base"""

    code = "domain_error"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NotFoundError(DomainError):
    """L'entité référencée n'existe pas"""
    code = "not_found"


class InvalidInputError(DomainError, ValueError):
    """Champ invalide (format de période, montant négatif, ...)"""
    code = "invalid_input"


class ConflictError(DomainError):
    """Violation d'unicité (email, période, inscription active)"""
    code = "conflict"


class InvalidStateError(DomainError):
    """Opération impossible dans l'état actuel de l'entité"""
    code = "invalid_state"


class CapacityExceededError(DomainError):
    """Plus de places disponibles pour l'événement"""
    code = "capacity_exceeded"


class AuthenticationError(DomainError):
    """Identifiants ou token invalides"""
    code = "unauthorized"


class PermissionDeniedError(DomainError):
    """Compte désactivé ou rôle insuffisant"""
    code = "forbidden"


def coerce_enum(enum_cls, value):
    """Convertit une valeur brute en membre d'enum, en erreur métier si inconnue"""
    if isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(value)
    except ValueError:
        allowed = ", ".join(m.value for m in enum_cls)
        raise InvalidInputError(f"Invalid value '{value}': expected one of {allowed}")
