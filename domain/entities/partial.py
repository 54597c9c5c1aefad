"""
Modifications partielles

UNSET marque un champ absent de la requête ; None sur un champ NULLABLE
vide la valeur existante.
"""

from dataclasses import fields
from typing import Any, Dict, Iterable

from domain.errors import InvalidInputError


class _Unset:
    def __repr__(self) -> str:
        return "UNSET"

    def __bool__(self) -> bool:
        return False


UNSET: Any = _Unset()


def supplied_fields(changes, nullable: Iterable[str] = ()) -> Dict[str, Any]:
    """Champs fournis ; None n'est accepté que pour les champs effaçables"""
    updates = {
        f.name: getattr(changes, f.name)
        for f in fields(changes)
        if getattr(changes, f.name) is not UNSET
    }
    for name, value in updates.items():
        if value is None and name not in nullable:
            raise InvalidInputError(f"Field '{name}' cannot be null")
    return updates
