"""
Pagination des listes retournées par les services
"""

import math
from dataclasses import dataclass, field
from typing import List, Tuple

from domain.errors import InvalidInputError


@dataclass
class Page:
    """Une page de résultats"""
    items: List = field(default_factory=list)
    total: int = 0
    page: int = 1
    limit: int = 25

    @property
    def total_pages(self) -> int:
        return math.ceil(self.total / self.limit) if self.limit else 0


def normalize_pagination(page: int, limit: int, max_limit: int = 100) -> Tuple[int, int]:
    """Valide le numéro de page et borne la taille de page"""
    if page < 1:
        raise InvalidInputError("Page number must be >= 1")
    if limit < 1:
        raise InvalidInputError("Page size must be >= 1")
    return page, min(limit, max_limit)
