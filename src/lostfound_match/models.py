from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime

ITEM_TYPES = ("lost", "found")
ITEM_STATUSES = ("active", "resolved", "expired")
CATEGORIES = (
    "electronics",
    "jewelry",
    "clothing",
    "bags",
    "keys",
    "documents",
    "pets",
    "books",
    "sports",
    "other",
)


class InvalidItemData(ValueError):
    """An item that cannot take part in matching."""

    def __init__(self, item_id: str | None, field_name: str, message: str) -> None:
        self.item_id = item_id
        self.field = field_name
        self.message = message
        super().__init__(f"item {item_id or '<unknown>'}: {field_name}: {message}")


@dataclass(slots=True)
class Item:
    id: str
    type: str
    status: str
    category: str
    location: str
    date_occurred: str | date | datetime
    description: str
    title: str = ""
    date_reported: str | None = None
    contact_name: str | None = None
    contact_email: str | None = None
    contact_phone: str | None = None
    image_url: str | None = None
    tags: list[str] = field(default_factory=list)
    reward: float | None = None
    matches: list[str] = field(default_factory=list)

    @property
    def is_active(self) -> bool:
        return self.status == "active"


@dataclass(slots=True, eq=False)
class MatchCandidate:
    lost: Item
    found: Item
    score: int
    reasons: list[str]

    @property
    def key(self) -> tuple[str, str]:
        return (self.lost.id, self.found.id)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, MatchCandidate):
            return NotImplemented
        return self.key == other.key

    def __hash__(self) -> int:
        return hash(self.key)
