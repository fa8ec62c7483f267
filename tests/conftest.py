from __future__ import annotations

import itertools

import pytest

from lostfound_match.models import Item

_ids = itertools.count(1)


def make_item(**overrides) -> Item:
    values = {
        "id": f"item-{next(_ids)}",
        "type": "lost",
        "status": "active",
        "category": "other",
        "location": "Library",
        "date_occurred": "2024-01-10",
        "description": "",
    }
    values.update(overrides)
    return Item(**values)


@pytest.fixture
def item_factory():
    return make_item
