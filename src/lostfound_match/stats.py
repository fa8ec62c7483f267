from __future__ import annotations

from collections import Counter
from dataclasses import dataclass
from datetime import datetime, timezone

from .config import StatsConfig
from .models import Item


@dataclass(slots=True)
class RegistryStats:
    total: int
    lost: int
    found: int
    active: int
    resolved: int
    with_reward: int
    total_reward: float
    success_rate: int
    top_categories: list[tuple[str, int]]
    top_locations: list[tuple[str, int]]
    recent: list[Item]


def compute_stats(items: list[Item], config: StatsConfig | None = None) -> RegistryStats:
    """Summarize the registry the way the dashboard shows it."""
    config = config or StatsConfig()
    total = len(items)
    resolved = sum(1 for item in items if item.status == "resolved")
    rewarded = [item.reward for item in items if item.reward]

    categories = Counter(item.category for item in items)
    locations = Counter(item.location.lower() for item in items)
    recent = sorted(items, key=_reported_sort_key, reverse=True)[: config.recent]

    return RegistryStats(
        total=total,
        lost=sum(1 for item in items if item.type == "lost"),
        found=sum(1 for item in items if item.type == "found"),
        active=sum(1 for item in items if item.status == "active"),
        resolved=resolved,
        with_reward=sum(1 for reward in rewarded if reward > 0),
        total_reward=float(sum(rewarded)),
        success_rate=_percent(resolved, total),
        top_categories=categories.most_common(config.top_categories),
        top_locations=locations.most_common(config.top_locations),
        recent=recent,
    )


def _percent(part: int, total: int) -> int:
    if total <= 0:
        return 0
    # half rounds up
    return int(part * 100 / total + 0.5)


def _reported_sort_key(item: Item) -> tuple[int, datetime]:
    if item.date_reported:
        try:
            reported = datetime.fromisoformat(item.date_reported)
        except ValueError:
            return (0, datetime.min.replace(tzinfo=timezone.utc))
        if reported.tzinfo is None:
            reported = reported.replace(tzinfo=timezone.utc)
        return (1, reported)
    return (0, datetime.min.replace(tzinfo=timezone.utc))
