from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from datetime import date, datetime, timezone
from typing import Iterable

from .models import InvalidItemData, Item, MatchCandidate

logger = logging.getLogger(__name__)

MIN_SCORE = 30
CATEGORY_WEIGHT = 40
LOCATION_WEIGHT = 30
# (max days apart, points); first bracket that fits wins
DATE_BRACKETS = ((1, 20), (3, 15), (7, 10), (14, 5))
TIMELINE_REASON_DAYS = 7
TOKEN_MIN_LENGTH = 4
TOKEN_POINTS = 2
DESCRIPTION_CAP = 10

_SECONDS_PER_DAY = 86400


@dataclass(slots=True)
class PairSignals:
    category_match: bool
    location_match: bool
    days_diff: float
    common_tokens: int


@dataclass(slots=True)
class Evaluation:
    lost: Item
    found: Item
    score: int
    reasons: list[str]
    reason: str | None


@dataclass(slots=True)
class MatchResult:
    matches: list[MatchCandidate]
    invalid: list[InvalidItemData]
    evaluations: list[Evaluation]
    lost_count: int
    found_count: int


def score_pair(lost: Item, found: Item) -> int:
    signals = _signals(lost, found, parse_date(lost), parse_date(found))
    return _score(signals)


def find_matches(items: Iterable[Item], *, strict: bool = False) -> list[MatchCandidate]:
    return match_items(items, strict=strict).matches


def match_items(
    items: Iterable[Item], *, strict: bool = False, explain: bool = False
) -> MatchResult:
    """Score every active (lost, found) pair and rank the ones worth showing.

    Items whose ``date_occurred`` does not parse are dropped from both sides
    and reported in ``MatchResult.invalid``; with ``strict`` the error is
    raised instead.
    """
    items = list(items)
    invalid: list[InvalidItemData] = []
    lost_candidates = _candidates(items, "lost", strict, invalid)
    found_candidates = _candidates(items, "found", strict, invalid)

    matches: list[MatchCandidate] = []
    evaluations: list[Evaluation] = []

    for lost, lost_at in lost_candidates:
        for found, found_at in found_candidates:
            signals = _signals(lost, found, lost_at, found_at)
            score = _score(signals)
            admitted = score >= MIN_SCORE
            if not admitted and not explain:
                continue
            reasons = _reasons(lost, signals)
            if admitted:
                matches.append(
                    MatchCandidate(lost=lost, found=found, score=score, reasons=reasons)
                )
            if explain:
                evaluations.append(
                    Evaluation(
                        lost=lost,
                        found=found,
                        score=score,
                        reasons=reasons,
                        reason=None if admitted else f"score<{MIN_SCORE}",
                    )
                )

    matches.sort(key=lambda match: match.score, reverse=True)
    logger.debug(
        "scored %d lost x %d found, %d matches",
        len(lost_candidates),
        len(found_candidates),
        len(matches),
    )
    return MatchResult(
        matches=matches,
        invalid=invalid,
        evaluations=evaluations,
        lost_count=len(lost_candidates),
        found_count=len(found_candidates),
    )


def parse_date(item: Item) -> datetime:
    """Return ``item.date_occurred`` as an aware UTC instant.

    Plain dates become midnight; naive datetimes are read as UTC.
    """
    value = item.date_occurred
    if isinstance(value, datetime):
        moment = value
    elif isinstance(value, date):
        moment = datetime(value.year, value.month, value.day)
    elif isinstance(value, str) and value.strip():
        try:
            moment = datetime.fromisoformat(value.strip())
        except ValueError as exc:
            raise InvalidItemData(item.id, "date_occurred", f"unparsable date {value!r}") from exc
    else:
        raise InvalidItemData(item.id, "date_occurred", f"unparsable date {value!r}")

    if moment.tzinfo is None:
        return moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(timezone.utc)


def _candidates(
    items: list[Item], item_type: str, strict: bool, invalid: list[InvalidItemData]
) -> list[tuple[Item, datetime]]:
    candidates: list[tuple[Item, datetime]] = []
    for item in items:
        if item.type != item_type or not item.is_active:
            continue
        try:
            occurred = parse_date(item)
        except InvalidItemData as exc:
            if strict:
                raise
            logger.info("skipping %s item %s: %s", item_type, item.id, exc.message)
            invalid.append(exc)
            continue
        candidates.append((item, occurred))
    return candidates


def _signals(lost: Item, found: Item, lost_at: datetime, found_at: datetime) -> PairSignals:
    lost_location = lost.location.lower()
    found_location = found.location.lower()
    return PairSignals(
        category_match=lost.category == found.category,
        location_match=found_location in lost_location or lost_location in found_location,
        days_diff=abs((lost_at - found_at).total_seconds()) / _SECONDS_PER_DAY,
        common_tokens=_common_tokens(lost.description, found.description),
    )


def _common_tokens(lost_description: str, found_description: str) -> int:
    lost_tokens = lost_description.lower().split()
    found_tokens = set(found_description.lower().split())
    return sum(
        1
        for token in lost_tokens
        if _utf16_length(token) >= TOKEN_MIN_LENGTH and token in found_tokens
    )


def _utf16_length(token: str) -> int:
    # stored descriptions are measured in UTF-16 code units, so astral characters count twice
    return len(token.encode("utf-16-le")) // 2


def _score(signals: PairSignals) -> int:
    score = 0
    if signals.category_match:
        score += CATEGORY_WEIGHT
    if signals.location_match:
        score += LOCATION_WEIGHT
    for max_days, points in DATE_BRACKETS:
        if signals.days_diff <= max_days:
            score += points
            break
    score += min(signals.common_tokens * TOKEN_POINTS, DESCRIPTION_CAP)
    return score


def _reasons(lost: Item, signals: PairSignals) -> list[str]:
    reasons: list[str] = []
    if signals.category_match:
        reasons.append(f"Same category: {lost.category}")
    if signals.location_match:
        reasons.append("Similar locations")
    if signals.days_diff <= TIMELINE_REASON_DAYS:
        # half-days round up
        days = math.floor(signals.days_diff + 0.5)
        reasons.append(f"Timeline match ({days} days apart)")
    return reasons
