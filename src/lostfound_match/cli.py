from __future__ import annotations

import argparse
import json
import logging
import sys
from dataclasses import dataclass

from .config import AppConfig, config_path, load_config
from .items import collect_items
from .matcher import Evaluation, match_items
from .models import InvalidItemData, Item, MatchCandidate
from .stats import RegistryStats, compute_stats


@dataclass(slots=True)
class RunSummary:
    total_items: int
    lost: int
    found: int
    matches: list[MatchCandidate]
    invalid: list[InvalidItemData]
    errors: list[str]
    evaluations: list[dict]
    stats: RegistryStats | None


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        prog="lostfound-match", description="Pair lost and found item reports"
    )
    parser.add_argument("--config", help="Path to config.toml")
    parser.add_argument("--items", help="Items JSON file or http(s) URL")
    parser.add_argument(
        "--strict", action="store_true", help="Abort on items with invalid data"
    )
    parser.add_argument("--explain", action="store_true", help="Explain every scored pair")
    parser.add_argument("--stats", action="store_true", help="Print registry statistics")
    parser.add_argument("--json", action="store_true", help="Print results as JSON")
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")
    args = parser.parse_args(argv)

    config = load_config(config_path(args.config))
    if args.items:
        if args.items.startswith(("http://", "https://")):
            config.source.url = args.items
        else:
            config.source.url = None
            config.source.path = args.items
    if args.strict:
        config.match.strict = True
    if args.explain:
        config.match.explain = True

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else config.log_level,
        format="%(levelname)s %(name)s: %(message)s",
    )

    try:
        summary = run(config, with_stats=args.stats)
    except InvalidItemData as exc:
        print(f"Invalid item data: {exc}", file=sys.stderr)
        return 2

    if config.show_warnings and (summary.errors or summary.invalid):
        print("Warnings:", file=sys.stderr)
        for error in summary.errors:
            print(f"- {error}", file=sys.stderr)
        for invalid in summary.invalid:
            print(f"- skipped {invalid}", file=sys.stderr)

    if args.json:
        print(json.dumps(_as_payload(summary), indent=2))
        return 0

    for match in summary.matches:
        print(_format_match(match))
    for payload in summary.evaluations:
        print(json.dumps(payload, indent=2))
    if summary.stats is not None:
        print(_format_stats(summary.stats))

    print(
        "Matching complete: "
        f"items={summary.total_items} "
        f"lost={summary.lost} "
        f"found={summary.found} "
        f"matches={len(summary.matches)} "
        f"invalid={len(summary.invalid)}"
    )
    return 0


def run(config: AppConfig, with_stats: bool = False) -> RunSummary:
    items, errors = collect_items(config)
    result = match_items(items, strict=config.match.strict, explain=config.match.explain)

    return RunSummary(
        total_items=len(items),
        lost=result.lost_count,
        found=result.found_count,
        matches=result.matches,
        invalid=result.invalid,
        errors=errors,
        evaluations=_explain(result.evaluations),
        stats=compute_stats(items, config.stats) if with_stats else None,
    )


def _format_match(match: MatchCandidate) -> str:
    reasons = "; ".join(match.reasons)
    return (
        f"- [{match.score}] lost {match.lost.id} {_label(match.lost)} "
        f"<-> found {match.found.id} {_label(match.found)} [{reasons}]"
    )


def _label(item: Item) -> str:
    return f'"{item.title}"' if item.title else f"({item.category})"


def _format_stats(stats: RegistryStats) -> str:
    categories = ", ".join(f"{name}={count}" for name, count in stats.top_categories)
    locations = ", ".join(f"{name}={count}" for name, count in stats.top_locations)
    return (
        f"Registry: total={stats.total} lost={stats.lost} found={stats.found} "
        f"active={stats.active} resolved={stats.resolved} "
        f"success={stats.success_rate}% rewards={stats.with_reward} "
        f"reward_total={stats.total_reward:g}\n"
        f"Top categories: {categories or '-'}\n"
        f"Top locations: {locations or '-'}"
    )


def _explain(evaluations: list[Evaluation]) -> list[dict]:
    return [
        {
            "lost_id": evaluation.lost.id,
            "found_id": evaluation.found.id,
            "score": evaluation.score,
            "reasons": evaluation.reasons,
            "reason": evaluation.reason or "matched",
        }
        for evaluation in evaluations
    ]


def _match_payload(match: MatchCandidate) -> dict:
    return {
        "lost_id": match.lost.id,
        "found_id": match.found.id,
        "lost_title": match.lost.title,
        "found_title": match.found.title,
        "score": match.score,
        "reasons": match.reasons,
    }


def _as_payload(summary: RunSummary) -> dict:
    payload: dict = {
        "items": summary.total_items,
        "lost": summary.lost,
        "found": summary.found,
        "matches": [_match_payload(match) for match in summary.matches],
        "invalid": [
            {"id": invalid.item_id, "field": invalid.field, "message": invalid.message}
            for invalid in summary.invalid
        ],
        "errors": summary.errors,
    }
    if summary.evaluations:
        payload["evaluations"] = summary.evaluations
    if summary.stats is not None:
        stats = summary.stats
        payload["stats"] = {
            "total": stats.total,
            "lost": stats.lost,
            "found": stats.found,
            "active": stats.active,
            "resolved": stats.resolved,
            "with_reward": stats.with_reward,
            "total_reward": stats.total_reward,
            "success_rate": stats.success_rate,
            "top_categories": [list(entry) for entry in stats.top_categories],
            "top_locations": [list(entry) for entry in stats.top_locations],
            "recent": [item.id for item in stats.recent],
        }
    return payload


if __name__ == "__main__":
    sys.exit(main())
