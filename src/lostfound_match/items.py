from __future__ import annotations

import json
import time
from pathlib import Path
from typing import Any

import httpx

from .config import AppConfig
from .models import ITEM_STATUSES, ITEM_TYPES, InvalidItemData, Item

_RETRY_STATUSES = {429, 500, 502, 503, 504}


def collect_items(config: AppConfig) -> tuple[list[Item], list[str]]:
    """Load the item collection from the configured url, or the local file."""
    errors: list[str] = []
    if config.source.url:
        try:
            data = fetch_items(config.source.url, config)
        except (httpx.HTTPError, ValueError) as exc:
            errors.append(f"{config.source.url}: {exc}")
            return [], errors
    else:
        path = Path(config.source.path).expanduser()
        try:
            data = load_items(path)
        except (OSError, ValueError) as exc:
            errors.append(f"{path}: {exc}")
            return [], errors

    items, record_errors = parse_items(data)
    errors.extend(record_errors)
    return items, errors


def load_items(path: Path) -> Any:
    if not path.exists():
        return []
    return json.loads(path.read_text(encoding="utf-8"))


def fetch_items(url: str, config: AppConfig, client: httpx.Client | None = None) -> Any:
    headers = {"User-Agent": config.user_agent}
    retries = max(0, config.source.retry_max)
    backoff = max(0.1, config.source.retry_backoff_seconds)
    owned = client is None
    if client is None:
        client = httpx.Client(timeout=config.source.timeout_seconds, headers=headers)

    try:
        for attempt in range(retries + 1):
            try:
                resp = client.get(url, headers=headers)
                resp.raise_for_status()
                return resp.json()
            except httpx.HTTPStatusError as exc:
                if exc.response.status_code in _RETRY_STATUSES and attempt < retries:
                    time.sleep(backoff * (2**attempt))
                    continue
                raise
            except httpx.RequestError:
                if attempt < retries:
                    time.sleep(backoff * (2**attempt))
                    continue
                raise
    finally:
        if owned:
            client.close()
    raise RuntimeError(f"item request to {url} failed")


def parse_items(data: Any) -> tuple[list[Item], list[str]]:
    items: list[Item] = []
    errors: list[str] = []
    for index, record in enumerate(_extract_records(data)):
        if not isinstance(record, dict):
            errors.append(f"record {index}: not an object")
            continue
        try:
            items.append(item_from_record(record))
        except InvalidItemData as exc:
            errors.append(f"record {index}: {exc}")
    return items, errors


def item_from_record(record: dict[str, Any]) -> Item:
    item_id = _to_str(record.get("id"))
    if not item_id:
        raise InvalidItemData(None, "id", "missing")

    item_type = _to_str(record.get("type"))
    if item_type not in ITEM_TYPES:
        raise InvalidItemData(item_id, "type", f"expected one of {ITEM_TYPES}, got {item_type!r}")

    status = _to_str(record.get("status"))
    if status not in ITEM_STATUSES:
        raise InvalidItemData(
            item_id, "status", f"expected one of {ITEM_STATUSES}, got {status!r}"
        )

    date_occurred = record.get("dateOccurred")
    if date_occurred is None:
        raise InvalidItemData(item_id, "date_occurred", "missing")

    return Item(
        id=item_id,
        type=item_type,
        status=status,
        category=_text(record.get("category")),
        location=_text(record.get("location")),
        date_occurred=date_occurred if isinstance(date_occurred, str) else str(date_occurred),
        description=_text(record.get("description")),
        title=_text(record.get("title")),
        date_reported=_to_str(record.get("dateReported")),
        contact_name=_to_str(record.get("contactName")),
        contact_email=_to_str(record.get("contactEmail")),
        contact_phone=_to_str(record.get("contactPhone")),
        image_url=_to_str(record.get("imageUrl")),
        tags=_str_list(record.get("tags")),
        reward=_reward(record.get("reward")),
        matches=_str_list(record.get("matches")),
    )


def _extract_records(data: Any) -> list[Any]:
    if isinstance(data, list):
        return data
    if isinstance(data, dict):
        for key in ("items", "data", "results"):
            value = data.get(key)
            if isinstance(value, list):
                return value
    return []


def _text(value: Any) -> str:
    if value is None:
        return ""
    return value if isinstance(value, str) else str(value)


def _to_str(value: Any) -> str | None:
    if value is None:
        return None
    if isinstance(value, str):
        return value.strip() or None
    return str(value).strip() or None


def _str_list(value: Any) -> list[str]:
    if not isinstance(value, list):
        return []
    return [str(entry) for entry in value if entry is not None]


def _reward(value: Any) -> float | None:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    return float(value)
