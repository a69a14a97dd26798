"""JSON store: one ``data.json`` shard per year/month plus a ``latest.json`` pointer."""

from __future__ import annotations
from collections.abc import Sequence

import json
from pathlib import Path
from typing import Any, TypeVar

from src.config import EtlConfig
from src.ecb_etl import DailyRate, merge_rates
from src.logger import get_logger


LOGGER = get_logger(__name__)

T = TypeVar("T")


def read_json_file(path: Path, default: T) -> Any | T:
    """Return the parsed JSON at ``path``, or ``default`` if it is missing or unreadable."""
    try:
        return json.loads(path.read_text(encoding="utf-8"))
    except (OSError, ValueError):
        return default


def write_json_file(path: Path, value: Any) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(value, indent=2, ensure_ascii=False), encoding="utf-8")


def month_shard_path(data_dir: Path, month_key: str) -> Path:
    year, month = month_key.split("/")
    return data_dir / year / month / "data.json"


def load_month_shard(path: Path) -> list[DailyRate]:
    payload: Any = read_json_file(path, [])
    if not isinstance(payload, list):
        LOGGER.warning("Ignoring %s: expected a JSON array", path)
        return []

    records: list[DailyRate] = []
    for item in payload:
        try:
            records.append(DailyRate.from_dict(item))
        except (KeyError, TypeError, ValueError, AttributeError):
            LOGGER.warning("Dropping malformed record in %s: %r", path, item)
    return records


def load_latest_date(path: Path) -> str | None:
    """Return the date of the stored latest record, or None when there is no usable date."""
    payload: Any = read_json_file(path, None)
    if not isinstance(payload, dict):
        return None

    stored_date: Any = payload.get("date")
    return stored_date if isinstance(stored_date, str) else None


def process_group(config: EtlConfig, month_key: str, new_rates: Sequence[DailyRate]) -> Path:
    path: Path = month_shard_path(config.data_dir, month_key)

    existing: list[DailyRate] = load_month_shard(path)
    merged: list[DailyRate] = merge_rates(existing, new_rates)

    write_json_file(path, [rate.to_dict() for rate in merged])
    LOGGER.debug("Wrote %s (%s records)", path, len(merged))
    return path


def process_latest(config: EtlConfig, candidate: DailyRate) -> bool:
    """Write ``candidate`` to the latest file only if it is strictly newer than what is stored."""
    existing_date: str | None = load_latest_date(config.latest_file)

    if existing_date is not None and candidate.date <= existing_date:
        LOGGER.info("latest.json kept at %s (candidate %s)", existing_date, candidate.date)
        return False

    write_json_file(config.latest_file, candidate.to_dict())
    return True
