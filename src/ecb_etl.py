from __future__ import annotations
from collections.abc import Mapping, Iterable

import re
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Final

import requests

from src.logger import get_logger


LOGGER = get_logger(__name__)

BASE_CURRENCY: Final[str] = "EUR"

TIME_BLOCK_PATTERN: Final[re.Pattern[str]] = re.compile(
    r"""<Cube time=['"](\d{4}-\d{2}-\d{2})['"]>(.*?)</Cube>""",
    re.DOTALL,
)
RATE_PATTERN: Final[re.Pattern[str]] = re.compile(
    r"""<Cube currency=['"]([A-Z]{3})['"] rate=['"]([\d.]+)['"]\s*/>""",
)


@dataclass(frozen=True)
class DailyRate:
    date: str
    base: str
    rates: dict[str, float]

    def __post_init__(self) -> None:
        if not self.rates:
            raise ValueError(f"DailyRate for {self.date} has no rates")

    def to_dict(self) -> dict[str, Any]:
        # whole-number rates are written as JSON integers: 160, not 160.0
        rates: dict[str, float | int] = {
            ccy: int(value) if float(value).is_integer() else value for ccy, value in self.rates.items()
        }
        return {"date": self.date, "base": self.base, "rates": rates}

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> DailyRate:
        rates: dict[str, float] = {
            str(ccy): float(value) for ccy, value in payload["rates"].items()
        }
        return cls(date=str(payload["date"]), base=str(payload.get("base", BASE_CURRENCY)), rates=rates)


def fetch_text(url: str, timeout_seconds: int = 30) -> str:
    response: requests.Response = requests.get(url, timeout=timeout_seconds)
    response.raise_for_status()
    return response.text


def parse_ecb_xml(xml_text: str) -> list[DailyRate]:
    """Extract one DailyRate per dated ``<Cube time=...>`` block, in document order.

    Blocks without any currency/rate leaf are dropped. Anything that does not
    match the ECB shape is ignored rather than reported.
    """
    records: list[DailyRate] = []

    for block in TIME_BLOCK_PATTERN.finditer(xml_text):
        rate_date: str = block.group(1)
        content: str = block.group(2)

        rates: dict[str, float] = {}
        for leaf in RATE_PATTERN.finditer(content):
            try:
                rates[leaf.group(1)] = float(leaf.group(2))
            except ValueError:
                continue

        if not rates:
            LOGGER.debug("Skipping %s: no rates in block", rate_date)
            continue

        records.append(DailyRate(date=rate_date, base=BASE_CURRENCY, rates=rates))

    return records


def month_key(rate_date: str) -> str:
    return datetime.strptime(rate_date, "%Y-%m-%d").strftime("%Y/%m")


def group_rates_by_month(rates: Iterable[DailyRate]) -> dict[str, list[DailyRate]]:
    groups: dict[str, list[DailyRate]] = {}
    for rate in rates:
        groups.setdefault(month_key(rate.date), []).append(rate)
    return groups


def find_latest_rate(rates: Iterable[DailyRate]) -> DailyRate | None:
    latest: DailyRate | None = None
    for rate in rates:
        if latest is None or rate.date > latest.date:
            latest = rate
    return latest


def merge_rates(existing: Iterable[DailyRate], incoming: Iterable[DailyRate]) -> list[DailyRate]:
    by_date: dict[str, DailyRate] = {}

    for rate in existing:
        by_date[rate.date] = rate
    # incoming last so it wins on a date collision
    for rate in incoming:
        by_date[rate.date] = rate

    return sorted(by_date.values(), key=lambda r: r.date, reverse=True)
