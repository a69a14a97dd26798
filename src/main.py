from __future__ import annotations
from collections.abc import Sequence

import argparse
import sys
from concurrent.futures import Future, ThreadPoolExecutor, wait
from dataclasses import dataclass

from src.config import DEFAULT_TIMEOUT_SECONDS, EtlConfig
from src.ecb_etl import (
    DailyRate,
    fetch_text,
    find_latest_rate,
    group_rates_by_month,
    parse_ecb_xml,
)
from src.logger import get_logger
from src.store import process_group, process_latest


LOGGER = get_logger(__name__)

USAGE: str = "Usage: python -m src.main init | update"


@dataclass(frozen=True)
class RunSummary:
    mode: str
    records_parsed: int
    months_updated: list[str]
    latest_date: str | None = None
    latest_written: bool = False


def run(mode: str, config: EtlConfig) -> RunSummary:
    url: str | None = config.urls.get(mode)
    if url is None:
        raise ValueError(f"Unknown mode: {mode!r}")

    LOGGER.info("Starting [%s] process from %s", mode, url)

    xml_text: str = fetch_text(url, timeout_seconds=config.timeout_seconds)
    rates: list[DailyRate] = parse_ecb_xml(xml_text)
    LOGGER.info("Parsed %s daily records", len(rates))

    if not rates:
        LOGGER.warning("No rates found in XML; nothing to write")
        return RunSummary(mode=mode, records_parsed=0, months_updated=[])

    grouped: dict[str, list[DailyRate]] = group_rates_by_month(rates)
    latest: DailyRate | None = find_latest_rate(rates)

    with ThreadPoolExecutor() as executor:
        shard_tasks: list[Future] = [
            executor.submit(process_group, config, key, group) for key, group in grouped.items()
        ]
        latest_task: Future | None = (
            executor.submit(process_latest, config, latest) if latest is not None else None
        )

        pending: list[Future] = shard_tasks + ([latest_task] if latest_task is not None else [])
        wait(pending)

    # every task has finished; surface the first failure
    for task in pending:
        task.result()

    latest_written: bool = bool(latest_task.result()) if latest_task is not None else False
    summary = RunSummary(
        mode=mode,
        records_parsed=len(rates),
        months_updated=sorted(grouped),
        latest_date=latest.date if latest is not None else None,
        latest_written=latest_written,
    )

    LOGGER.info(
        "Completed! Updated %s month-files%s",
        len(summary.months_updated),
        f" and latest.json ({summary.latest_date})" if latest_written else "",
    )
    return summary


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Load ECB euro reference rates into a JSON store.")
    parser.add_argument("mode", nargs="?", help="init (full history) or update (daily snapshot)")
    parser.add_argument("--data-dir", dest="data_dir", help="Root directory of the JSON store (default: ./data)")
    parser.add_argument(
        "--timeout",
        dest="timeout",
        type=int,
        default=DEFAULT_TIMEOUT_SECONDS,
        help="HTTP timeout in seconds",
    )
    return parser.parse_args(argv)


def main(argv: Sequence[str] | None = None) -> int:
    try:
        args: argparse.Namespace = parse_args(argv)
    except SystemExit as exc:
        # --help exits 0; bad options are reported by argparse and map to 1
        return 0 if exc.code in (0, None) else 1
    config: EtlConfig = EtlConfig.default(args.data_dir, timeout_seconds=args.timeout)

    if args.mode not in config.modes:
        print(USAGE, file=sys.stderr)
        return 1

    try:
        summary: RunSummary = run(args.mode, config)
        print(f"Parsed {summary.records_parsed} records, updated {len(summary.months_updated)} month-files.")
        return 0

    except Exception as exc:
        LOGGER.error("Run failed: %s", exc)
        print(f"Error: {exc}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
