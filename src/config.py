from __future__ import annotations
from collections.abc import Mapping

from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import Final


INIT_URL: Final[str] = "https://www.ecb.europa.eu/stats/eurofxref/eurofxref-hist.xml"
UPDATE_URL: Final[str] = "https://www.ecb.europa.eu/stats/eurofxref/eurofxref-daily.xml"

DEFAULT_DATA_DIR_NAME: Final[str] = "data"
LATEST_FILE_NAME: Final[str] = "latest.json"
DEFAULT_TIMEOUT_SECONDS: Final[int] = 30


@dataclass(frozen=True)
class EtlConfig:
    """Source URLs per mode plus the root of the JSON store."""

    data_dir: Path
    urls: Mapping[str, str] = field(
        default_factory=lambda: MappingProxyType({"init": INIT_URL, "update": UPDATE_URL})
    )
    timeout_seconds: int = DEFAULT_TIMEOUT_SECONDS

    @property
    def latest_file(self) -> Path:
        return self.data_dir / LATEST_FILE_NAME

    @property
    def modes(self) -> tuple[str, ...]:
        return tuple(self.urls)

    @classmethod
    def default(cls, data_dir: Path | str | None = None, timeout_seconds: int = DEFAULT_TIMEOUT_SECONDS) -> EtlConfig:
        root: Path = Path(data_dir) if data_dir is not None else Path.cwd() / DEFAULT_DATA_DIR_NAME
        return cls(data_dir=root, timeout_seconds=timeout_seconds)
