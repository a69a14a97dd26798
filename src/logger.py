"""Logging setup shared by the pipeline modules."""

from __future__ import annotations

import logging

_configured: bool = False


def get_logger(name: str = "ecb_rates") -> logging.Logger:
    global _configured
    if not _configured:
        logging.basicConfig(
            level=logging.INFO,
            format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        )
        _configured = True
    return logging.getLogger(name)
