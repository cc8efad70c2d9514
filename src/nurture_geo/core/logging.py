"""Loguru logging configuration for geocoding lookups.

Every record carries two context fields that the geocoding chain binds with
``logger.contextualize``: ``provider`` (the geocoder being tried) and
``lookup`` (a short fingerprint of the normalized address). Addresses
themselves are never logged.
"""

import hashlib
import sys
from pathlib import Path

from loguru import logger

_LOG_FORMAT = (
    "{time:YYYY-MM-DD HH:mm:ss.SSS} | {level:<8} | {name}:{function}:{line} | "
    "{extra[lookup]} {extra[provider]:<8} | {message}"
)

_CONTEXT_DEFAULTS = {"lookup": "-", "provider": "-"}


def address_fingerprint(normalized_address: str) -> str:
    """Return a stable 10-character identifier for a normalized address."""
    return hashlib.sha1(normalized_address.encode("utf-8"), usedforsecurity=False).hexdigest()[:10]


def setup_logging(log_level: str = "INFO", log_dir: str | None = None) -> None:
    """Configure Loguru sinks.

    Adds a human-readable stderr sink, a JSON stderr sink for records bound
    with ``json_output=True``, and, when ``log_dir`` is set, a rotating file
    sink (rotated every 24 hours, retained 7 days).

    Args:
        log_level: Minimum log level to emit (case-insensitive).
        log_dir: Optional directory for ``nurture-geo.log``.
    """
    level = log_level.upper()
    logger.remove()
    logger.configure(extra=_CONTEXT_DEFAULTS)
    logger.add(sys.stderr, level=level, format=_LOG_FORMAT)
    logger.add(
        sys.stderr,
        level=level,
        serialize=True,
        filter=lambda record: record["extra"].get("json_output", False),
    )

    if log_dir:
        log_path = Path(log_dir)
        log_path.mkdir(parents=True, exist_ok=True)
        logger.add(
            log_path / "nurture-geo.log",
            level=level,
            format=_LOG_FORMAT,
            rotation="24h",
            retention="7 days",
        )
