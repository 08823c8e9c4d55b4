from __future__ import annotations

import logging
import os

LOGGER = logging.getLogger(__name__)

DEFAULT_IMPORT_BATCH_SIZE = 10
MAX_IMPORT_BATCH_SIZE = 500


def get_cohort_id() -> str:
    return (os.getenv("GLOBAL84_COHORT_ID") or "").strip()


def get_import_batch_size() -> int:
    raw = (os.getenv("GLOBAL84_IMPORT_BATCH_SIZE") or "").strip()
    if not raw:
        return DEFAULT_IMPORT_BATCH_SIZE
    try:
        value = int(raw)
    except ValueError:
        LOGGER.warning("ignoring GLOBAL84_IMPORT_BATCH_SIZE=%r", raw)
        return DEFAULT_IMPORT_BATCH_SIZE
    if value < 1:
        return DEFAULT_IMPORT_BATCH_SIZE
    return min(value, MAX_IMPORT_BATCH_SIZE)


def configure_logging(verbose: bool = False) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
