"""Logging setup and per-sheet import audit records."""

import logging
import sys
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone

from core.config import LOG_LEVEL

logger = logging.getLogger("pto_import")


def configure_logging(level: str | None = None) -> None:
    """Configure root logging for scripts. Library code only calls getLogger."""
    logging.basicConfig(
        level=getattr(logging, (level or LOG_LEVEL).upper(), logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[logging.StreamHandler(sys.stdout)],
    )


@dataclass
class ImportLog:
    """Captured outcome of importing one worksheet."""

    import_id: str = field(default_factory=lambda: str(uuid.uuid4()))
    timestamp: str = field(
        default_factory=lambda: datetime.now(timezone.utc).isoformat()
    )
    sheet_name: str = ""
    employee_name: str = ""
    year: int = 0
    processing_time_ms: int = 0
    pto_entries: int = 0
    acknowledgements: int = 0
    details: list[tuple[str, str]] = field(default_factory=list)  # (type, message)

    def count(self, detail_type: str) -> int:
        return sum(1 for kind, _ in self.details if kind == detail_type)


def log_import(log: ImportLog) -> None:
    """Write an import log: one INFO summary plus one DEBUG line per detail."""
    logger.info(
        "Sheet %r (%s, %s): %d entries, %d acknowledgements, "
        "%d warnings, %d errors, %d resolved in %dms",
        log.sheet_name,
        log.employee_name,
        log.year,
        log.pto_entries,
        log.acknowledgements,
        log.count("warning"),
        log.count("error"),
        log.count("resolved"),
        log.processing_time_ms,
    )
    for detail_type, message in log.details:
        if detail_type == "error":
            logger.error("[%s] %s", log.import_id, message)
        else:
            logger.debug("[%s] %s: %s", log.import_id, detail_type, message)
