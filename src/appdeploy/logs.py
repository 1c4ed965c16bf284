"""Daily log files and their retention."""

from __future__ import annotations

import calendar
import logging
import sys
from datetime import date, datetime
from pathlib import Path

logger = logging.getLogger(__name__)

LOG_FILE_PREFIX = "deploy-"
LOG_FILE_SUFFIX = ".log"
LOG_FORMAT = "[%(asctime)s] [%(levelname)s] %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def log_file_path(log_dir: Path, today: date | None = None) -> Path:
    day = (today or date.today()).isoformat()
    return log_dir / f"{LOG_FILE_PREFIX}{day}{LOG_FILE_SUFFIX}"


def subtract_months(day: date, months: int) -> date:
    """Go back whole calendar months, clamping to the end of shorter months.

    >>> subtract_months(date(2024, 5, 31), 3)
    datetime.date(2024, 2, 29)
    """
    month_index = day.year * 12 + (day.month - 1) - months
    year, month = divmod(month_index, 12)
    month += 1
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, min(day.day, last_day))


def purge_expired_logs(log_dir: Path, months: int, today: date | None = None) -> list[Path]:
    """Delete daily log files dated before today minus months.

    Files whose name carries no parseable date are left alone.

    Returns:
        Paths that were deleted.
    """
    if not log_dir.is_dir():
        return []

    cutoff = subtract_months(today or date.today(), months)
    deleted: list[Path] = []

    for path in sorted(log_dir.glob(f"{LOG_FILE_PREFIX}*{LOG_FILE_SUFFIX}")):
        stamp = path.name[len(LOG_FILE_PREFIX) : -len(LOG_FILE_SUFFIX)]
        try:
            file_day = datetime.strptime(stamp, "%Y-%m-%d").date()
        except ValueError:
            continue
        if file_day < cutoff:
            path.unlink()
            deleted.append(path)

    return deleted


def setup_logging(log_dir: Path, today: date | None = None) -> Path:
    """Send log records to today's file and to stdout.

    Returns:
        Path of today's log file.
    """
    log_dir.mkdir(parents=True, exist_ok=True)
    path = log_file_path(log_dir, today)

    formatter = logging.Formatter(LOG_FORMAT, datefmt=LOG_DATE_FORMAT)

    file_handler = logging.FileHandler(path, mode="a", encoding="utf-8")
    file_handler.setFormatter(formatter)

    stream_handler = logging.StreamHandler(sys.stdout)
    stream_handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.addHandler(file_handler)
    root_logger.addHandler(stream_handler)
    root_logger.setLevel(logging.INFO)

    # Reduce noise from Azure SDK
    logging.getLogger("azure").setLevel(logging.WARNING)
    logging.getLogger("urllib3").setLevel(logging.WARNING)

    return path
