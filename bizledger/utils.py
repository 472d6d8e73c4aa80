import time
from datetime import datetime, timezone
from typing import Optional


def get_date_suffix_for_filename() -> str:
    """Returns the current date as a YYYY-MM-DD string for filenames."""
    return datetime.now().strftime("%Y-%m-%d")


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def epoch_millis() -> int:
    return time.time_ns() // 1_000_000


def generate_reference_number(prefix: str, millis: Optional[int] = None) -> str:
    """
    Builds a human-readable document number such as 'INV-482913' or 'PO-482913'
    from the last six digits of the epoch milliseconds.
    """
    if millis is None:
        millis = epoch_millis()
    return f"{prefix}-{str(millis)[-6:]}"
