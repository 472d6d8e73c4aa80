import json
import logging
from pathlib import Path
from typing import Optional, Sequence

import pandas as pd
from pydantic import BaseModel

from . import settings
from . import utils

logger = logging.getLogger(__name__)


def save_outputs(
    df: pd.DataFrame, report_name: str, records: Optional[Sequence[BaseModel]] = None
) -> Path:
    """Saves a report to CSV and conditionally the source records to JSON, with dated filenames."""
    settings.OUTPUT_DIR.mkdir(parents=True, exist_ok=True)
    date_suffix = utils.get_date_suffix_for_filename()

    csv_path = settings.OUTPUT_DIR / f"{report_name}_{date_suffix}.csv"
    json_path = settings.OUTPUT_DIR / f"{report_name}_{date_suffix}.json"

    df.to_csv(csv_path, index=False)
    logger.info(f"✅ Report saved to: {csv_path}")

    if settings.SAVE_JSON_OUTPUT and records is not None:
        with open(json_path, "w", encoding="utf-8") as f:
            json_data = [record.model_dump(mode="json", by_alias=True) for record in records]
            json.dump(json_data, f, indent=2, ensure_ascii=False)
        logger.info(f"✅ JSON output saved to: {json_path}")
    else:
        logger.info("Skipping JSON file save as per configuration.")

    return csv_path
