"""
CSV reader for bulk transaction imports.

Expected columns: date, amount, merchant, category, description. Optional
columns: type, location, accountId.
"""

import io
import logging
from typing import Dict, List, Union

import pandas as pd

from ..models import ValidationError

logger = logging.getLogger(__name__)


REQUIRED_COLUMNS = {"date", "amount"}
LABEL_COLUMNS = {"merchant", "description"}


def read_transaction_rows(content: Union[str, bytes]) -> List[Dict[str, str]]:
    """
    Parse CSV content into a list of row dictionaries, in file order.

    All values are read as strings so malformed cells reach per-row
    validation instead of failing the whole file.

    Raises:
        ValidationError: the file is empty, unparsable, or missing columns
    """
    if isinstance(content, bytes):
        try:
            content = content.decode("utf-8-sig")
        except UnicodeDecodeError:
            raise ValidationError("file", "CSV is not valid UTF-8")

    try:
        frame = pd.read_csv(
            io.StringIO(content),
            dtype=str,
            keep_default_na=False,
            skip_blank_lines=True,
            skipinitialspace=True,
        )
    except pd.errors.EmptyDataError:
        raise ValidationError("file", "CSV file is empty")
    except pd.errors.ParserError as e:
        raise ValidationError("file", f"CSV could not be parsed: {e}")

    frame.columns = [str(c).strip() for c in frame.columns]
    columns = {c.lower() for c in frame.columns}
    missing = REQUIRED_COLUMNS - columns
    if missing:
        raise ValidationError("file", f"CSV is missing required columns: {', '.join(sorted(missing))}")
    if not columns & LABEL_COLUMNS:
        raise ValidationError("file", "CSV needs a merchant or description column")

    rows = frame.to_dict(orient="records")
    logger.debug(f"Read {len(rows)} CSV rows with columns {list(frame.columns)}")
    return rows
