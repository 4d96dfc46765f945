"""Spreadsheet row loading: column A = address, column B = token amount."""
import csv
import logging
from pathlib import Path
from typing import Any, Iterable, List, Sequence

from .models import DistributionRequest

logger = logging.getLogger(__name__)


def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def _to_amount(value: Any) -> float:
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return value
    try:
        return float(str(value).strip())
    except ValueError:
        return float("nan")


def rows_from_table(table: Iterable[Sequence[Any]], has_header: bool = True) -> List[DistributionRequest]:
    """
    Turn decoded spreadsheet rows into requests.

    The first row is a header when ``has_header`` is set. Rows missing either
    the address or the amount are skipped. Amounts that do not parse become
    NaN so that validation reports them instead of silently dropping them.
    """
    requests: List[DistributionRequest] = []
    for index, row in enumerate(table):
        if has_header and index == 0:
            continue
        if len(row) < 2 or _is_blank(row[0]) or _is_blank(row[1]):
            continue
        requests.append(DistributionRequest(str(row[0]).strip(), _to_amount(row[1])))
    return requests


def read_csv(path: Path, has_header: bool = True) -> List[DistributionRequest]:
    """Read a CSV export of the distribution sheet."""
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"input file not found: {path}")

    with path.open("r", encoding="utf-8-sig", newline="") as infile:
        requests = rows_from_table(csv.reader(infile), has_header=has_header)

    logger.debug(f"Loaded {len(requests)} rows from {path}")
    return requests
