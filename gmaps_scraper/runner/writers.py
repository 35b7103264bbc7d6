"""
Output sinks for scraped entries.
"""

import csv
import json
import sys
from pathlib import Path
from typing import Any, Dict, IO, List, Optional, Protocol

from gmaps_scraper.core.logging import get_logger

logger = get_logger(__name__)

CSV_COLUMNS: List[str] = [
    "id",
    "title",
    "category",
    "categories",
    "address",
    "link",
    "data_id",
    "latitude",
    "longitude",
    "review_count",
    "review_rating",
    "reviews",
    "website",
    "phone",
    "emails",
]


class ResultWriter(Protocol):
    def write(self, record: Dict[str, Any]) -> None: ...

    def close(self) -> None: ...


def _to_record(result: Any) -> Dict[str, Any]:
    if hasattr(result, "to_record"):
        return result.to_record()
    if isinstance(result, dict):
        return result
    raise TypeError(f"cannot write result of type {type(result).__name__}")


class _StreamWriter:
    """Shared handling of stdout vs. file targets."""

    def __init__(self, target: Optional[str] = None):
        self.target = target or "stdout"
        self.count = 0
        if self.target == "stdout":
            self._fh: IO[str] = sys.stdout
            self._owns = False
        else:
            path = Path(self.target)
            path.parent.mkdir(parents=True, exist_ok=True)
            self._fh = path.open("w", encoding="utf-8", newline="")
            self._owns = True

    def close(self) -> None:
        self._fh.flush()
        if self._owns:
            self._fh.close()
        logger.info(f"Wrote {self.count} results to {self.target}")


class CsvWriter(_StreamWriter):
    """
    One CSV row per entry. List fields are serialized: categories and
    emails joined with ``", "``, reviews as a JSON array.
    """

    def __init__(self, target: Optional[str] = None):
        super().__init__(target)
        self._writer = csv.DictWriter(self._fh, fieldnames=CSV_COLUMNS, extrasaction="ignore")
        self._writer.writeheader()

    def write(self, result: Any) -> None:
        row = dict(_to_record(result))
        row["categories"] = ", ".join(row.get("categories") or [])
        row["emails"] = ", ".join(row.get("emails") or [])
        row["reviews"] = json.dumps(row.get("reviews") or [], ensure_ascii=False)
        self._writer.writerow(row)
        self._fh.flush()
        self.count += 1


class JsonLinesWriter(_StreamWriter):
    """One JSON object per line."""

    def write(self, result: Any) -> None:
        self._fh.write(json.dumps(_to_record(result), ensure_ascii=False) + "\n")
        self._fh.flush()
        self.count += 1


def build_writer(target: Optional[str] = None, json_output: bool = False) -> ResultWriter:
    """
    Pick the writer for the configured output.

    Args:
        target: File path, or "stdout"
        json_output: Write JSON lines instead of CSV
    """
    if json_output:
        return JsonLinesWriter(target)
    return CsvWriter(target)
