"""
RepositoryRecord Entity - one evaluated repository.

The shared document is a plain JSON array of these records. Field names are
camelCase because the file is read by browser clients as-is. ``url`` is the
identity of a record; uniqueness is kept by the upsert logic, not by storage.
Records are never deleted here, so every url-bearing entry that is loaded is
written back, even when it does not fit the model.
"""

import logging
import math
from datetime import datetime
from typing import Any, Dict, List, Optional, Sequence, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_serializer

from repo_registry.services.github.exceptions import MalformedDocument
from repo_registry.utils.datetime import to_iso_z

logger = logging.getLogger(__name__)

DEFAULT_DESCRIPTION = "No description available"

# Keeps integers as integers when the document is written back.
Number = Union[int, float]


class RepositoryMetrics(BaseModel):
    """
    Scores supplied by the external evaluator. Opaque to the registry except ``quality``.

    Stored values may be null (a NaN written by a browser client becomes
    ``null`` in JSON), so every metric is optional.
    """

    model_config = ConfigDict(extra="allow")

    uniqueness: Optional[Number] = 0
    quality: Optional[Number] = 1
    marketDemand: Optional[Number] = 0
    hourlyEarnings: Optional[Number] = 0
    rentalPrice: Optional[Number] = 0
    royaltyRate: Optional[Number] = 0
    annualRevenue: Optional[Number] = 0
    stars: Optional[Number] = 0
    forks: Optional[Number] = 0
    watchers: Optional[Number] = 0


class StoredRecord(BaseModel):
    """
    Any url-bearing entry of the shared document, kept verbatim.

    Entries that do not validate as RepositoryRecord are loaded as this type
    so that rewriting the collection never drops another client's data.
    """

    model_config = ConfigDict(extra="allow")

    url: str = Field(..., description="Repository URL. Unique key, compared by exact match.")

    def to_document(self) -> Dict[str, Any]:
        # Only keys that were read or assigned; defaults are never injected into stored entries.
        return self.model_dump(mode="json", exclude_unset=True)


class RepositoryRecord(StoredRecord):
    """
    Evaluated repository as stored in the shared document.

    Unknown keys written by other clients are preserved, and nulls stay null.
    """

    username: Optional[str] = ""
    name: Optional[str] = ""
    description: Optional[str] = DEFAULT_DESCRIPTION
    solanaWallet: Optional[str] = Field(
        default="",
        description="Payout wallet. Empty string means not set yet.",
    )
    metrics: Optional[RepositoryMetrics] = Field(default_factory=RepositoryMetrics)
    # Timestamps read from the document stay strings and are written back unchanged.
    evaluatedAt: Optional[Union[datetime, str]] = None
    combinedScore: Optional[Number] = 0

    @field_serializer("evaluatedAt")
    def _serialize_evaluated_at(
        self, value: Optional[Union[datetime, str]]
    ) -> Optional[str]:
        if isinstance(value, datetime):
            return to_iso_z(value)
        return value


# Element type of a loaded collection, as exposed by the API.
AnyRecord = Union[RepositoryRecord, StoredRecord]


def hourly_earnings(record: StoredRecord) -> Number:
    """Hourly earnings of a record; 0 when missing, null or not a number."""
    metrics = getattr(record, "metrics", None)
    if isinstance(metrics, RepositoryMetrics):
        value = metrics.hourlyEarnings
    elif isinstance(metrics, dict):
        value = metrics.get("hourlyEarnings")
    else:
        value = None
    if isinstance(value, bool) or not isinstance(value, (int, float)) or math.isnan(value):
        return 0
    return value


def parse_collection(data: Any) -> List[StoredRecord]:
    """
    Build records from a decoded JSON document.

    Raises MalformedDocument when the document is not an array. Items that are
    not objects or lack a ``url`` are skipped with a warning. Objects that fail
    validation are kept unchanged as StoredRecord.
    """
    if not isinstance(data, list):
        raise MalformedDocument(
            f"Expected a JSON array of repositories, got {type(data).__name__}"
        )

    records: List[StoredRecord] = []
    for index, item in enumerate(data):
        if not isinstance(item, dict) or not isinstance(item.get("url"), str):
            logger.warning(f"Skipping repository entry #{index}: missing url")
            continue
        try:
            records.append(RepositoryRecord.model_validate(item))
        except ValidationError as exc:
            logger.warning(
                f"Keeping repository entry #{index} as-is: {exc.error_count()} invalid field(s)",
                extra={"repo_url": item["url"]},
            )
            records.append(StoredRecord.model_validate(item))
    return records


def dump_collection(records: Sequence[StoredRecord]) -> List[Dict[str, Any]]:
    return [record.to_document() for record in records]
