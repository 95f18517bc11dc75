"""Entity models - the records stored in the shared repositories document"""

from .repository_record import (
    DEFAULT_DESCRIPTION,
    AnyRecord,
    Number,
    RepositoryMetrics,
    RepositoryRecord,
    StoredRecord,
    dump_collection,
    hourly_earnings,
    parse_collection,
)

__all__ = [
    "DEFAULT_DESCRIPTION",
    "AnyRecord",
    "Number",
    "RepositoryMetrics",
    "RepositoryRecord",
    "StoredRecord",
    "dump_collection",
    "hourly_earnings",
    "parse_collection",
]
