"""Document store interface and the indexes the planner queries by."""

from typing import Literal, Protocol

Order = Literal["asc", "desc"]

# collection -> index name -> indexed fields, in sort order
SCHEMA: dict[str, dict[str, tuple[str, ...]]] = {
    "tasks": {
        "by_status_createdAt": ("status", "createdAt"),
        "by_status_dueDate": ("status", "dueDate"),
        "by_status_updatedAt": ("status", "updatedAt"),
    },
    "ideas": {
        "by_status_rank": ("status", "rank"),
        "by_status_updatedAt": ("status", "updatedAt"),
    },
    "daily": {
        "by_dateKey": ("dateKey",),
    },
}


class DocumentStore(Protocol):
    """Interface for keyed documents with ordered index lookups.

    Each call is one atomic mutation or read against the current stored
    state, and a failed mutation leaves nothing behind. There is no optimistic
    concurrency check: two writers patching the same document race and the
    last write wins.
    """

    def get(self, collection: str, doc_id: str) -> dict | None:
        """Fetch one document (including ``_id``) or None."""
        ...

    def insert(self, collection: str, doc: dict) -> str:
        """Insert a document and return its new id."""
        ...

    def patch(self, collection: str, doc_id: str, fields: dict) -> None:
        """Shallow-merge ``fields`` into an existing document."""
        ...

    def query(
        self,
        collection: str,
        index: str,
        eq: dict | None = None,
        order: Order = "asc",
    ) -> list[dict]:
        """Documents matching ``eq`` on index fields, ordered by the index."""
        ...
