"""Pure idea domain logic: validation and rank planning."""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from urllib.parse import urlparse

from calm.errors import NotFound, ValidationError

from .dates import format_timestamp, parse_timestamp

RankChange = tuple[str, int]


class IdeaStatus(Enum):
    ACTIVE = "active"
    ARCHIVED = "archived"


class Direction(Enum):
    UP = "up"
    DOWN = "down"


@dataclass
class Idea:
    """An idea kept in a manually ranked list."""

    id: str
    title: str
    rank: int
    status: IdeaStatus
    created_at: datetime
    updated_at: datetime
    reference_url: str | None = None
    archived_at: datetime | None = None

    @classmethod
    def from_doc(cls, doc: dict) -> "Idea":
        return cls(
            id=doc["_id"],
            title=doc["title"],
            rank=doc["rank"],
            status=IdeaStatus(doc["status"]),
            created_at=parse_timestamp(doc["createdAt"]),
            updated_at=parse_timestamp(doc["updatedAt"]),
            reference_url=doc.get("referenceUrl"),
            archived_at=parse_timestamp(doc.get("archivedAt")),
        )

    def to_doc(self) -> dict:
        doc = {
            "title": self.title,
            "rank": self.rank,
            "status": self.status.value,
            "createdAt": format_timestamp(self.created_at),
            "updatedAt": format_timestamp(self.updated_at),
        }
        if self.reference_url is not None:
            doc["referenceUrl"] = self.reference_url
        if self.archived_at is not None:
            doc["archivedAt"] = format_timestamp(self.archived_at)
        return doc

    def to_dict(self) -> dict:
        return {"id": self.id, **self.to_doc()}


def normalize_reference_url(value: str | None) -> str | None:
    """Blank means no link; anything else must be an absolute http(s) URL."""
    if value is None:
        return None
    trimmed = value.strip()
    if not trimmed:
        return None

    try:
        parsed = urlparse(trimmed)
    except ValueError as e:
        raise ValidationError(f"Invalid reference URL: {trimmed}") from e

    if parsed.scheme.lower() not in ("http", "https") or not parsed.netloc:
        raise ValidationError("Reference URL must start with http:// or https://")
    return trimmed


def next_rank(active: list[Idea]) -> int:
    """Rank that appends after every active idea."""
    return max((idea.rank for idea in active), default=0) + 1


def _index_of(ideas: list[Idea], idea_id: str) -> int:
    for index, idea in enumerate(ideas):
        if idea.id == idea_id:
            return index
    raise NotFound("Idea", idea_id)


def plan_move(ideas: list[Idea], idea_id: str, direction: Direction) -> list[RankChange]:
    """Rank swap with the neighbour in ``direction``; empty at a boundary.

    ``ideas`` is the active list in display (rank ascending) order.
    """
    current = _index_of(ideas, idea_id)
    neighbor = current - 1 if direction is Direction.UP else current + 1
    if neighbor < 0 or neighbor >= len(ideas):
        return []
    return [
        (ideas[current].id, ideas[neighbor].rank),
        (ideas[neighbor].id, ideas[current].rank),
    ]


def plan_reorder(ideas: list[Idea], idea_id: str, target_index: int) -> list[RankChange]:
    """Move one idea to ``target_index`` and renumber ranks 1..n.

    Only ideas whose rank actually changes are returned.
    """
    current = _index_of(ideas, idea_id)
    target = max(0, min(target_index, len(ideas) - 1))

    reordered = list(ideas)
    moved = reordered.pop(current)
    reordered.insert(target, moved)

    return [
        (idea.id, position)
        for position, idea in enumerate(reordered, start=1)
        if idea.rank != position
    ]
