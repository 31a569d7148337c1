"""Idea store - a manually ranked list of ideas."""

import logging
from datetime import datetime
from typing import Callable

from .core.dates import format_timestamp, now_utc
from .core.ideas import (
    Direction,
    Idea,
    IdeaStatus,
    RankChange,
    next_rank,
    normalize_reference_url,
    plan_move,
    plan_reorder,
)
from .core.outcome import Outcome
from .core.tasks import normalize_title
from .errors import NotFound, ValidationError
from .ports.document_store import DocumentStore
from .task_store import UNSET

logger = logging.getLogger(__name__)

COLLECTION = "ideas"


class IdeaStore:
    """Active ideas ordered by rank; archived ideas drop out of the ranking."""

    def __init__(self, store: DocumentStore, clock: Callable[[], datetime] = now_utc):
        self.store = store
        self.clock = clock

    def get(self, idea_id: str) -> Idea:
        doc = self.store.get(COLLECTION, idea_id)
        if doc is None:
            raise NotFound("Idea", idea_id)
        return Idea.from_doc(doc)

    def list_active(self) -> list[Idea]:
        docs = self.store.query(
            COLLECTION, "by_status_rank", eq={"status": IdeaStatus.ACTIVE.value}, order="asc"
        )
        return [Idea.from_doc(doc) for doc in docs]

    def create(self, title: str, reference_url: str | None = None) -> Idea:
        title = normalize_title(title, kind="Idea")
        url = normalize_reference_url(reference_url)

        now = self.clock()
        idea = Idea(
            id="",
            title=title,
            rank=next_rank(self.list_active()),
            status=IdeaStatus.ACTIVE,
            created_at=now,
            updated_at=now,
            reference_url=url,
        )
        idea.id = self.store.insert(COLLECTION, idea.to_doc())
        return idea

    def update(
        self,
        idea_id: str,
        *,
        title: str = UNSET,
        reference_url: str | None = UNSET,
    ) -> Idea:
        idea = self.get(idea_id)
        fields = {}
        if title is not UNSET:
            fields["title"] = normalize_title(title, kind="Idea")
        if reference_url is not UNSET:
            fields["referenceUrl"] = normalize_reference_url(reference_url)
        if not fields:
            return idea

        fields["updatedAt"] = format_timestamp(self.clock())
        self.store.patch(COLLECTION, idea_id, fields)
        return self.get(idea_id)

    def move_adjacent(self, idea_id: str, direction: Direction | str) -> Outcome:
        """Swap with the neighbour above or below; no-op at either end."""
        try:
            direction = Direction(direction)
        except ValueError as e:
            raise ValidationError(f"Direction must be 'up' or 'down', not {direction!r}") from e
        return self._apply(plan_move(self.list_active(), idea_id, direction))

    def reorder_to_index(self, idea_id: str, target_index: int) -> Outcome:
        """Drop an idea at a 0-based position and renumber ranks 1..n."""
        return self._apply(plan_reorder(self.list_active(), idea_id, target_index))

    def archive(self, idea_id: str) -> Outcome:
        idea = self.get(idea_id)
        if idea.status is IdeaStatus.ARCHIVED:
            return Outcome.IGNORED

        now = format_timestamp(self.clock())
        self.store.patch(
            COLLECTION,
            idea_id,
            {"status": IdeaStatus.ARCHIVED.value, "archivedAt": now, "updatedAt": now},
        )
        return Outcome.APPLIED

    def _apply(self, changes: list[RankChange]) -> Outcome:
        if not changes:
            return Outcome.IGNORED
        now = format_timestamp(self.clock())
        for idea_id, rank in changes:
            self.store.patch(COLLECTION, idea_id, {"rank": rank, "updatedAt": now})
        logger.debug(f"Re-ranked {len(changes)} idea(s)")
        return Outcome.APPLIED
