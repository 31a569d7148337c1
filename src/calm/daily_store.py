"""Daily ledger store - commitments and ritual check-ins, one record per date."""

import logging
from datetime import datetime
from typing import Callable

from .core.daily import DailyLedger, RitualKind, dedupe_ids
from .core.dates import format_timestamp, normalize_date_key, now_utc
from .core.outcome import Outcome
from .errors import ValidationError
from .ports.document_store import DocumentStore
from .task_store import TaskStore

logger = logging.getLogger(__name__)

COLLECTION = "daily"


class DailyLedgerStore:
    """
    Ledgers keyed by date key, created lazily by the first write for a date.

    Committed ids must point at active tasks at the time they are committed;
    tasks finished later stay in the ledger as history.
    """

    def __init__(
        self,
        store: DocumentStore,
        tasks: TaskStore,
        clock: Callable[[], datetime] = now_utc,
    ):
        self.store = store
        self.tasks = tasks
        self.clock = clock

    def get(self, date_key: str) -> DailyLedger | None:
        date_key = normalize_date_key(date_key)
        docs = self.store.query(COLLECTION, "by_dateKey", eq={"dateKey": date_key})
        if len(docs) > 1:
            logger.warning(f"{len(docs)} ledgers share dateKey {date_key}; using the first")
        return DailyLedger.from_doc(docs[0]) if docs else None

    def get_or_create(self, date_key: str) -> DailyLedger:
        date_key = normalize_date_key(date_key)
        existing = self.get(date_key)
        if existing is not None:
            return existing

        ledger = DailyLedger(id="", date_key=date_key, updated_at=self.clock())
        ledger.id = self.store.insert(COLLECTION, ledger.to_doc())
        logger.debug(f"Created ledger for {date_key}")
        return ledger

    def list_descending(self) -> list[DailyLedger]:
        """Every ledger, newest date first."""
        docs = self.store.query(COLLECTION, "by_dateKey", order="desc")
        return [DailyLedger.from_doc(doc) for doc in docs]

    def set_commitments(self, date_key: str, task_ids: list[str]) -> DailyLedger:
        """Replace the day's commitments wholesale. All ids are checked before writing."""
        date_key = normalize_date_key(date_key)
        unique_ids = dedupe_ids(task_ids)
        for task_id in unique_ids:
            self._require_committable(task_id)

        ledger = self.get_or_create(date_key)
        self._save_commitments(ledger, unique_ids)
        ledger.commitment_task_ids = unique_ids
        return ledger

    def add_commitment(self, date_key: str, task_id: str) -> Outcome:
        date_key = normalize_date_key(date_key)
        self._require_committable(task_id)

        ledger = self.get_or_create(date_key)
        if ledger.is_committed(task_id):
            return Outcome.IGNORED
        self._save_commitments(ledger, [*ledger.commitment_task_ids, task_id])
        return Outcome.APPLIED

    def remove_commitment(self, date_key: str, task_id: str) -> Outcome:
        ledger = self.get_or_create(date_key)
        if not ledger.is_committed(task_id):
            return Outcome.IGNORED
        self._save_commitments(ledger, [i for i in ledger.commitment_task_ids if i != task_id])
        return Outcome.APPLIED

    def mark_ritual_completed(self, date_key: str, ritual: RitualKind | str) -> DailyLedger:
        """Stamp a ritual as done now. Re-running a ritual just moves the stamp."""
        try:
            ritual = RitualKind(ritual)
        except ValueError as e:
            raise ValidationError(f"Unknown ritual: {ritual!r}") from e

        ledger = self.get_or_create(date_key)
        now = format_timestamp(self.clock())
        self.store.patch(COLLECTION, ledger.id, {ritual.field_name: now, "updatedAt": now})
        logger.info(f"{ritual.value.capitalize()} ritual completed for {ledger.date_key}")
        return self.get(ledger.date_key)

    def _require_committable(self, task_id: str) -> None:
        task = self.tasks.find(task_id)
        if task is None:
            raise ValidationError("Task not found.")
        if not task.is_active:
            raise ValidationError("Only active tasks can be committed.")

    def _save_commitments(self, ledger: DailyLedger, task_ids: list[str]) -> None:
        self.store.patch(
            COLLECTION,
            ledger.id,
            {"commitmentTaskIds": task_ids, "updatedAt": format_timestamp(self.clock())},
        )
