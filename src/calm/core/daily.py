"""Daily ledger domain: commitments and ritual check-ins for one date."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum

from .dates import format_timestamp, parse_timestamp
from .tasks import Task


class RitualKind(Enum):
    MORNING = "morning"
    EVENING = "evening"
    RESET = "reset"

    @property
    def field_name(self) -> str:
        """Document field stamped when this ritual completes."""
        return f"{self.value}CompletedAt"


@dataclass
class DailyLedger:
    """One day's commitments and ritual completion times."""

    id: str
    date_key: str
    updated_at: datetime
    commitment_task_ids: list[str] = field(default_factory=list)
    morning_completed_at: datetime | None = None
    evening_completed_at: datetime | None = None
    reset_completed_at: datetime | None = None

    def completed_at(self, ritual: RitualKind) -> datetime | None:
        return getattr(self, f"{ritual.value}_completed_at")

    def is_committed(self, task_id: str) -> bool:
        return task_id in self.commitment_task_ids

    @classmethod
    def from_doc(cls, doc: dict) -> "DailyLedger":
        return cls(
            id=doc["_id"],
            date_key=doc["dateKey"],
            updated_at=parse_timestamp(doc["updatedAt"]),
            commitment_task_ids=list(doc.get("commitmentTaskIds", [])),
            morning_completed_at=parse_timestamp(doc.get("morningCompletedAt")),
            evening_completed_at=parse_timestamp(doc.get("eveningCompletedAt")),
            reset_completed_at=parse_timestamp(doc.get("resetCompletedAt")),
        )

    def to_doc(self) -> dict:
        doc = {
            "dateKey": self.date_key,
            "commitmentTaskIds": list(self.commitment_task_ids),
            "updatedAt": format_timestamp(self.updated_at),
        }
        for ritual in RitualKind:
            stamp = self.completed_at(ritual)
            if stamp is not None:
                doc[ritual.field_name] = format_timestamp(stamp)
        return doc

    def to_dict(self) -> dict:
        return {"id": self.id, **self.to_doc()}


@dataclass
class DailyModel:
    """Today's ledger (if any) with its committed tasks resolved."""

    today_key: str
    daily: DailyLedger | None
    commitment_tasks: list[Task] = field(default_factory=list)


def dedupe_ids(ids: list[str]) -> list[str]:
    """Drop repeats, keeping the order of first occurrence."""
    return list(dict.fromkeys(ids))
