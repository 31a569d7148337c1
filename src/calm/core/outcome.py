"""Result tag for mutations that may be deliberate no-ops."""

from enum import Enum


class Outcome(Enum):
    """Whether a mutation changed anything.

    IGNORED is returned for repeated user actions (finishing a finished task,
    committing an already committed task, moving past a list boundary).
    """

    APPLIED = "applied"
    IGNORED = "ignored"

    @property
    def changed(self) -> bool:
        return self is Outcome.APPLIED
