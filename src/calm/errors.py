"""Error kinds raised by the planner stores."""


class CalmError(Exception):
    """Base class for planner errors surfaced to callers."""


class ValidationError(CalmError):
    """Bad input: blank title, malformed date, out-of-range length, bad URL."""


class NotFound(CalmError):
    """An operation referenced an id that does not exist."""

    def __init__(self, kind: str, item_id: str):
        super().__init__(f"{kind} not found: {item_id}")
        self.kind = kind
        self.item_id = item_id
