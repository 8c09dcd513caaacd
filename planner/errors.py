"""
Error taxonomy for the scheduling engine.

All of these are local validation failures raised where input is
constructed. None of them subclass ``ValueError``, so pydantic validators
let them propagate unchanged rather than wrapping them in a
``ValidationError``.
"""


class SchedulingError(Exception):
    """Base class for scheduling engine validation failures."""

    pass


class InvalidInterval(SchedulingError):
    """Raised when an interval does not satisfy start < end."""

    def __init__(self, start: object, end: object, what: str = "interval"):
        self.start = start
        self.end = end
        super().__init__(
            f"Invalid {what}: start {start} must be before end {end}"
        )


class MalformedRecurrenceRule(SchedulingError):
    """Raised for recurrence rules that are invalid or cannot terminate."""

    pass


class UnboundedExpansionWindow(SchedulingError):
    """Raised when a requested window spans more than the allowed maximum."""

    pass


class InsufficientData(SchedulingError):
    """Raised when a required piece of data is missing."""

    pass
