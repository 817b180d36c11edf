"""
Error taxonomy for the pending-comment pipeline.

Only ConfigurationError is fatal; transport and event errors are contained
at the controller and store boundaries and logged.
"""


class PendingError(Exception):
    """Base class for all pipeline errors."""


class ConfigurationError(PendingError):
    """Invalid invocation target or configuration, raised before the pipeline starts."""


class TransportError(PendingError):
    """A scan or attribution query failed."""

    def __init__(self, source: str, detail: str):
        super().__init__(f"{source}: {detail}")
        self.source = source
        self.detail = detail


class MalformedEvent(PendingError):
    """An event is missing required fields."""

    def __init__(self, event, missing):
        self.event = event
        self.missing = list(missing)
        super().__init__(f"{type(event).__name__} missing {', '.join(self.missing)}")
