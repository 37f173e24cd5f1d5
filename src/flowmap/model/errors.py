"""
Error taxonomy shared by the model, controllers and the loaders.

Gesture problems (rotating a flat map, panning a globe, zero zoom factors)
are not errors and never raise; they are ignored where they are handled.
"""


class FlowMapError(Exception):
    """Base class for all flowmap errors."""


class InvalidProjection(FlowMapError, ValueError):
    """An unknown projection kind was requested."""

    def __init__(self, kind: object) -> None:
        super().__init__(f"Invalid projection {kind!r}")
        self.kind = kind


class InvalidRecord(FlowMapError, ValueError):
    """A flow record is missing required geometry/time fields or breaks an invariant."""

    def __init__(self, message: str, record_id: object = None) -> None:
        if record_id is not None:
            message = f"Record {record_id!r}: {message}"
        super().__init__(message)
        self.record_id = record_id


class EmptyDataset(FlowMapError):
    """Time bounds were requested for a dataset without records."""

    def __init__(self, message: str = "Cannot compute time bounds of an empty dataset.") -> None:
        super().__init__(message)


class MalformedData(FlowMapError):
    """A loaded payload does not have the expected top-level shape."""
