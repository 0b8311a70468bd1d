"""Error taxonomy for the extraction and alerting pipeline.

Provider, lookup and delivery failures are recovered where they happen;
only ``InputError`` is surfaced to callers of the extraction pipeline.
"""


class VitalViewError(Exception):
    """Base class for service errors."""


class ProviderFailure(VitalViewError):
    """A recognition provider errored or returned an unparsable answer."""

    def __init__(self, provider: str, reason: str) -> None:
        super().__init__(f"{provider}: {reason}")
        self.provider = provider
        self.reason = reason


class InputError(VitalViewError):
    """The caller supplied unusable input."""


class MissingImageError(InputError):
    def __init__(self) -> None:
        super().__init__("Image data is required")


class InvalidImageError(InputError):
    def __init__(self, reason: str) -> None:
        super().__init__(f"Image data could not be decoded: {reason}")


class LookupFailure(VitalViewError):
    """Subject context could not be resolved."""


class SubjectNotFoundError(LookupFailure):
    def __init__(self, subject_id: str) -> None:
        super().__init__(f"No patient registered for subject {subject_id}")
        self.subject_id = subject_id


class DeliveryFailure(VitalViewError):
    """A notification channel rejected a message."""
