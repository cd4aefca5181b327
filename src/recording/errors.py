"""Exceptions raised by the capture engine.

Only DuplicateStart and NotRecording reach the host. The others are raised
by one component and absorbed by its caller, which degrades to a valid
output instead of aborting the capture.
"""


class CaptureError(Exception):
    """Base exception for capture engine errors."""
    pass


class DuplicateStart(CaptureError):
    """A session is already recording."""
    pass


class NotRecording(CaptureError):
    """No session is recording."""
    pass


class UnknownTransaction(CaptureError):
    """Lifecycle signal for a transaction id that is not being tracked."""

    def __init__(self, transaction_id: str):
        super().__init__(f"Transaction not tracked: {transaction_id}")
        self.transaction_id = transaction_id


class IndexOutOfRange(CaptureError):
    """Timeline index does not reference an interaction entry."""

    def __init__(self, index: int):
        super().__init__(f"No interaction at timeline index {index}")
        self.index = index


class MalformedLocatorInput(CaptureError):
    """Element description cannot be expressed as a direct id lookup."""
    pass


class BodyDecodeFailure(CaptureError):
    """Raw request body is not valid text."""
    pass
