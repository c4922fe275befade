"""Error taxonomy for the batch pipeline.

StageError subclasses describe one pair's failure and are caught at the
pair boundary by the orchestrator. BatchError subclasses end the whole run
and carry the BatchResult collected so far.
"""

from enum import Enum


class FetchFailure(str, Enum):
    NOT_FOUND = "not_found"
    CORRUPT = "corrupt"
    INVALID_FORMAT = "invalid_format"
    TRANSFER_FAILED = "transfer_failed"


class OverlayBatchError(Exception):
    reason = "error"

    @property
    def reason_name(self) -> str:
        return getattr(self.reason, "value", self.reason)


class StageError(OverlayBatchError):
    """A failed stage for one pair. `ref` names the input that failed."""

    reason = "stage_failed"

    def __init__(self, ref: str, message: str):
        super().__init__(f"{ref}: {message}")
        self.ref = ref
        self.message = message


class FetchError(StageError):
    def __init__(self, reason: FetchFailure, ref: str, message: str):
        super().__init__(ref, message)
        self.reason = reason


class TranscodeError(StageError):
    reason = "encode_failed"


class CompositeError(StageError):
    reason = "overlay_failed"


class BatchError(OverlayBatchError):
    """A failure of the batch as a whole."""

    reason = "batch_failed"

    def __init__(self, message: str, result=None):
        super().__init__(message)
        self.result = result


class ConcatError(BatchError):
    reason = "assemble_failed"


class NothingToAssemble(BatchError):
    reason = "nothing_to_assemble"


class BatchAborted(BatchError):
    reason = "aborted"
