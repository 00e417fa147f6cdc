from typing import Optional


class GenerationError(RuntimeError):
    """Base class for failures in the video generation lifecycle."""


class ValidationError(GenerationError):
    """Input rejected locally, before anything is sent to the model."""


class RequestError(GenerationError):
    """The remote service rejected the generation request."""


class TransientPollError(GenerationError):
    """A single status query failed. The polling loop retries it."""


class PollLimitExceededError(GenerationError):
    pass


class MissingResultError(GenerationError):
    """The operation completed without a downloadable video."""


class DownloadError(GenerationError):
    def __init__(self, message: str, status_code: Optional[int] = None, body: str = "") -> None:
        super().__init__(message)
        self.status_code = status_code
        self.body = body


class UnclassifiedError(GenerationError):
    pass


class JobNotFoundError(GenerationError):
    pass


class GenerationInProgressError(GenerationError):
    pass
