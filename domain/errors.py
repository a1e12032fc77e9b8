class EvaluationError(Exception):
    """Base class for every error raised by the evaluation core."""

    retryable = False


class TransportError(EvaluationError):
    """Network or upstream API failure (LLM, embeddings, vector search)."""

    def __init__(self, message: str, *, retryable: bool = True, status_code: int | None = None):
        super().__init__(message)
        self.retryable = retryable
        self.status_code = status_code


class ValidationError(EvaluationError):
    """Structured output did not satisfy its contract."""


class ParseError(ValidationError):
    """A syntactically valid response held no parseable JSON object."""


class NotFoundError(EvaluationError):
    """Unknown job id or document reference."""


class ResourceError(EvaluationError):
    """Input document is unreadable or corrupt."""


class InvalidTransitionError(EvaluationError):
    def __init__(self, job_id: str, current: str, target: str):
        super().__init__(f"illegal transition for {job_id}: {current} -> {target}")
        self.job_id = job_id
        self.current = current
        self.target = target


class QueueUnavailableError(EvaluationError):
    """The job queue is not accepting work."""


class DuplicateJobError(EvaluationError):
    pass
