"""Error taxonomy for search and featured rotation.

- ValidationError: bad input the caller can fix (HTTP 400)
- TransientRetrievalError: one retrieval path failed; absorbed by the
  orchestrator, which carries on with the other path
- FatalEngineError: every retrieval path failed, or the store failed during
  rotation (HTTP 500, not retried)
"""


class EngineError(RuntimeError):
    code = "INTERNAL_ERROR"


class ValidationError(EngineError):
    code = "VALIDATION_ERROR"

    def __init__(self, message: str, field: str | None = None) -> None:
        super().__init__(message)
        self.field = field


class TransientRetrievalError(EngineError):
    def __init__(self, path: str, cause: BaseException) -> None:
        super().__init__(f"{path} retrieval failed: {cause}")
        self.path = path
        self.cause = cause


class FatalEngineError(EngineError):
    pass
