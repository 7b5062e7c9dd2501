"""Error categories surfaced by the analysis and query pipelines.

None of these are recovered from inside the service layer: they propagate to
the HTTP layer, where ``main`` renders them as ``{"message", "category"}``.
"""

from typing import Any, Optional


class AppError(Exception):
    status_code = 500
    category = "internal"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict[str, Any]:
        return {"message": self.message, "category": self.category}


class ValidationError(AppError):
    """Payload did not match the expected shape.

    ``upstream=True`` means the payload came from the reasoning capability, which
    is an integration fault (502). Otherwise the caller sent bad input (400).
    """

    category = "validation"

    def __init__(
        self,
        message: str,
        errors: Optional[list[dict[str, Any]]] = None,
        upstream: bool = False,
    ):
        super().__init__(message)
        self.errors = errors or []
        self.upstream = upstream
        self.status_code = 502 if upstream else 400

    def to_dict(self) -> dict[str, Any]:
        out = super().to_dict()
        out["errors"] = self.errors
        return out


class UpstreamUnavailable(AppError):
    status_code = 502
    category = "upstream_unavailable"


class NotFound(AppError):
    status_code = 404
    category = "not_found"


class Forbidden(AppError):
    status_code = 403
    category = "forbidden"


class StorageError(AppError):
    status_code = 503
    category = "storage"
