"""Error taxonomy shared by services and the HTTP layer."""

from uuid import UUID


class PortfolioError(Exception):
    """Base error. `code` and `status_code` feed the response envelope."""

    code = "INTERNAL_ERROR"
    status_code = 500

    def __init__(self, message: str | None = None):
        super().__init__(message or self.code)
        self.message = message or self.code


class NotFound(PortfolioError):
    code = "NOT_FOUND"
    status_code = 404


class Forbidden(PortfolioError):
    code = "FORBIDDEN"
    status_code = 403


class ValidationFailure(PortfolioError):
    """Malformed input, rejected before any persistence attempt."""

    code = "VALIDATION_ERROR"
    status_code = 400

    def __init__(self, message: str | None = None, details: list | None = None):
        super().__init__(message or "Invalid request parameters")
        self.details = details or []


class DimensionMismatch(PortfolioError):
    code = "DIMENSION_MISMATCH"
    status_code = 500


class DependencyUnavailable(PortfolioError):
    """Store or search engine unreachable on a read path."""

    code = "DEPENDENCY_UNAVAILABLE"
    status_code = 503


class PropagationFailure(PortfolioError):
    """A side effect failed after the primary write committed.

    Never raised to lifecycle callers; collected in a PropagationReport and logged.
    """

    code = "PROPAGATION_FAILURE"

    def __init__(self, step: str, project_id: UUID, cause: BaseException | None = None):
        super().__init__(f"{step} failed for project {project_id}: {cause!r}")
        self.step = step
        self.project_id = project_id
        self.cause = cause
