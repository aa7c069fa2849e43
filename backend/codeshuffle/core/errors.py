"""Error Hierarchy - typed, categorized exceptions for every contest failure mode.

Invariants:
    - Every error has a code (str), category (ErrorCategory), severity (ErrorSeverity)
    - Domain errors (400-level) are surfaced to the caller and never retried
    - JudgeGatewayError is caught per test case inside run; it never reaches a client
    - to_response() produces the REST envelope; no internal details leaked

Design Decisions:
    - Single hierarchy with CodeShuffleError base: one FastAPI handler catches all
    - ErrorContext as dataclass: observability fields without coupling to logging
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any


class ErrorSeverity(str, Enum):
    """Error severity for observability and client handling."""
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class ErrorCategory(str, Enum):
    """High-level error categories for routing and handling."""
    VALIDATION = "validation"
    BUSINESS_RULE = "business_rule"
    RESOURCE_NOT_FOUND = "resource_not_found"
    UNAUTHORIZED = "unauthorized"
    DATABASE = "database"
    EXTERNAL_API = "external_api"
    INTERNAL = "internal"
    CONFLICT = "conflict"


@dataclass
class ErrorContext:
    """Context attached to an error for logs and responses."""
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    team_name: str | None = None
    handle: str | None = None
    round_number: int | None = None
    debug_info: dict[str, Any] | None = None


class CodeShuffleError(Exception):
    """Base exception for all contest errors."""

    def __init__(
        self,
        message: str,
        code: str,
        category: ErrorCategory,
        severity: ErrorSeverity = ErrorSeverity.ERROR,
        context: ErrorContext | None = None,
        http_status: int = 500,
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.category = category
        self.severity = severity
        self.context = context or ErrorContext()
        self.http_status = http_status

    def to_response(self) -> dict:
        """Convert to standardized REST error response."""
        return {
            "error": {
                "code": self.code,
                "message": self.message,
                "category": self.category.value,
                "severity": self.severity.value,
                "timestamp": self.context.timestamp.isoformat(),
                "context": {
                    "team_name": self.context.team_name,
                    "handle": self.context.handle,
                    "round_number": self.context.round_number,
                },
            }
        }


# ─── Domain Errors (400-level) ──────────────────────────────────

class ResourceNotFoundError(CodeShuffleError):
    """Requested resource does not exist."""
    def __init__(
        self, resource_type: str, resource_id: str,
        code: str = "RESOURCE_NOT_FOUND", context: ErrorContext | None = None,
    ):
        super().__init__(
            f"{resource_type} '{resource_id}' not found",
            code, ErrorCategory.RESOURCE_NOT_FOUND,
            ErrorSeverity.ERROR, context, 404,
        )
        self.resource_type = resource_type
        self.resource_id = resource_id


class TeamNotFoundError(ResourceNotFoundError):
    def __init__(self, team_name: str, context: ErrorContext | None = None):
        super().__init__("Team", team_name, "TEAM_NOT_FOUND", context)


class MemberNotFoundError(ResourceNotFoundError):
    def __init__(
        self, team_name: str, handle: str, context: ErrorContext | None = None,
    ):
        super().__init__(
            "Member", f"{handle}@{team_name}", "MEMBER_NOT_FOUND", context,
        )


class ProblemNotFoundError(ResourceNotFoundError):
    def __init__(self, problem_id: str, context: ErrorContext | None = None):
        super().__init__("Problem", problem_id, "PROBLEM_NOT_FOUND", context)


class ValidationFailureError(CodeShuffleError):
    """Required reference or field missing or malformed. Nothing was mutated."""
    def __init__(
        self, message: str, field: str,
        code: str = "VALIDATION_ERROR", context: ErrorContext | None = None,
    ):
        super().__init__(
            message, code, ErrorCategory.VALIDATION,
            ErrorSeverity.ERROR, context, 400,
        )
        self.field = field


class MissingProblemReferenceError(ValidationFailureError):
    def __init__(self, context: ErrorContext | None = None):
        super().__init__(
            "A problem reference is required to save code.",
            "problem_id", "MISSING_PROBLEM_REFERENCE", context,
        )


class ProblemNotAssignedError(ValidationFailureError):
    def __init__(self, problem_id: str, context: ErrorContext | None = None):
        super().__init__(
            f"Problem '{problem_id}' is not assigned to this team.",
            "problem_id", "PROBLEM_NOT_ASSIGNED", context,
        )


class UnauthorizedError(CodeShuffleError):
    """Admin secret mismatch."""
    def __init__(self, context: ErrorContext | None = None):
        super().__init__(
            "Unauthorized", "UNAUTHORIZED", ErrorCategory.UNAUTHORIZED,
            ErrorSeverity.WARNING, context, 403,
        )


class InsufficientCatalogError(CodeShuffleError):
    """Catalog lacks at least one problem in some tier."""
    def __init__(self, missing_tiers: list[str], context: ErrorContext | None = None):
        super().__init__(
            "Not enough problems to start a session. "
            f"Missing difficulty tier(s): {', '.join(missing_tiers)}",
            "INSUFFICIENT_CATALOG", ErrorCategory.BUSINESS_RULE,
            ErrorSeverity.ERROR, context, 409,
        )
        self.missing_tiers = missing_tiers


class SessionNotStartedError(CodeShuffleError):
    """Operation needs an active team but the session was never started."""
    def __init__(self, team_name: str, context: ErrorContext | None = None):
        super().__init__(
            f"Team '{team_name}' has not started its session.",
            "SESSION_NOT_STARTED", ErrorCategory.BUSINESS_RULE,
            ErrorSeverity.ERROR, context, 409,
        )


class EventExpiredError(CodeShuffleError):
    """Event clock ran out for this team."""
    def __init__(self, team_name: str, context: ErrorContext | None = None):
        super().__init__(
            f"The event has expired for team '{team_name}'.",
            "EVENT_EXPIRED", ErrorCategory.BUSINESS_RULE,
            ErrorSeverity.WARNING, context, 409,
        )


class NoTestCasesError(CodeShuffleError):
    def __init__(self, problem_id: str, context: ErrorContext | None = None):
        super().__init__(
            f"No test cases found for problem '{problem_id}'.",
            "NO_TEST_CASES", ErrorCategory.BUSINESS_RULE,
            ErrorSeverity.ERROR, context, 400,
        )


class DuplicateTeamError(CodeShuffleError):
    def __init__(self, team_name: str, context: ErrorContext | None = None):
        super().__init__(
            f"Team name '{team_name}' already exists",
            "DUPLICATE_TEAM", ErrorCategory.CONFLICT,
            ErrorSeverity.ERROR, context, 409,
        )


# ─── Infrastructure Errors (500-level) ──────────────────────────

class DatabaseError(CodeShuffleError):
    """Database operation failed."""
    def __init__(self, message: str, operation: str, context: ErrorContext | None = None):
        super().__init__(
            f"Database {operation} failed: {message}",
            "DATABASE_ERROR", ErrorCategory.DATABASE,
            ErrorSeverity.CRITICAL, context, 503,
        )
        self.operation = operation


class JudgeGatewayError(CodeShuffleError):
    """Judge call failed or timed out."""
    def __init__(
        self, message: str, failure_type: str, context: ErrorContext | None = None,
    ):
        super().__init__(
            f"Judge error ({failure_type}): {message}",
            "JUDGE_GATEWAY_ERROR", ErrorCategory.EXTERNAL_API,
            ErrorSeverity.ERROR, context, 503,
        )
        self.failure_type = failure_type
