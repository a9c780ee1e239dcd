"""Domain error taxonomy.

Every error carries the HTTP status the API boundary renders it with, so routers
can let service errors propagate and a single exception handler converts them.
"""

from __future__ import annotations


class JobBoardError(Exception):
    status_code: int = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ValidationError(JobBoardError):
    status_code = 400


class ConflictError(JobBoardError):
    status_code = 409


class EmailConflictError(ConflictError):
    def __init__(self, email: str) -> None:
        super().__init__("Email already registered")
        self.email = email


class AlreadyAppliedError(ConflictError):
    def __init__(self, job_id: int, user_id: int) -> None:
        super().__init__("Already applied to this job")
        self.job_id = job_id
        self.user_id = user_id


class NotFoundError(JobBoardError):
    status_code = 404


class AuthError(JobBoardError):
    status_code = 401


class InvalidCredentialsError(AuthError):
    """Raised for both unknown emails and wrong passwords.

    `reason` is for server-side logs only and never reaches the client.
    """

    def __init__(self, reason: str) -> None:
        super().__init__("Invalid credentials")
        self.reason = reason


class DependencyError(JobBoardError):
    status_code = 503


class CacheError(DependencyError):
    pass


class ResumeParserError(DependencyError):
    status_code = 502
