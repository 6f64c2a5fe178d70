"""
Domain Errors

Every failure the services can signal, each carrying the HTTP status and
machine-readable reason the API reports for it.
"""

from typing import Any, Dict, List, Optional


class CommerceError(Exception):
    """Base class for all domain errors"""
    status_code: int = 500
    reason: str = "internal_error"

    def __init__(self, message: str, **details: Any):
        super().__init__(message)
        self.message = message
        self.details = details

    def to_dict(self) -> Dict[str, Any]:
        body: Dict[str, Any] = {"reason": self.reason, "message": self.message}
        if self.details:
            body["details"] = self.details
        return body


class ValidationFailure(CommerceError):
    """Malformed or missing input"""
    status_code = 400
    reason = "validation_failure"

    def __init__(self, message: str, violations: Optional[List[Dict[str, Any]]] = None, **details: Any):
        super().__init__(message, **details)
        self.violations = violations or []

    def to_dict(self) -> Dict[str, Any]:
        body = super().to_dict()
        body["violations"] = self.violations
        return body


class InvalidIdentifier(ValidationFailure):
    """An identifier that is not a well-formed reference"""
    reason = "invalid_identifier"

    def __init__(self, value: Any):
        super().__init__(f"Invalid identifier: {value!r}", identifier=str(value))


class NotFound(CommerceError):
    """A well-formed identifier with no matching record"""
    status_code = 404
    reason = "not_found"

    def __init__(self, collection: str, identifier: str):
        super().__init__(f"{collection} {identifier} not found", collection=collection, id=identifier)


class InvalidReference(CommerceError):
    """Referenced ids that are well-formed but do not (all) resolve"""
    status_code = 400
    reason = "invalid_reference"

    def __init__(self, message: str, missing: Optional[List[str]] = None):
        super().__init__(message, missing=missing or [])
        self.missing = missing or []


class DuplicateRecord(CommerceError):
    """A write rejected by a uniqueness constraint"""
    status_code = 409
    reason = "duplicate_record"


class UpstreamFailure(CommerceError):
    """A datastore or external dependency failed"""
    status_code = 500
    reason = "upstream_failure"


class StoreUnavailable(UpstreamFailure):
    """The datastore could not be reached or failed mid-operation"""
    reason = "store_unavailable"


class PartialFailure(CommerceError):
    """
    The primary write succeeded but a derived step did not.

    Never sent to clients: the request still succeeds and the
    inconsistency is logged.
    """
    reason = "partial_failure"

    def __init__(self, message: str, cause: Optional[BaseException] = None, **details: Any):
        super().__init__(message, **details)
        self.cause = cause
