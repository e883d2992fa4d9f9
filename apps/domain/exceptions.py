"""Signature workflow error hierarchy."""

from typing import Any, Dict, Optional


class SignatureWorkflowError(Exception):
    """Base exception for signature workflow errors."""

    code = 'internal_error'
    status_code = 500

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        self.message = message
        self.details = details
        super().__init__(message)


class ValidationError(SignatureWorkflowError):
    """Malformed input. Reported verbatim, never retried."""

    code = 'validation_error'
    status_code = 400


class AccessDenied(SignatureWorkflowError):
    """Caller lacks the organization or role entitlement."""

    code = 'access_denied'
    status_code = 403


class NotFound(SignatureWorkflowError):
    code = 'not_found'
    status_code = 404


class StateConflict(SignatureWorkflowError):
    """Operation is invalid for the current request or signer status."""

    code = 'state_conflict'
    status_code = 409


class IntegrityViolation(SignatureWorkflowError):
    """Confirmed mismatch between the baseline hash and the current document content.

    Must reach the caller unmodified; best-effort guards never catch it.
    """

    code = 'integrity_violation'
    status_code = 409

    def __init__(self, message: str, expected_hash: str, actual_hash: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(
            message,
            details={**(details or {}), 'expected_hash': expected_hash, 'actual_hash': actual_hash},
        )
        self.expected_hash = expected_hash
        self.actual_hash = actual_hash


class TransientDependencyError(SignatureWorkflowError):
    """Network or storage failure of an external collaborator."""

    code = 'dependency_error'
    status_code = 503
