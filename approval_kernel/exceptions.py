"""
Typed Exception Hierarchy for the Approval Kernel.

===============================================================================
WHY TYPED EXCEPTIONS
===============================================================================

Callers of the workflow (route handlers, batch jobs, tests) must react to
each failure differently: a validation failure goes back to the form, a
stale-state conflict is re-fetched and retried, an invalid transition is
an integration bug.  Parsing message strings for that is fragile, so:

  1. Every error has a TYPED exception class (catch by type, not message)
  2. Every exception has a CODE attribute (machine-readable, API-safe)
  3. Exceptions carry structured DATA (not just a message string)

===============================================================================
EXCEPTION HIERARCHY
===============================================================================

All exceptions inherit from ApprovalWorkflowError:

    ApprovalWorkflowError (base)
    |
    +-- ValidationError
    |
    +-- DocumentError
    |   +-- DocumentNotFoundError
    |
    +-- AuthorizationError
    |   +-- PermissionDeniedError
    |
    +-- TransitionError
    |   +-- InvalidTransitionError
    |
    +-- ConcurrencyError
    |   +-- StaleStateError
    |
    +-- ImmutabilityError
    |   +-- ImmutabilityViolationError
    |
    +-- ConfigurationError

===============================================================================
ERROR CODES - QUICK REFERENCE
===============================================================================

Category        | Code                        | When Raised
----------------|-----------------------------|-----------------------------------------
Validation      | VALIDATION_FAILED           | Bad submission field, blank reason
----------------|-----------------------------|-----------------------------------------
Document        | DOCUMENT_NOT_FOUND          | Unknown id / family combination
----------------|-----------------------------|-----------------------------------------
Authorization   | PERMISSION_DENIED           | Actor tier or scope mismatch
----------------|-----------------------------|-----------------------------------------
Transition      | INVALID_TRANSITION          | Action not declared for current state
----------------|-----------------------------|-----------------------------------------
Concurrency     | STALE_STATE                 | Document changed since it was read
----------------|-----------------------------|-----------------------------------------
Immutability    | IMMUTABILITY_VIOLATION      | History / ledger row modified
----------------|-----------------------------|-----------------------------------------
Configuration   | CONFIGURATION_ERROR         | Malformed workflow configuration

===============================================================================
HANDLING PATTERNS
===============================================================================

1. STALE STATE IS RECOVERABLE:

    try:
        workflow.approve(doc_id, family, actor)
    except StaleStateError:
        document = workflow.get_document(doc_id, family)  # re-fetch
        ...                                               # and decide again

2. VALIDATION ERRORS CARRY FIELD DETAIL:

    except ValidationError as e:
        return {"error": e.code, "fields": [f for f, _ in e.errors]}
"""


class ApprovalWorkflowError(Exception):
    """
    Base exception for all approval workflow errors.

    All subclasses must have a `code` class attribute for machine-readable
    error identification.
    """

    code: str = "APPROVAL_WORKFLOW_ERROR"


# Validation


class ValidationError(ApprovalWorkflowError):
    """
    Input rejected before any state mutation.

    ``errors`` is a tuple of ``(field, message)`` pairs so that callers can
    attach each message to its form field.
    """

    code: str = "VALIDATION_FAILED"

    def __init__(self, errors: list[tuple[str, str]] | tuple[tuple[str, str], ...]):
        self.errors = tuple(errors)
        detail = "; ".join(f"{field}: {message}" for field, message in self.errors)
        super().__init__(f"Validation failed: {detail}")


# Document-related exceptions


class DocumentError(ApprovalWorkflowError):
    """Base exception for document lookup errors."""

    code: str = "DOCUMENT_ERROR"


class DocumentNotFoundError(DocumentError):
    """No document with the given id exists for the given family."""

    code: str = "DOCUMENT_NOT_FOUND"

    def __init__(self, document_id: str, family: str):
        self.document_id = document_id
        self.family = family
        super().__init__(f"{family} document not found: {document_id}")


# Authorization


class AuthorizationError(ApprovalWorkflowError):
    """Base exception for actor authorization errors."""

    code: str = "AUTHORIZATION_ERROR"


class PermissionDeniedError(AuthorizationError):
    """The actor's tier or scope does not cover the requested action."""

    code: str = "PERMISSION_DENIED"

    def __init__(
        self,
        actor_id: str | None,
        action: str,
        required_tier: str,
        actor_tier: str,
        reason: str,
    ):
        self.actor_id = actor_id
        self.action = action
        self.required_tier = required_tier
        self.actor_tier = actor_tier
        self.reason = reason
        super().__init__(
            f"Actor {actor_id or '<anonymous>'} ({actor_tier}) may not perform '{action}' "
            f"(requires {required_tier}): {reason}"
        )


# Transition errors


class TransitionError(ApprovalWorkflowError):
    """Base exception for state machine errors."""

    code: str = "TRANSITION_ERROR"


class InvalidTransitionError(TransitionError):
    """The action is not declared for the document's current state."""

    code: str = "INVALID_TRANSITION"

    def __init__(self, family: str, state: str, action: str):
        self.family = family
        self.state = state
        self.action = action
        super().__init__(
            f"Invalid transition for {family}: '{action}' from state '{state}'"
        )


# Concurrency


class ConcurrencyError(ApprovalWorkflowError):
    """Base exception for concurrency-related errors."""

    code: str = "CONCURRENCY_ERROR"


class StaleStateError(ConcurrencyError):
    """
    Optimistic compare-and-set failed.

    The document's state changed between the read and the conditional
    write.  Recoverable: re-fetch and retry.
    """

    code: str = "STALE_STATE"

    def __init__(self, document_id: str, expected_state: str, expected_version: int):
        self.document_id = document_id
        self.expected_state = expected_state
        self.expected_version = expected_version
        super().__init__(
            f"Document {document_id} was modified concurrently "
            f"(expected state '{expected_state}' at version {expected_version})"
        )


# Immutability


class ImmutabilityError(ApprovalWorkflowError):
    """Base exception for immutability-related errors."""

    code: str = "IMMUTABILITY_ERROR"


class ImmutabilityViolationError(ImmutabilityError):
    """Attempted to modify or delete an append-only record."""

    code: str = "IMMUTABILITY_VIOLATION"

    def __init__(self, entity_type: str, entity_id: str, reason: str):
        self.entity_type = entity_type
        self.entity_id = entity_id
        self.reason = reason
        super().__init__(
            f"Immutability violation on {entity_type} {entity_id}: {reason}"
        )


# Configuration


class ConfigurationError(ApprovalWorkflowError):
    """The workflow configuration is malformed or incomplete."""

    code: str = "CONFIGURATION_ERROR"

    def __init__(self, source: str, reason: str):
        self.source = source
        self.reason = reason
        super().__init__(f"Invalid workflow configuration ({source}): {reason}")
