"""Business-rule failures raised by the governance engine.

Every failure is synchronous and non-retriable. The HTTP layer maps them:

- NotFoundError: a referenced entity or role does not exist (404)
- InvalidArgumentError: caller-supplied data breaks a rule (400)
- InvalidStateError: the target's current state forbids the operation (409)
"""


class GovernanceError(Exception):
    """Base class for governance rule failures."""

    error_code = "GOVERNANCE_ERROR"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NotFoundError(GovernanceError):
    """Raised when a referenced entity cannot be resolved."""

    error_code = "NOT_FOUND"

    def __init__(self, entity: str, key: object):
        super().__init__(f"{entity} not found: {key}")
        self.entity = entity
        self.key = key


class InvalidArgumentError(GovernanceError):
    """Raised when the caller's input violates a governance rule."""

    error_code = "INVALID_ARGUMENT"


class InvalidStateError(GovernanceError):
    """Raised when the entity's current state does not allow the operation."""

    error_code = "INVALID_STATE"
