class BokkalError(Exception):
    """Base domain error."""


class ValidationError(BokkalError):
    """Raised when input is malformed or incomplete, before any write."""


class AuthenticationError(BokkalError):
    """Raised when an operation needs an acting user and there is none."""


class AuthorizationError(BokkalError):
    """Raised when the acting user lacks the role or ownership required."""


class SelfDemotionError(BokkalError):
    """Raised when an admin tries to revoke their own admin flag."""


class NotFoundError(BokkalError):
    """Raised when the target event or user does not exist for this actor."""


class UpstreamError(BokkalError):
    """Raised when the record store or user directory call failed.

    The effect of the failed call is unknown and must not be assumed applied.
    """
