"""Domain-specific exceptions"""


class DomainException(Exception):
    """Base exception for domain layer"""

    pass


class ValidationError(DomainException):
    """Missing or invalid required field; the operation is aborted"""

    pass


class NotFoundError(DomainException):
    """Operation referenced an entity that is not in the ledger"""

    pass


class AuthorizationError(DomainException):
    """No signed-in user, or the entity belongs to another user"""

    pass


class AuthError(AuthorizationError):
    """Sign-in rejected: unknown user or wrong password"""

    pass


class RemoteError(DomainException):
    """Persistence backend failed or refused the operation"""

    pass
