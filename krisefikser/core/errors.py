"""Error taxonomy shared by services and routers."""


class ValidationError(ValueError):
    """
    Caller mistake: unknown entity, invalid transition, duplicate request,
    ownership violation or a lost race.

    Raised synchronously by services and translated to a 4xx response.
    """
    status_code = 400


class NotFoundError(ValidationError):
    """Referenced entity does not exist."""
    status_code = 404


class PermissionDeniedError(ValidationError):
    """Actor is not allowed to perform the operation on this entity."""
    status_code = 403


class DeliveryError(Exception):
    """Push channel failure. Logged and swallowed by notification_service."""
    pass


class InvariantViolation(RuntimeError):
    """Household aggregate found in an inconsistent state. Always a bug."""
    pass
