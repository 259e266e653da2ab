"""Exceptions raised by the intervention services."""


class InterventionError(Exception):
    """Base exception for intervention service errors"""
    pass


class NotFoundError(InterventionError):
    """Raised when a user, interaction, step or intervention does not exist"""
    pass


class InvalidInputError(InterventionError):
    """Raised when a request is missing required fields or carries a malformed payload"""
    pass


class InternalError(InterventionError):
    """Raised when the storage layer fails; the message is safe to show callers"""
    pass
