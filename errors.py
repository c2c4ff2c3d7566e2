"""
Exceptions raised by the stores and flows.
Routes in main.py translate them into HTTP status codes.
"""


class KrishakMitraError(Exception):
    """Base class for application errors."""


class NotFoundError(KrishakMitraError):
    pass


class ForbiddenError(KrishakMitraError):
    """The document belongs to another user."""


class InvalidTransitionError(KrishakMitraError):
    pass


class FlowError(KrishakMitraError):
    """The model failed to produce output matching the flow's schema."""


class NotificationError(KrishakMitraError):
    pass
