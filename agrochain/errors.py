"""
Error taxonomy shared by the three services
"""


class ServiceError(Exception):
    """Base class for errors surfaced to API callers"""
    status_code = 500
    title = 'Internal Server Error'

    def __init__(self, message: str = None):
        super().__init__(message or self.title)
        self.message = message or self.title

    def to_dict(self):
        return {
            'error': self.title,
            'message': self.message,
            'status_code': self.status_code
        }


class NotFound(ServiceError):
    """Referenced entity is absent"""
    status_code = 404
    title = 'Not Found'


class InvalidArgument(ServiceError):
    """Input violates a constraint"""
    status_code = 400
    title = 'Invalid Argument'


class Conflict(ServiceError):
    """Requested state transition is not allowed"""
    status_code = 409
    title = 'Conflict'


class DeliveryFailure(Exception):
    """
    Event or callback could not be delivered.

    Raised by sinks and handled by the emitter; it never reaches the
    caller of the operation that produced the event.
    """

    def __init__(self, message: str, retryable: bool = True):
        super().__init__(message)
        self.retryable = retryable
