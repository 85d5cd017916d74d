"""Errors raised by the session manager."""


class SessionError(Exception):
    """Base class for session manager failures."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class SessionStateError(SessionError):
    """The operation is not valid in the current connection state."""


class AlreadyConnected(SessionStateError):
    pass


class NotConnected(SessionStateError):
    pass


class BrokerOperationError(SessionError):
    """The broker client failed while carrying out an operation."""


class BrokerUnavailable(BrokerOperationError):
    pass


class SendFailed(BrokerOperationError):
    pass


class ReceiveFailed(BrokerOperationError):
    pass
