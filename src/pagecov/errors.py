"""Exceptions raised by PageCov."""


class CoverageError(Exception):
    """Base class for PageCov errors."""


class CoverageStateError(CoverageError):
    """
    Raised when a collector is used out of order.

    Starting a collector that is already started, or stopping one that is not
    started, is a programming error and is never recovered from internally.
    """


class ProtocolError(CoverageError):
    """Raised by a session when the backend rejects a command."""

    def __init__(self, method: str, message: str) -> None:
        """
        Initialize the error with the failing command.

        Args:
            method: The protocol method that failed, e.g. 'Debugger.getScriptSource'.
            message: The error message reported by the backend.

        """
        super().__init__(f"{method}: {message}")
        self.method = method
        self.message = message
