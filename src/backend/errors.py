# src/backend/errors.py

"""Errors raised by backend collaborators."""


class BackendError(Exception):
    """An auth or store call failed.

    ``str(error)`` is the collaborator's own message and is shown to
    the user verbatim.  ``status_code`` is ``None`` for network
    failures that never produced an HTTP response.
    """

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        code: str | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.code = code
