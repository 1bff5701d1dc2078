"""Error taxonomy shared by the engine and the HTTP layer.

Each error carries the HTTP status the API answers with; handlers in
``lingocards.main`` render them as ``{"error": message}``.
"""


class LingoError(Exception):
    status_code: int = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class BadRequestError(LingoError):
    status_code = 400


class UnauthorizedError(LingoError):
    status_code = 401


class ForbiddenError(LingoError):
    status_code = 403


class NotFoundError(LingoError):
    status_code = 404
