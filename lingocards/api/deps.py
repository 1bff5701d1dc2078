"""Request-scoped dependencies: the caller's identity.

Authentication happens upstream; the gateway forwards the authenticated
user id and role as headers and this service trusts them.
"""

from dataclasses import dataclass

from fastapi import Request

from lingocards.config import settings
from lingocards.errors import ForbiddenError, UnauthorizedError


@dataclass(frozen=True)
class Identity:
    user_id: int
    role: str = "user"

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"


def get_identity(request: Request) -> Identity:
    raw_id = request.headers.get(settings.user_id_header)
    if not raw_id:
        raise UnauthorizedError("Authentication required")
    try:
        user_id = int(raw_id)
    except ValueError as exc:
        raise UnauthorizedError("Invalid user id") from exc
    role = request.headers.get(settings.user_role_header, "user").strip().lower() or "user"
    return Identity(user_id=user_id, role=role)


def require_admin(request: Request) -> Identity:
    identity = get_identity(request)
    if not identity.is_admin:
        raise ForbiddenError("Admin access required")
    return identity
