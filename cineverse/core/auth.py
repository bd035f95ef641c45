from dataclasses import dataclass
from enum import Enum
from fastapi import Depends, Header

from cineverse.core.exceptions import ForbiddenError


class Role(str, Enum):
    ADMIN = "admin"
    VENDOR = "vendor"
    USER = "user"


@dataclass(frozen=True)
class Actor:
    user_id: str
    role: Role = Role.USER

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN


async def get_actor(
        user_id: str = Header(..., alias="X-User-Id"),
        role: Role = Header(Role.USER, alias="X-User-Role")) -> Actor:
    # identity comes from the auth gateway in front of us and is trusted as-is
    return Actor(user_id=user_id, role=role)


def require_roles(*roles: Role):
    async def dependency(actor: Actor = Depends(get_actor)) -> Actor:
        if actor.role not in roles:
            raise ForbiddenError(f"Role {actor.role.value} may not do this")
        return actor
    return dependency


def ensure_owner(actor: Actor, owner_id: str, what: str) -> None:
    if actor.is_admin or actor.user_id == owner_id:
        return
    raise ForbiddenError(f"{what} belongs to another user")
