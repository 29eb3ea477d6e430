"""Acting user, taken from request headers.

Authentication is handled upstream (gateway / BaaS auth); the ledger only
records who performed each operation.
"""

from dataclasses import dataclass
from typing import Annotated
from urllib.parse import quote, unquote

from fastapi import Depends, Header


@dataclass(frozen=True)
class Actor:
    id: int | None = None
    name: str | None = None


SYSTEM_ACTOR = Actor(id=None, name="system")


def encode_actor_name(name: str) -> str:
    """Header-safe form of a display name (HTTP headers carry Latin-1 only)."""
    return quote(name, safe="")


async def get_actor(
    x_user_id: Annotated[int | None, Header()] = None,
    x_user_name: Annotated[str | None, Header()] = None,
) -> Actor:
    """
    Dependency resolving the acting user from X-User-Id / X-User-Name headers.

    X-User-Name is percent-encoded UTF-8, e.g. "Nguy%E1%BB%85n%20V%C4%83n%20An".

    Usage:
        @router.post("/allocations")
        async def allocate(actor: CurrentActor):
            ...
    """
    name = unquote(x_user_name).strip() if x_user_name else None
    return Actor(id=x_user_id, name=name or None)


CurrentActor = Annotated[Actor, Depends(get_actor)]
