"""FastAPI dependencies: per-request services and the acting user."""

from typing import Generator, Optional

from fastapi import Depends, Header, HTTPException, Request, status

from platecount.domain.entities import Batch, User
from platecount.domain.errors import NotFoundError, batch_not_found
from platecount.services import Services, build_services


def get_services(request: Request) -> Generator[Services, None, None]:
    """Services over a database handle of their own for the duration of one request."""
    state = request.app.state
    db = state.database.clone()
    try:
        yield build_services(
            db,
            settings=state.settings,
            clock=state.clock,
            renderer=state.renderer,
            dispatcher=state.dispatcher,
            changes=state.changes,
        )
    finally:
        db.disconnect()


def get_actor(
    x_user_id: Optional[str] = Header(default=None),
    services: Services = Depends(get_services),
) -> User:
    """The user named by the ``X-User-Id`` header, supplied by the fronting auth proxy."""
    if not x_user_id:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Missing X-User-Id header")
    user = services.users.get_user(x_user_id)
    if user is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=f"Unknown user '{x_user_id}'")
    return user


def batch_for_actor(services: Services, actor: User, batch_id: int) -> Batch:
    """Load a count, hiding counts of other churches as not found."""
    batch = services.batches.get_batch(batch_id)
    if batch is None or batch.tenant_id != actor.tenant_id:
        raise NotFoundError(batch_not_found(batch_id))
    return batch
