from fastapi import Depends, Header, HTTPException
from sqlalchemy.orm import Session

from app.db import get_db
from app.services.errors import UnauthorizedError, WorkflowError
from app.services.identity import Actor

ACTOR_HEADER = "X-Actor-Id"


def get_current_actor(
    x_actor_id: str | None = Header(default=None, alias=ACTOR_HEADER),
    db: Session = Depends(get_db),
) -> Actor:
    """Resolve the caller identified by the upstream auth boundary.

    The gateway authenticates the request and forwards the person id in
    ``X-Actor-Id``; the role is always read from the directory, never from
    the request.
    """
    if not x_actor_id:
        raise HTTPException(status_code=401, detail="Missing actor identity")
    directory = get_user_directory()
    try:
        return directory.resolve_actor(db, x_actor_id)
    except UnauthorizedError as exc:
        raise HTTPException(status_code=401, detail=exc.detail) from exc
    except WorkflowError as exc:
        raise HTTPException(status_code=401, detail="Unknown actor") from exc


def require_admin(actor: Actor = Depends(get_current_actor)) -> Actor:
    if not actor.is_admin:
        raise HTTPException(status_code=403, detail="Admin role required")
    return actor


# -------------------------------------------------------------------------
# Container-based Dependencies
# -------------------------------------------------------------------------
# These provide services from the DI container for use in route handlers.
# They can be easily mocked in tests by overriding the container providers.


def get_goal_lifecycle():
    """Get goal lifecycle engine from container."""
    from app.container import container
    return container.goal_lifecycle()


def get_audit_ledger():
    """Get audit ledger from container."""
    from app.container import container
    return container.audit_ledger()


def get_notifications_service():
    """Get notification inbox service from container."""
    from app.container import container
    return container.notifications_service()


def get_user_directory():
    """Get identity directory adapter from container."""
    from app.container import container
    return container.user_directory()


def get_performance_reviews():
    """Get performance review workflow from container."""
    from app.container import container
    return container.performance_reviews()
