"""Dependency injection module for FastAPI.

This module provides dependency injection functions for FastAPI routes.
The attendance-code registry lives on ``app.state`` so its lifetime matches
the application; database-backed managers are request-scoped, except the
roster factory roll call uses, which opens a session per call.
"""

from contextlib import contextmanager
from typing import Annotated, Callable, ContextManager

from fastapi import Depends, Request
from sqlalchemy.orm import Session, sessionmaker

from core.database import SessionLocal, get_db
from utils import code_registry
from utils import roll_call_manager
from utils import roster_manager
from utils import user_manager


def get_code_registry(request: Request) -> code_registry.ActiveCodeRegistry:
    """Get the application's ActiveCodeRegistry.

    Args:
        request: Incoming request.

    Returns:
        The registry created at application startup.
    """
    return request.app.state.code_registry


def get_user_manager(db: Session = Depends(get_db)) -> user_manager.UserManager:
    """Get UserManager instance with request-scoped DB session.

    Args:
        db: Database session.

    Returns:
        UserManager instance.
    """
    return user_manager.UserManager(db)


def get_roster_manager(db: Session = Depends(get_db)) -> roster_manager.RosterManager:
    """Get RosterManager instance with request-scoped DB session."""
    return roster_manager.RosterManager(db)


def get_session_factory() -> sessionmaker:
    """Get the session factory used for sessions outside the request scope."""
    return SessionLocal


def get_roster_factory(
    session_factory: sessionmaker = Depends(get_session_factory),
) -> Callable[[], ContextManager[roster_manager.RosterManager]]:
    """Get a factory that opens a RosterManager on a session of its own.

    Roll call runs roster calls in worker threads that may outlive the
    request, so they never borrow the request-scoped session.
    """

    @contextmanager
    def open_roster():
        with session_factory() as db:
            yield roster_manager.RosterManager(db)

    return open_roster


def get_roll_call_service(
    registry: code_registry.ActiveCodeRegistry = Depends(get_code_registry),
    roster_factory: Callable[[], ContextManager[roster_manager.RosterManager]] = Depends(
        get_roster_factory
    ),
) -> roll_call_manager.RollCallService:
    return roll_call_manager.RollCallService(registry, roster_factory)


# Type aliases for dependency injection
CodeRegistryDep = Annotated[
    code_registry.ActiveCodeRegistry, Depends(get_code_registry)
]
UserManagerDep = Annotated[
    user_manager.UserManager, Depends(get_user_manager)
]
RosterManagerDep = Annotated[
    roster_manager.RosterManager, Depends(get_roster_manager)
]
RollCallServiceDep = Annotated[
    roll_call_manager.RollCallService, Depends(get_roll_call_service)
]
