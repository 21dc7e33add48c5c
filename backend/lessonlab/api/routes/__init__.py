"""API routes package."""

from lessonlab.api.routes import (
    auth,
    chapters,
    children,
    learning_sessions,
    notifications,
    results,
)

__all__ = [
    "auth",
    "chapters",
    "children",
    "learning_sessions",
    "notifications",
    "results",
]
