"""
Shared test utilities and factories.

Re-exports all factory functions for convenient imports:
    from taskmaster.testing import create_user, create_task, get_auth_headers
"""

from taskmaster.testing.factories import (
    create_notification,
    create_subtask,
    create_task,
    create_user,
    get_auth_headers,
    get_auth_token,
)

__all__ = [
    "create_notification",
    "create_subtask",
    "create_task",
    "create_user",
    "get_auth_headers",
    "get_auth_token",
]
