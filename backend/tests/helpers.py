"""Shortcuts for putting a client into a parent or child session."""

import base64

from httpx import AsyncClient

from lessonlab.config import get_settings
from lessonlab.services.sessions import derive_child_session, issue_parent_session


def login_parent(client: AsyncClient, parent) -> None:
    settings = get_settings()
    _, token = issue_parent_session(parent.id, settings)
    client.cookies.set(settings.parent_cookie_name, token)


def login_child(client: AsyncClient, parent, child) -> None:
    settings = get_settings()
    parent_session, _ = issue_parent_session(parent.id, settings)
    _, token = derive_child_session(parent_session, child, settings)
    client.cookies.set(settings.child_cookie_name, token)


def photo_data_url(payload: bytes = b"page image bytes", media_type: str = "image/jpeg") -> str:
    return f"data:{media_type};base64,{base64.b64encode(payload).decode()}"
