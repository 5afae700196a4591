"""
FastAPI dependencies shared by the key server routes.

The key store is created once in the application lifespan and kept on
app.state; routes receive it through get_key_store so tests can override it.
"""

from typing import Callable

from fastapi import Request

from keyserver.app.services.clock import now_epoch
from keyserver.app.services.key_store import KeyStore


def get_key_store(request: Request) -> KeyStore:
    return request.app.state.key_store


def get_clock() -> Callable[[], int]:
    return now_epoch
