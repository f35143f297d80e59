"""Small helpers shared by the CLI commands."""

import asyncio
import base64
import secrets
from typing import Awaitable, TypeVar

from .constants import GENERATED_PASSWORD_LENGTH

T = TypeVar("T")


def run_async(coro: Awaitable[T]) -> T:
    """Run a coroutine to completion from synchronous typer commands."""
    return asyncio.run(coro)


def generate_secure_password(length: int = GENERATED_PASSWORD_LENGTH) -> str:
    """Generate a URL-safe random password of exactly ``length`` characters."""
    if length <= 0:
        raise ValueError("password length must be positive")
    encoded = base64.urlsafe_b64encode(secrets.token_bytes(length)).decode("ascii")
    return encoded[:length]
