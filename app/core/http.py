from collections.abc import Generator

import httpx
from fastapi import Depends

from app.core.config import Settings, get_settings


def build_provider_client(settings: Settings) -> httpx.Client:
    return httpx.Client(timeout=settings.provider_timeout_seconds)


def get_http_client(
    settings: Settings = Depends(get_settings),
) -> Generator[httpx.Client]:
    client = build_provider_client(settings)
    try:
        yield client
    finally:
        client.close()
