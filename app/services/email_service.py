import html

import httpx

from app.core.config import Settings
from app.services.notify_service import (
    PRODUCT_NAME,
    ProviderNotConfiguredError,
    post_to_provider,
)

PROVIDER = "Resend"


def render_html_body(message: str) -> str:
    body = html.escape(message).replace("\n", "<br/>")
    return f"<p>{body}</p>"


def send_code_via_resend(
    settings: Settings,
    http: httpx.Client,
    to_email: str,
    message: str,
) -> None:
    if not settings.resend_api_key:
        raise ProviderNotConfiguredError(PROVIDER, ["RESEND_API_KEY"])

    post_to_provider(
        http,
        PROVIDER,
        settings.resend_api_url,
        headers={"Authorization": f"Bearer {settings.resend_api_key}"},
        json={
            "from": f"{settings.resend_from_name} <{settings.resend_from}>",
            "to": [to_email],
            "subject": f"Your {PRODUCT_NAME} code",
            "text": message,
            "html": render_html_body(message),
        },
    )
