import httpx

from app.core.config import Settings
from app.services.notify_service import ProviderNotConfiguredError, post_to_provider

PROVIDER = "Twilio"


def _missing_twilio_settings(settings: Settings) -> list[str]:
    required = {
        "TWILIO_SID": settings.twilio_sid,
        "TWILIO_AUTH_TOKEN": settings.twilio_auth_token,
        "TWILIO_FROM": settings.twilio_from,
    }
    return [name for name, value in required.items() if not value]


def messages_url(settings: Settings) -> str:
    base = settings.twilio_api_base.rstrip("/")
    return f"{base}/Accounts/{settings.twilio_sid}/Messages.json"


def send_code_via_twilio(
    settings: Settings,
    http: httpx.Client,
    to_phone: str,
    message: str,
) -> None:
    missing = _missing_twilio_settings(settings)
    if missing:
        raise ProviderNotConfiguredError(PROVIDER, missing)

    post_to_provider(
        http,
        PROVIDER,
        messages_url(settings),
        auth=(settings.twilio_sid, settings.twilio_auth_token),
        data={
            "From": settings.twilio_from,
            "To": to_phone,
            "Body": message,
        },
    )
