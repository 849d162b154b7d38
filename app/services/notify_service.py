import httpx

PRODUCT_NAME = "Boss Helper"


class NotificationError(Exception):
    """Base class for failures while handing a code to a provider."""


class ProviderNotConfiguredError(NotificationError):
    def __init__(self, provider: str, missing: list[str]):
        self.provider = provider
        self.missing = missing
        super().__init__(f"Missing {provider} configuration ({'/'.join(missing)})")


class DeliveryError(NotificationError):
    def __init__(self, provider: str, detail: str, status_code: int | None = None):
        self.provider = provider
        self.detail = detail
        self.status_code = status_code
        super().__init__(f"{provider} error: {detail}")


def compose_invite_message(code: str, ttl_minutes: int) -> str:
    return (
        f"Your {PRODUCT_NAME} code is {code}. It expires in {ttl_minutes} minutes.\n"
        "Enter this code in the app to join the household. Do not share this code."
    )


def post_to_provider(
    http: httpx.Client, provider: str, url: str, **kwargs
) -> httpx.Response:
    try:
        response = http.post(url, **kwargs)
    except httpx.TimeoutException as exc:
        raise DeliveryError(provider, "request timed out") from exc
    except httpx.HTTPError as exc:
        raise DeliveryError(provider, str(exc) or exc.__class__.__name__) from exc

    if not response.is_success:
        raise DeliveryError(provider, response.text, response.status_code)
    return response
