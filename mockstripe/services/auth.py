import base64
import binascii

from starlette.requests import Request

from mockstripe.errors import StripeError

TEST_KEY_PREFIX = "sk_test_"


def extract_api_key(request: Request) -> str | None:
    """Bearer token, or the username of HTTP basic auth."""
    auth = request.headers.get("authorization")
    if not auth:
        return None
    parts = auth.split(" ", 1)
    if len(parts) != 2:
        return None
    scheme, value = parts[0].lower(), parts[1].strip()
    if scheme == "bearer":
        return value or None
    if scheme == "basic":
        try:
            decoded = base64.b64decode(value).decode("utf-8")
        except (binascii.Error, UnicodeDecodeError):
            return None
        return decoded.split(":", 1)[0] or None
    return None


def censor_api_key(key: str) -> str:
    """Keep the first 11 and last 4 characters, star out the rest.

    Keys shorter than 15 characters are not starred and never repeat characters.
    """
    head = key[:11]
    tail = key[max(11, len(key) - 4):]
    return head + "*" * (len(key) - len(head) - len(tail)) + tail


def check_api_key(key: str | None) -> str:
    if not key:
        raise StripeError(
            401,
            "You did not provide an API key. You need to provide your API key in the "
            "Authorization header, using Bearer auth (e.g. 'Authorization: Bearer "
            "YOUR_SECRET_KEY'). See https://stripe.com/docs/api#authentication for "
            "details, or we can help at https://support.stripe.com/.",
        )
    if not key.startswith(TEST_KEY_PREFIX):
        raise StripeError(401, f"Invalid API Key provided: {censor_api_key(key)}")
    return key
