from hmac import new, compare_digest
from typing import Any, Optional, Union


def hmac_hexdigest(
        key: Union[str, bytes],
        message: Union[str, bytes],
        digestmod: Any
) -> str:
    """
    Compute a hex-encoded HMAC

    Args:
        key: Secret key (str is UTF-8 encoded)
        message: Message bytes (str is UTF-8 encoded)
        digestmod: hashlib constructor, e.g. sha256

    Returns:
        Lowercase hex digest
    """
    if isinstance(key, str):
        key = key.encode("utf-8")

    if isinstance(message, str):
        message = message.encode("utf-8")

    return new(key, message, digestmod).hexdigest()


def signatures_match(expected: str, provided: Optional[str]) -> bool:
    """
    Compare a computed hex signature with a client supplied one in constant time

    Values are compared as UTF-8 bytes, so a header with non-ASCII characters
    is a mismatch rather than a TypeError from compare_digest.

    Args:
        expected: Signature computed by us (lowercase hex)
        provided: Signature taken from the request

    Returns:
        True if signatures are equal
    """
    if not provided:
        return False

    return compare_digest(
        expected.encode("utf-8"),
        provided.strip().lower().encode("utf-8")
    )


def parse_unix_time(value: Optional[str]) -> Optional[int]:
    """
    Parse a unix timestamp written as plain ASCII digits

    int() alone also accepts signs, underscores, surrounding whitespace and
    non-ASCII digits, none of which a signer emits.

    Returns:
        Seconds since the epoch, None if the value is not a digit string
    """
    if not value or not (value.isascii() and value.isdigit()):
        return None

    return int(value)
