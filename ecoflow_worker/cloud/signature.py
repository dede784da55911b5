import hashlib
import hmac
from typing import Mapping


def _render(value) -> str:
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def canonical_string(
    access_key: str,
    params: Mapping[str, object],
    timestamp: int,
    nonce: str,
) -> str:
    merged = dict(params)
    merged.update({"accessKey": access_key, "nonce": nonce, "timestamp": timestamp})
    keys = sorted(merged, key=lambda key: key.encode("utf-8"))
    return "&".join(f"{key}={_render(merged[key])}" for key in keys)


def sign(
    secret_key: str,
    access_key: str,
    params: Mapping[str, object],
    timestamp: int,
    nonce: str,
) -> str:
    """HMAC-SHA256 of the sorted ``key=value`` string, as lowercase hex.

    Ordering must be exact; the cloud rejects a mismatched signature with an
    error envelope, not an HTTP failure.
    """
    message = canonical_string(access_key, params, timestamp, nonce)
    return hmac.new(secret_key.encode("utf-8"), message.encode("utf-8"), hashlib.sha256).hexdigest()
