import hashlib
import hmac

import pytest

from ecoflow_worker.cloud.signature import canonical_string, sign


ARGS = dict(
    secret_key="secret",
    access_key="access",
    params={"sn": "R331ZEB4ZEAL0528"},
    timestamp=1700000000000,
    nonce="123456",
)


def test_canonical_string_sorts_keys_bytewise():
    message = canonical_string("ak", {"sn": "X", "b": 1, "Zeta": "z"}, 123, "456")

    assert message == "Zeta=z&accessKey=ak&b=1&nonce=456&sn=X&timestamp=123"


def test_integral_floats_render_without_decimal_point():
    assert canonical_string("ak", {"quotas": 2.0, "ratio": 0.5}, 1, "1") == (
        "accessKey=ak&nonce=1&quotas=2&ratio=0.5&timestamp=1"
    )


def test_sign_is_hmac_sha256_hex_of_canonical_string():
    expected = hmac.new(
        b"secret",
        b"accessKey=access&nonce=123456&sn=R331ZEB4ZEAL0528&timestamp=1700000000000",
        hashlib.sha256,
    ).hexdigest()

    assert sign(**ARGS) == expected
    assert sign(**ARGS) == sign(**ARGS)
    assert sign(**ARGS).islower()


@pytest.mark.parametrize("field, value", [
    ("secret_key", "secret2"),
    ("access_key", "access2"),
    ("params", {"sn": "R331ZEB4ZEAL0529"}),
    ("timestamp", 1700000000001),
    ("nonce", "123457"),
])
def test_changing_any_input_changes_digest(field, value):
    changed = dict(ARGS, **{field: value})

    assert sign(**changed) != sign(**ARGS)


def test_empty_params_sign_only_auth_fields():
    expected = hmac.new(b"secret", b"accessKey=access&nonce=1&timestamp=2", hashlib.sha256).hexdigest()

    assert sign("secret", "access", {}, 2, "1") == expected
