import pytest

from invoicing.utils.errors import InvalidIdentifier
from invoicing.utils.hashing import IdentifierEncoder


@pytest.fixture()
def enc():
    return IdentifierEncoder("unit-test-salt")


@pytest.mark.parametrize("value", [0, 1, 255, 256, 65_535, 2**31 - 1, 2**40 + 7])
def test_decode_inverts_encode(enc, value):
    assert enc.decode(enc.encode(value)) == value


def test_tokens_are_url_safe_and_unpadded(enc):
    for value in (1, 12, 999_999):
        token = enc.encode(value)
        assert "=" not in token
        assert all(c.isalnum() or c in "-_" for c in token)


def test_distinct_ids_give_distinct_tokens(enc):
    tokens = {enc.encode(i) for i in range(1, 500)}
    assert len(tokens) == 499


def test_encoding_is_deterministic(enc):
    assert enc.encode(42) == enc.encode(42)
    assert IdentifierEncoder("unit-test-salt").encode(42) == enc.encode(42)


def test_other_salt_rejected(enc):
    foreign = IdentifierEncoder("another-salt").encode(42)
    with pytest.raises(InvalidIdentifier):
        enc.decode(foreign)


@pytest.mark.parametrize("token", ["", "!!!", "abc", "not-a-real-token", "A"])
def test_malformed_tokens_rejected(enc, token):
    with pytest.raises(InvalidIdentifier):
        enc.decode(token)


def test_tampered_token_rejected(enc):
    token = enc.encode(7)
    last = "A" if token[-1] != "A" else "B"
    with pytest.raises(InvalidIdentifier):
        enc.decode(token[:-1] + last)


def test_non_string_token_rejected(enc):
    with pytest.raises(InvalidIdentifier):
        enc.decode(7)  # type: ignore[arg-type]


def test_encode_rejects_negative_and_non_int(enc):
    with pytest.raises(ValueError):
        enc.encode(-1)
    with pytest.raises(TypeError):
        enc.encode("5")  # type: ignore[arg-type]
    with pytest.raises(TypeError):
        enc.encode(True)


def test_encode_optional_maps_none_to_empty(enc):
    assert enc.encode_optional(None) == ""
    assert enc.encode_optional(3) == enc.encode(3)


def test_decode_many_drops_invalid(enc):
    tokens = [enc.encode(1), "garbage", enc.encode(5), ""]
    assert enc.decode_many(tokens) == [1, 5]


def test_empty_salt_not_allowed():
    with pytest.raises(ValueError):
        IdentifierEncoder("")
