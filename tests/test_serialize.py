from __future__ import annotations

import pytest

from ots_attestations.serialize import (
    UINT64_MAX,
    BytesDeserializationContext,
    BytesSerializationContext,
    DeserializationError,
    MalformedVarintError,
    PayloadTooLargeError,
    SerializationError,
    TrailingDataError,
    TruncatedInputError,
)


def test_read_bytes_advances_cursor() -> None:
    ctx = BytesDeserializationContext(b"abcdef")

    assert ctx.read_bytes(2) == b"ab"
    assert ctx.read_bytes(3) == b"cde"
    assert ctx.remaining == 1


def test_read_bytes_truncated_does_not_consume() -> None:
    ctx = BytesDeserializationContext(b"abc")

    with pytest.raises(TruncatedInputError):
        ctx.read_bytes(4)

    assert ctx.remaining == 3


@pytest.mark.parametrize(
    "encoded, value",
    [
        (b"\x00", 0),
        (b"\x7f", 127),
        (b"\x80\x01", 128),
        (b"\xe8\x07", 1000),
        (b"\xff\xff\xff\xff\xff\xff\xff\xff\xff\x01", UINT64_MAX),
    ],
)
def test_read_varuint_known_encodings(encoded: bytes, value: int) -> None:
    ctx = BytesDeserializationContext(encoded)

    assert ctx.read_varuint() == value
    assert ctx.at_eof()


def test_read_varuint_rejects_values_above_64_bits() -> None:
    ctx = BytesDeserializationContext(b"\xff" * 9 + b"\x02")

    with pytest.raises(MalformedVarintError):
        ctx.read_varuint()


def test_read_varuint_rejects_overlong_encoding() -> None:
    ctx = BytesDeserializationContext(b"\x80" * 10 + b"\x00")

    with pytest.raises(MalformedVarintError):
        ctx.read_varuint()


def test_read_varuint_truncated() -> None:
    ctx = BytesDeserializationContext(b"\x80\x80")

    with pytest.raises(TruncatedInputError):
        ctx.read_varuint()


def test_read_varbytes_checks_bound_before_reading() -> None:
    # Declares 9000 bytes but carries none; the bound must trip first.
    ctx = BytesDeserializationContext(b"\xa8\x46")

    with pytest.raises(PayloadTooLargeError):
        ctx.read_varbytes(8192)


def test_read_varbytes_minimum_length() -> None:
    ctx = BytesDeserializationContext(b"\x01x")

    with pytest.raises(DeserializationError):
        ctx.read_varbytes(10, min_len=2)


def test_read_varbytes_truncated_payload() -> None:
    ctx = BytesDeserializationContext(b"\x05abc")

    with pytest.raises(TruncatedInputError):
        ctx.read_varbytes(10)


def test_assert_eof() -> None:
    ctx = BytesDeserializationContext(b"\x01")

    with pytest.raises(TrailingDataError):
        ctx.assert_eof()

    ctx.read_bytes(1)
    ctx.assert_eof()


def test_write_varuint_matches_reader() -> None:
    ctx = BytesSerializationContext()
    ctx.write_varuint(1000)
    ctx.write_varbytes(b"abc")

    assert ctx.getbytes() == b"\xe8\x07\x03abc"


@pytest.mark.parametrize("value", [-1, UINT64_MAX + 1])
def test_write_varuint_rejects_out_of_range(value: int) -> None:
    ctx = BytesSerializationContext()

    with pytest.raises(SerializationError):
        ctx.write_varuint(value)


def test_read_varuint_ten_continuation_bytes_at_end_is_malformed() -> None:
    ctx = BytesDeserializationContext(b"\x80" * 10)

    with pytest.raises(MalformedVarintError):
        ctx.read_varuint()
