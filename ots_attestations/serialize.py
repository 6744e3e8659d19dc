"""Byte-stream contexts for the OpenTimestamps wire format.

Integers are unsigned LEB128 varints: seven data bits per byte, least
significant group first, with the high bit marking continuation. Variable
length byte strings are a varint length followed by that many bytes.

Every read is bounded. Length prefixes are checked against the caller's limit
before the corresponding bytes are touched, so a hostile length field cannot
force a large allocation.
"""

from __future__ import annotations

from typing import List

UINT64_MAX = (1 << 64) - 1


class DeserializationError(ValueError):
    """Raised when bytes cannot be decoded."""


class TruncatedInputError(DeserializationError):
    """Raised when fewer bytes remain than a read requires."""


class PayloadTooLargeError(DeserializationError):
    """Raised when a declared length exceeds its hardcoded bound."""


class MalformedVarintError(DeserializationError):
    """Raised when a varint does not fit in an unsigned 64-bit integer."""


class TrailingDataError(DeserializationError):
    """Raised when a context still holds bytes that should have been consumed."""


class SerializationError(ValueError):
    """Raised when a value cannot be encoded."""


class BytesDeserializationContext:
    """Sequential reader over an in-memory byte string."""

    def __init__(self, data: bytes) -> None:
        self._data = bytes(data)
        self._pos = 0

    @property
    def remaining(self) -> int:
        return len(self._data) - self._pos

    def read_bytes(self, count: int) -> bytes:
        """Return exactly ``count`` bytes and advance past them."""

        if count < 0:
            raise ValueError("count must be non-negative")
        if count > self.remaining:
            raise TruncatedInputError(
                f"expected {count} bytes, only {self.remaining} remaining"
            )
        chunk = self._data[self._pos : self._pos + count]
        self._pos += count
        return chunk

    def read_varuint(self) -> int:
        """Read an unsigned LEB128 integer of at most 64 bits."""

        value = 0
        shift = 0
        while True:
            if shift > 63:
                raise MalformedVarintError("varint is longer than 10 bytes")
            if not self.remaining:
                raise TruncatedInputError("varint ended before its final byte")
            byte = self._data[self._pos]
            self._pos += 1
            value |= (byte & 0x7F) << shift
            if value > UINT64_MAX:
                raise MalformedVarintError("varint exceeds 64 bits")
            if not byte & 0x80:
                return value
            shift += 7

    def read_varbytes(self, max_len: int, min_len: int = 0) -> bytes:
        """Read a length-prefixed byte string bounded to ``min_len..max_len``.

        The length is validated before any payload byte is read.
        """

        length = self.read_varuint()
        if length > max_len:
            raise PayloadTooLargeError(
                f"declared length {length} exceeds maximum of {max_len}"
            )
        if length < min_len:
            raise DeserializationError(
                f"declared length {length} is below minimum of {min_len}"
            )
        return self.read_bytes(length)

    def at_eof(self) -> bool:
        return self.remaining == 0

    def assert_eof(self) -> None:
        if not self.at_eof():
            raise TrailingDataError(f"expected end of stream, {self.remaining} bytes left")


class BytesSerializationContext:
    """Accumulates encoded fields into a byte string."""

    def __init__(self) -> None:
        self._chunks: List[bytes] = []

    def write_bytes(self, data: bytes) -> None:
        self._chunks.append(bytes(data))

    def write_varuint(self, value: int) -> None:
        if value < 0:
            raise SerializationError(f"varint cannot be negative: {value}")
        if value > UINT64_MAX:
            raise SerializationError(f"varint exceeds 64 bits: {value}")
        encoded = bytearray()
        while True:
            group = value & 0x7F
            value >>= 7
            if value:
                encoded.append(group | 0x80)
            else:
                encoded.append(group)
                break
        self._chunks.append(bytes(encoded))

    def write_varbytes(self, data: bytes) -> None:
        self.write_varuint(len(data))
        self.write_bytes(data)

    def getbytes(self) -> bytes:
        return b"".join(self._chunks)
