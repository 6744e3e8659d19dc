"""Attestation records carried in OpenTimestamps proofs.

An attestation is the leaf of a timestamp proof: a claim describing how the
commitment it sits under can be checked externally. On the wire each record is
an 8-byte tag followed by a length-prefixed payload::

    [tag: 8 bytes][varuint payload length <= 8192][payload]

Known tags are dispatched through an :class:`AttestationRegistry`. Tags that
no registered type claims decode to :class:`UnknownAttestation`, which keeps
the raw tag and payload so that proofs using newer attestation types pass
through untouched. Nothing here verifies an attestation; decoding only turns
bytes into typed values.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterable, Iterator, Optional, Tuple, Union

from .config import URI_POLICY_STRICT, DecoderConfig
from .serialize import (
    BytesDeserializationContext,
    BytesSerializationContext,
    DeserializationError,
    PayloadTooLargeError,
    SerializationError,
    TrailingDataError,
)

logger = logging.getLogger(__name__)

TAG_SIZE = 8
MAX_PAYLOAD_SIZE = 8192
MAX_URI_LENGTH = 1000

BITCOIN_ATTESTATION_TAG = bytes.fromhex("0588960d73d71901")
PENDING_ATTESTATION_TAG = bytes.fromhex("83dfe30d2ef90c8e")


class UriTooLargeError(PayloadTooLargeError):
    """Raised when a pending attestation URI exceeds its length bound."""


class InvalidUriError(DeserializationError):
    """Raised when a pending attestation URI cannot be handled as UTF-8."""


class TrailingPayloadBytesError(TrailingDataError):
    """Raised when a known attestation type leaves payload bytes unread."""


@dataclass(frozen=True)
class PendingAttestation:
    """Timestamp awaiting confirmation from a calendar server.

    ``raw_uri`` holds the exact wire bytes and defaults to the UTF-8 encoding
    of ``uri``. When ``raw_uri`` is given, ``uri`` must be its decoding. If
    the bytes are not valid UTF-8, ``uri`` is the lossy rendering with
    replacement characters and ``valid_utf8`` is ``False``.
    """

    uri: str
    raw_uri: Optional[bytes] = field(default=None, repr=False)
    valid_utf8: bool = field(default=True, init=False)

    TAG = PENDING_ATTESTATION_TAG

    def __post_init__(self) -> None:
        if self.raw_uri is None:
            try:
                object.__setattr__(self, "raw_uri", self.uri.encode("utf-8"))
            except UnicodeEncodeError as exc:
                raise InvalidUriError(f"URI cannot be encoded as UTF-8: {exc}") from exc
        else:
            try:
                expected = self.raw_uri.decode("utf-8")
            except UnicodeDecodeError:
                expected = self.raw_uri.decode("utf-8", errors="replace")
                object.__setattr__(self, "valid_utf8", False)
            if self.uri != expected:
                raise ValueError(f"uri {self.uri!r} does not match raw_uri {self.raw_uri!r}")
        if len(self.raw_uri) > MAX_URI_LENGTH:
            raise UriTooLargeError(
                f"URI is {len(self.raw_uri)} bytes; maximum is {MAX_URI_LENGTH}"
            )

    @property
    def tag(self) -> bytes:
        return self.TAG

    def __str__(self) -> str:
        return f"VERIFY PendingAttestation(url={self.uri})"


@dataclass(frozen=True)
class BitcoinBlockHeaderAttestation:
    """Timestamp committed to the merkle root of the block at ``height``."""

    height: int

    TAG = BITCOIN_ATTESTATION_TAG

    @property
    def tag(self) -> bytes:
        return self.TAG

    def __str__(self) -> str:
        return f"VERIFY BitcoinAttestation(height={self.height})"


@dataclass(frozen=True)
class UnknownAttestation:
    """Attestation with a tag no registered type claims; the payload is opaque."""

    tag: bytes
    payload: bytes

    def __post_init__(self) -> None:
        if len(self.tag) != TAG_SIZE:
            raise ValueError(f"attestation tag must be {TAG_SIZE} bytes")

    def __str__(self) -> str:
        return f"UnknownAttestation(bytes={self.payload!r})"


Attestation = Union[PendingAttestation, BitcoinBlockHeaderAttestation, UnknownAttestation]

AttestationDecoder = Callable[[BytesDeserializationContext, DecoderConfig], Attestation]


def decode_pending_attestation(
    ctx: BytesDeserializationContext, config: DecoderConfig
) -> PendingAttestation:
    try:
        raw_uri = ctx.read_varbytes(MAX_URI_LENGTH)
    except PayloadTooLargeError as exc:
        raise UriTooLargeError(str(exc)) from exc

    try:
        uri = raw_uri.decode("utf-8")
    except UnicodeDecodeError as exc:
        if config.uri_policy == URI_POLICY_STRICT:
            raise InvalidUriError(f"pending attestation URI is not valid UTF-8: {exc}") from exc
        logger.warning("Pending attestation URI is not valid UTF-8; keeping raw bytes")
        return PendingAttestation(uri=raw_uri.decode("utf-8", errors="replace"), raw_uri=raw_uri)
    return PendingAttestation(uri=uri, raw_uri=raw_uri)


def decode_bitcoin_attestation(
    ctx: BytesDeserializationContext, config: DecoderConfig
) -> BitcoinBlockHeaderAttestation:
    return BitcoinBlockHeaderAttestation(height=ctx.read_varuint())


@dataclass(frozen=True)
class AttestationType:
    """A registered attestation type: its tag and how to decode its payload."""

    name: str
    tag: bytes
    decode: AttestationDecoder

    def __post_init__(self) -> None:
        if len(self.tag) != TAG_SIZE:
            raise ValueError(f"attestation tag must be {TAG_SIZE} bytes; got {len(self.tag)}")

    def matches(self, tag: bytes) -> bool:
        return self.tag == tag


class AttestationRegistry:
    """Ordered collection of known attestation types.

    Lookup is a linear scan in registration order, so when two types share a
    tag the one registered first wins. Registries are immutable:
    :meth:`register` returns an extended copy and leaves the original as it was.
    """

    def __init__(self, types: Iterable[AttestationType] = ()) -> None:
        self._types: Tuple[AttestationType, ...] = tuple(types)

    def register(self, attestation_type: AttestationType) -> "AttestationRegistry":
        return AttestationRegistry(self._types + (attestation_type,))

    def match(self, tag: bytes) -> Optional[AttestationType]:
        for attestation_type in self._types:
            if attestation_type.matches(tag):
                return attestation_type
        return None

    def __iter__(self) -> Iterator[AttestationType]:
        return iter(self._types)

    def __len__(self) -> int:
        return len(self._types)


PENDING_ATTESTATION_TYPE = AttestationType(
    name="pending", tag=PENDING_ATTESTATION_TAG, decode=decode_pending_attestation
)
BITCOIN_ATTESTATION_TYPE = AttestationType(
    name="bitcoin", tag=BITCOIN_ATTESTATION_TAG, decode=decode_bitcoin_attestation
)


def default_registry() -> AttestationRegistry:
    """Return a fresh registry holding the built-in attestation types."""

    return AttestationRegistry([PENDING_ATTESTATION_TYPE, BITCOIN_ATTESTATION_TYPE])


DEFAULT_REGISTRY = default_registry()


def parse_attestation(
    ctx: BytesDeserializationContext,
    *,
    config: DecoderConfig | None = None,
    registry: AttestationRegistry | None = None,
) -> Attestation:
    """Decode one attestation record and advance ``ctx`` past it.

    The payload is read in full before any type-specific decoding starts and
    decoded from its own context. A known type that leaves payload bytes
    unread raises :class:`TrailingPayloadBytesError`. An unrecognised tag is
    not an error: it yields an :class:`UnknownAttestation`.
    """

    if config is None:
        config = DecoderConfig()
    if registry is None:
        registry = DEFAULT_REGISTRY

    tag = ctx.read_bytes(TAG_SIZE)
    payload = ctx.read_varbytes(MAX_PAYLOAD_SIZE)
    payload_ctx = BytesDeserializationContext(payload)

    attestation_type = registry.match(tag)
    if attestation_type is None:
        logger.debug("Unknown attestation tag %s with %d payload bytes", tag.hex(), len(payload))
        return UnknownAttestation(tag=tag, payload=payload)

    attestation = attestation_type.decode(payload_ctx, config)
    if not payload_ctx.at_eof():
        raise TrailingPayloadBytesError(
            f"expected end of payload; {payload_ctx.remaining} bytes left after "
            f"{attestation_type.name} attestation"
        )
    logger.debug("Decoded %s attestation from %d payload bytes", attestation_type.name, len(payload))
    return attestation


def deserialize_attestation(data: bytes, *, config: DecoderConfig | None = None) -> Attestation:
    """Decode a byte string holding exactly one attestation record."""

    ctx = BytesDeserializationContext(data)
    attestation = parse_attestation(ctx, config=config)
    ctx.assert_eof()
    return attestation


def _payload_bytes(attestation: Attestation) -> bytes:
    if isinstance(attestation, UnknownAttestation):
        return attestation.payload
    payload_ctx = BytesSerializationContext()
    if isinstance(attestation, PendingAttestation):
        payload_ctx.write_varbytes(attestation.raw_uri)
    elif isinstance(attestation, BitcoinBlockHeaderAttestation):
        payload_ctx.write_varuint(attestation.height)
    else:
        raise TypeError(f"not an attestation: {attestation!r}")
    return payload_ctx.getbytes()


def serialize_attestation(attestation: Attestation, ctx: BytesSerializationContext) -> None:
    """Write ``attestation`` to ``ctx`` in wire form.

    Unknown attestations carrying a built-in tag are refused: their bytes would
    decode as a different variant.
    """

    if isinstance(attestation, UnknownAttestation) and DEFAULT_REGISTRY.match(attestation.tag) is not None:
        raise SerializationError(
            f"unknown attestation uses the registered tag {attestation.tag.hex()}"
        )
    payload = _payload_bytes(attestation)
    if len(payload) > MAX_PAYLOAD_SIZE:
        raise PayloadTooLargeError(
            f"attestation payload is {len(payload)} bytes; maximum is {MAX_PAYLOAD_SIZE}"
        )
    ctx.write_bytes(attestation.tag)
    ctx.write_varbytes(payload)


def attestation_to_bytes(attestation: Attestation) -> bytes:
    ctx = BytesSerializationContext()
    serialize_attestation(attestation, ctx)
    return ctx.getbytes()


def attestation_to_dict(attestation: Attestation) -> Dict[str, Any]:
    """Render ``attestation`` as a JSON-friendly mapping."""

    if isinstance(attestation, PendingAttestation):
        return {
            "type": "pending",
            "tag": attestation.tag.hex(),
            "uri": attestation.uri,
            "raw_uri": attestation.raw_uri.hex(),
            "valid_utf8": attestation.valid_utf8,
        }
    if isinstance(attestation, BitcoinBlockHeaderAttestation):
        return {"type": "bitcoin", "tag": attestation.tag.hex(), "height": attestation.height}
    if isinstance(attestation, UnknownAttestation):
        return {
            "type": "unknown",
            "tag": attestation.tag.hex(),
            "payload": attestation.payload.hex(),
        }
    raise TypeError(f"not an attestation: {attestation!r}")
