"""OpenTimestamps attestation decoding package."""

from .attestations import (
    BITCOIN_ATTESTATION_TAG,
    DEFAULT_REGISTRY,
    MAX_PAYLOAD_SIZE,
    MAX_URI_LENGTH,
    PENDING_ATTESTATION_TAG,
    TAG_SIZE,
    Attestation,
    AttestationRegistry,
    AttestationType,
    BitcoinBlockHeaderAttestation,
    InvalidUriError,
    PendingAttestation,
    TrailingPayloadBytesError,
    UnknownAttestation,
    UriTooLargeError,
    attestation_to_bytes,
    attestation_to_dict,
    default_registry,
    deserialize_attestation,
    parse_attestation,
    serialize_attestation,
)
from .config import ConfigurationError, DecoderConfig, load_decoder_config
from .serialize import (
    BytesDeserializationContext,
    BytesSerializationContext,
    DeserializationError,
    MalformedVarintError,
    PayloadTooLargeError,
    SerializationError,
    TrailingDataError,
    TruncatedInputError,
)

__all__ = [
    "Attestation",
    "AttestationRegistry",
    "AttestationType",
    "BitcoinBlockHeaderAttestation",
    "PendingAttestation",
    "UnknownAttestation",
    "BITCOIN_ATTESTATION_TAG",
    "PENDING_ATTESTATION_TAG",
    "DEFAULT_REGISTRY",
    "MAX_PAYLOAD_SIZE",
    "MAX_URI_LENGTH",
    "TAG_SIZE",
    "attestation_to_bytes",
    "attestation_to_dict",
    "default_registry",
    "deserialize_attestation",
    "parse_attestation",
    "serialize_attestation",
    "BytesDeserializationContext",
    "BytesSerializationContext",
    "DeserializationError",
    "InvalidUriError",
    "MalformedVarintError",
    "PayloadTooLargeError",
    "SerializationError",
    "TrailingDataError",
    "TrailingPayloadBytesError",
    "TruncatedInputError",
    "UriTooLargeError",
    "ConfigurationError",
    "DecoderConfig",
    "load_decoder_config",
]
