"""Document serialization package."""

from powerbill.serialization.codec import (
    DOCUMENT_VERSION,
    DecodeError,
    decode,
    dumps,
    encode,
    loads,
)

__all__ = [
    "DOCUMENT_VERSION",
    "DecodeError",
    "decode",
    "dumps",
    "encode",
    "loads",
]
