"""
Solana transaction wire-format helpers.

The gateway hands out unsigned transactions as opaque base64 blobs. Signing
one only requires locating the signer's slot in the signature array and
writing an ed25519 signature over the message bytes into it; the message
itself is never re-encoded.

Layout::

    compact-u16 num_signatures
    num_signatures * 64-byte signatures
    message:
        [0x80 | version]            (versioned messages only)
        u8 num_required_signatures
        u8 num_readonly_signed
        u8 num_readonly_unsigned
        compact-u16 num_account_keys
        num_account_keys * 32-byte keys
        ...
"""
from dataclasses import dataclass
from typing import List, Tuple

from cryptography.hazmat.primitives.asymmetric.ed25519 import Ed25519PrivateKey
from cryptography.hazmat.primitives.serialization import Encoding, PublicFormat

SIGNATURE_LENGTH = 64
PUBKEY_LENGTH = 32
VERSION_PREFIX_MASK = 0x80


def decode_length(data: bytes, offset: int = 0) -> Tuple[int, int]:
    """
    Decode a compact-u16 starting at ``offset``.

    Returns:
        (value, offset just past the encoded length)

    Raises:
        ValueError: If the encoding is truncated or overflows u16
    """
    value = 0
    for i in range(3):
        if offset + i >= len(data):
            raise ValueError("Truncated compact-u16 length")
        byte = data[offset + i]
        value |= (byte & 0x7F) << (7 * i)
        if not byte & 0x80:
            if value > 0xFFFF:
                raise ValueError("compact-u16 length overflows u16")
            return value, offset + i + 1
    raise ValueError("compact-u16 length longer than 3 bytes")


def encode_length(value: int) -> bytes:
    """Encode ``value`` as a compact-u16."""
    if not 0 <= value <= 0xFFFF:
        raise ValueError(f"compact-u16 out of range: {value}")
    out = bytearray()
    while True:
        byte = value & 0x7F
        value >>= 7
        if value:
            out.append(byte | 0x80)
        else:
            out.append(byte)
            return bytes(out)


@dataclass(frozen=True)
class TransactionLayout:
    """Offsets and signer keys of a serialized transaction."""
    num_signatures: int
    signatures_offset: int
    message_offset: int
    num_required_signatures: int
    account_keys: List[bytes]
    versioned: bool

    def signer_keys(self) -> List[bytes]:
        return self.account_keys[:self.num_required_signatures]


def parse_transaction(raw: bytes) -> TransactionLayout:
    """
    Parse the signature array and message header of a serialized transaction.

    Raises:
        ValueError: If the bytes are not a well-formed transaction
    """
    num_signatures, signatures_offset = decode_length(raw, 0)
    message_offset = signatures_offset + num_signatures * SIGNATURE_LENGTH
    if message_offset >= len(raw):
        raise ValueError("Transaction truncated before message")

    pos = message_offset
    versioned = bool(raw[pos] & VERSION_PREFIX_MASK)
    if versioned:
        version = raw[pos] & 0x7F
        if version != 0:
            raise ValueError(f"Unsupported transaction message version: {version}")
        pos += 1

    if pos + 3 > len(raw):
        raise ValueError("Transaction truncated in message header")
    num_required_signatures = raw[pos]
    pos += 3

    num_keys, pos = decode_length(raw, pos)
    end = pos + num_keys * PUBKEY_LENGTH
    if end > len(raw):
        raise ValueError("Transaction truncated in account keys")
    account_keys = [raw[pos + i * PUBKEY_LENGTH:pos + (i + 1) * PUBKEY_LENGTH] for i in range(num_keys)]

    if num_required_signatures != num_signatures:
        raise ValueError(
            f"Signature count {num_signatures} does not match required signers {num_required_signatures}"
        )
    if num_required_signatures > num_keys:
        raise ValueError("Message requires more signers than it lists account keys")

    return TransactionLayout(
        num_signatures=num_signatures,
        signatures_offset=signatures_offset,
        message_offset=message_offset,
        num_required_signatures=num_required_signatures,
        account_keys=account_keys,
        versioned=versioned,
    )


def message_bytes(raw: bytes) -> bytes:
    """Return the message portion (the bytes that get signed)."""
    return raw[parse_transaction(raw).message_offset:]


def set_signature(raw: bytes, public_key: bytes, signature: bytes) -> bytes:
    """
    Write ``signature`` into the slot belonging to ``public_key``.

    Raises:
        ValueError: If ``public_key`` is not a required signer
    """
    if len(signature) != SIGNATURE_LENGTH:
        raise ValueError(f"Signature must be {SIGNATURE_LENGTH} bytes, got {len(signature)}")
    layout = parse_transaction(raw)
    try:
        index = layout.signer_keys().index(public_key)
    except ValueError:
        raise ValueError("Public key is not a required signer of this transaction") from None

    start = layout.signatures_offset + index * SIGNATURE_LENGTH
    signed = bytearray(raw)
    signed[start:start + SIGNATURE_LENGTH] = signature
    return bytes(signed)


def sign_transaction_bytes(raw: bytes, private_key: Ed25519PrivateKey) -> bytes:
    """Sign the message of ``raw`` and place the signature in the key's slot."""
    public_key = private_key.public_key().public_bytes(Encoding.Raw, PublicFormat.Raw)
    signature = private_key.sign(message_bytes(raw))
    return set_signature(raw, public_key, signature)
