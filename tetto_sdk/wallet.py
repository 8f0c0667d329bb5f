"""
Wallet adapters.

Two signer shapes are normalized into one :class:`Wallet` contract: a local
ed25519 keypair (backend agents, scripts) and an external adapter object
(hardware wallets, browser bridges, custodial signers) that exposes a public
key and a ``sign_transaction`` callable.
"""
import base64
import binascii
import json
import logging
from pathlib import Path
from typing import Any, Callable, Protocol, Sequence, Union, runtime_checkable

import base58
from cryptography.hazmat.primitives.asymmetric.ed25519 import Ed25519PrivateKey
from cryptography.hazmat.primitives.serialization import Encoding, PublicFormat

from ._awaitable import resolve_awaitable
from .transaction import PUBKEY_LENGTH, sign_transaction_bytes

logger = logging.getLogger(__name__)

SecretKey = Union[bytes, bytearray, Sequence[int]]


@runtime_checkable
class Wallet(Protocol):
    """Protocol every wallet handed to the SDK must satisfy"""
    public_key: str

    def sign_transaction(self, transaction: bytes) -> bytes:
        """Sign serialized transaction bytes and return the signed bytes"""
        ...


class WalletNotConnected(ValueError):
    """The adapter has no public key (not connected / locked)."""


class KeypairWallet:
    """
    Wallet backed by a local ed25519 key.

    The key never leaves this object; ``repr`` shows only the public key.
    """

    def __init__(self, private_key: Ed25519PrivateKey):
        self._private_key = private_key
        self.public_key_bytes = private_key.public_key().public_bytes(Encoding.Raw, PublicFormat.Raw)
        self.public_key = base58.b58encode(self.public_key_bytes).decode("ascii")

    @classmethod
    def generate(cls) -> "KeypairWallet":
        return cls(Ed25519PrivateKey.generate())

    @classmethod
    def from_secret_key(cls, secret_key: SecretKey) -> "KeypairWallet":
        """
        Load a keypair from a 64-byte Solana secret key or a 32-byte seed.

        Args:
            secret_key: bytes or a list of ints (Solana CLI format)

        Raises:
            ValueError: If the key has the wrong length or its public half
                does not match the seed
        """
        raw = bytes(secret_key)
        if len(raw) == 64:
            seed, expected_public = raw[:32], raw[32:]
        elif len(raw) == 32:
            seed, expected_public = raw, None
        else:
            raise ValueError(f"Secret key must be 32 or 64 bytes, got {len(raw)}")

        wallet = cls(Ed25519PrivateKey.from_private_bytes(seed))
        if expected_public is not None and wallet.public_key_bytes != expected_public:
            raise ValueError("Secret key public half does not match its seed")
        return wallet

    @classmethod
    def from_base58(cls, encoded: str) -> "KeypairWallet":
        """Load a keypair from a base58-encoded secret key (wallet export format)."""
        try:
            raw = base58.b58decode(encoded.strip())
        except ValueError as e:
            raise ValueError(f"Invalid base58 secret key: {e}") from e
        return cls.from_secret_key(raw)

    @classmethod
    def from_json_file(cls, path: Union[str, Path]) -> "KeypairWallet":
        """Load a Solana CLI keypair file (a JSON array of 64 ints)."""
        with open(path, "r") as f:
            data = json.load(f)
        if not isinstance(data, list):
            raise ValueError(f"Keypair file {path} must contain a JSON array")
        wallet = cls.from_secret_key(data)
        logger.debug(f"Loaded keypair {wallet.public_key} from {path}")
        return wallet

    def sign_transaction(self, transaction: bytes) -> bytes:
        return sign_transaction_bytes(transaction, self._private_key)

    def __repr__(self) -> str:
        return f"KeypairWallet(public_key={self.public_key!r})"


class AdapterWallet:
    """
    Wallet that delegates signing to an external adapter.

    The adapter's ``sign_transaction`` may be a coroutine function; its
    result is awaited before normalization.
    """

    def __init__(self, public_key: str, sign: Callable[[bytes], Any]):
        self.public_key = public_key
        self._sign = sign

    def sign_transaction(self, transaction: bytes) -> bytes:
        return normalize_signed_transaction(resolve_awaitable(self._sign(transaction)))

    def __repr__(self) -> str:
        return f"AdapterWallet(public_key={self.public_key!r})"


def normalize_public_key(value: Any) -> str:
    """
    Convert the public key shapes adapters expose into a base58 string.

    Accepts a base58 string, 32 raw bytes, or an object with ``to_base58()``.
    """
    if isinstance(value, (bytes, bytearray)):
        if len(value) != PUBKEY_LENGTH:
            raise ValueError(f"Public key must be {PUBKEY_LENGTH} bytes, got {len(value)}")
        return base58.b58encode(bytes(value)).decode("ascii")
    if hasattr(value, "to_base58"):
        value = value.to_base58()
    text = str(value).strip()
    if not text:
        raise ValueError("Wallet public key is empty")
    return text


def normalize_signed_transaction(result: Any) -> bytes:
    """
    Convert an adapter's signing result into raw transaction bytes.

    Accepts bytes, base64 text, or an object with ``serialize()``.
    """
    if isinstance(result, (bytes, bytearray, memoryview)):
        return bytes(result)
    if isinstance(result, str):
        try:
            return base64.b64decode(result, validate=True)
        except binascii.Error as e:
            raise ValueError(f"Signed transaction is not valid base64: {e}") from e
    serialize = getattr(result, "serialize", None)
    if callable(serialize):
        return bytes(serialize())
    raise TypeError(f"Unsupported signed transaction type: {type(result).__name__}")


def create_wallet_from_keypair(keypair: Union[KeypairWallet, Ed25519PrivateKey, SecretKey]) -> KeypairWallet:
    """
    Create a wallet from a local keypair (for backend agents and scripts).

    Example:
        >>> wallet = create_wallet_from_keypair(json.load(open("id.json")))
        >>> result = client.call_agent(agent_id, {"text": "hi"}, wallet)
    """
    if isinstance(keypair, KeypairWallet):
        return keypair
    if isinstance(keypair, Ed25519PrivateKey):
        return KeypairWallet(keypair)
    return KeypairWallet.from_secret_key(keypair)


def create_wallet_from_adapter(adapter: Any) -> AdapterWallet:
    """
    Create a wallet from an external signer adapter.

    Args:
        adapter: Object with ``public_key`` and ``sign_transaction(bytes)``

    Raises:
        WalletNotConnected: If the adapter has no public key
        ValueError: If the adapter cannot sign transactions
    """
    public_key = getattr(adapter, "public_key", None)
    if public_key is None:
        raise WalletNotConnected("Wallet not connected")

    sign = getattr(adapter, "sign_transaction", None)
    if not callable(sign):
        raise ValueError("Wallet does not support signing transactions")

    return AdapterWallet(normalize_public_key(public_key), sign)


def wallet_public_key(wallet: Any) -> str:
    """
    Validate that ``wallet`` satisfies the Wallet contract.

    Returns:
        The wallet's base58 public key

    Raises:
        ValueError: If the public key is missing or there is no signer
    """
    if wallet is None:
        raise ValueError("Wallet is required")
    public_key = getattr(wallet, "public_key", None)
    if public_key is None or (isinstance(public_key, str) and not public_key.strip()):
        raise ValueError("Wallet public key is required")
    if not callable(getattr(wallet, "sign_transaction", None)):
        raise ValueError("Wallet must provide a sign_transaction method")
    return normalize_public_key(public_key)
