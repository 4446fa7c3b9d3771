"""Action hashing and signing for exchanges that authenticate with typed data.

Framing (must match the exchange's verifier byte for byte):

    msgpack(action)                      field and array order as given
    + nonce                              8 bytes, big-endian
    + 0x01 + vault address (20 bytes)    when a vault address is given
      | 0x00                             otherwise
    + 0x00 + expires_after (8 bytes BE)  only when an expiry is given;
                                         nothing at all otherwise

The Keccak-256 of that frame is the action hash, which is signed as the
connectionId of an EIP-712 Agent record (see typed_data).

Signing is deterministic (RFC 6979), so retrying an unconfirmed request with
the same nonce reproduces the exact same signature. No network I/O happens
here; the nonce is always supplied by the caller.

Usage:
    signer = ActionSigner(private_key, is_testnet=False)
    signed = signer.sign_action(
        {"type": "cancel", "cancels": [{"a": 0, "o": 123}]},
        nonce=1718000000000,
    )
    signed.signature.r, signed.signature.s, signed.signature.v
"""

import logging
from collections.abc import Mapping
from typing import Any

import msgpack
from eth_account import Account
from eth_account.messages import encode_typed_data
from eth_account.signers.local import LocalAccount
from eth_keys.exceptions import ValidationError as EthKeysValidationError
from eth_utils import keccak, to_bytes

from market_sync.core.errors import KeyFormatError
from market_sync.signing.typed_data import Signature, SignedAction, build_agent_typed_data

logger = logging.getLogger(__name__)

_VAULT_ABSENT = b"\x00"
_VAULT_PRESENT = b"\x01"
_EXPIRY_MARKER = b"\x00"

PrivateKey = str | bytes | LocalAccount


def load_private_key(key: str | bytes) -> LocalAccount:
    """Parse secp256k1 private key material.

    Args:
        key: 64 hex chars (with or without 0x) or 32 raw bytes

    Raises:
        KeyFormatError: If the key is malformed or out of the curve's range.
            The message never includes key material.
    """
    if isinstance(key, str):
        text = key.strip()
        hex_digits = text[2:] if text[:2].lower() == "0x" else text
        if len(hex_digits) != 64:
            raise KeyFormatError(
                f"Private key must be 64 hex characters, got {len(hex_digits)}"
            )
        try:
            raw = bytes.fromhex(hex_digits)
        except ValueError as exc:
            raise KeyFormatError("Private key is not valid hex") from exc
    elif isinstance(key, (bytes, bytearray)):
        raw = bytes(key)
        if len(raw) != 32:
            raise KeyFormatError(f"Private key must be 32 bytes, got {len(raw)}")
    else:
        raise KeyFormatError(f"Unsupported private key type: {type(key).__name__}")

    try:
        return Account.from_key(raw)
    except (ValueError, EthKeysValidationError) as exc:
        raise KeyFormatError("Private key is outside the secp256k1 range") from exc


def _account(private_key: PrivateKey) -> LocalAccount:
    if isinstance(private_key, LocalAccount):
        return private_key
    return load_private_key(private_key)


def frame_action(
    action: Mapping[str, Any],
    nonce: int,
    vault_address: str | None = None,
    expires_after: int | None = None,
) -> bytes:
    """Serialize an action with its nonce, vault and expiry into hash input."""
    data = msgpack.packb(action)
    data += nonce.to_bytes(8, "big")

    if vault_address:
        data += _VAULT_PRESENT + to_bytes(hexstr=vault_address)
    else:
        data += _VAULT_ABSENT

    if expires_after is not None:
        data += _EXPIRY_MARKER + expires_after.to_bytes(8, "big")

    return data


def generate_action_hash(
    action: Mapping[str, Any],
    nonce: int,
    vault_address: str | None = None,
    expires_after: int | None = None,
) -> bytes:
    """Keccak-256 commitment to an action, 32 bytes."""
    return keccak(frame_action(action, nonce, vault_address, expires_after))


def sign_action(
    private_key: PrivateKey,
    action: Mapping[str, Any],
    nonce: int,
    vault_address: str | None = None,
    expires_after: int | None = None,
    is_testnet: bool = False,
) -> SignedAction:
    """Hash an action and sign it as an EIP-712 Agent record.

    Args:
        private_key: Hex string, raw bytes or an eth_account LocalAccount
        action: Action payload, serialized in the given key order
        nonce: Caller-managed nonce, increasing per signing key
        vault_address: 0x-prefixed address when trading for a vault
        expires_after: Optional expiry timestamp (ms)
        is_testnet: Selects the Agent source tag ("b" instead of "a")

    Returns:
        SignedAction with the action hash and r/s/v

    Raises:
        KeyFormatError: If the private key is malformed
    """
    account = _account(private_key)
    action_hash = generate_action_hash(action, nonce, vault_address, expires_after)
    signable = encode_typed_data(full_message=build_agent_typed_data(action_hash, is_testnet))
    signed = account.sign_message(signable)

    return SignedAction(
        action_hash=action_hash,
        signature=Signature(r=f"0x{signed.r:064x}", s=f"0x{signed.s:064x}", v=signed.v),
    )


def recover_action_signer(
    action_hash: bytes, signature: Signature, is_testnet: bool = False
) -> str:
    """Address that produced `signature` over an action hash."""
    signable = encode_typed_data(full_message=build_agent_typed_data(action_hash, is_testnet))
    return Account.recover_message(
        signable,
        vrs=(signature.v, int(signature.r, 16), int(signature.s, 16)),
    )


def split_signature(signature: str) -> Signature:
    """Split a 65-byte 0x-prefixed signature into r, s and v."""
    digits = signature[2:] if signature[:2].lower() == "0x" else signature
    if len(digits) != 130:
        raise ValueError(f"Signature must be 65 bytes, got {len(digits) // 2}")
    return Signature(r=f"0x{digits[:64]}", s=f"0x{digits[64:128]}", v=int(digits[128:130], 16))


class ActionSigner:
    """Signs actions with one key for one network.

    Holds only the parsed key and the network flag; safe to share between
    tasks.
    """

    def __init__(self, private_key: str | bytes, is_testnet: bool = False) -> None:
        """Parse and bind the signing key.

        Raises:
            KeyFormatError: If the private key is malformed
        """
        self._account = load_private_key(private_key)
        self.is_testnet = is_testnet
        logger.info(
            "Action signer ready for %s on %s",
            self.address,
            "testnet" if is_testnet else "mainnet",
        )

    @property
    def address(self) -> str:
        return self._account.address

    def generate_action_hash(
        self,
        action: Mapping[str, Any],
        nonce: int,
        vault_address: str | None = None,
        expires_after: int | None = None,
    ) -> bytes:
        return generate_action_hash(action, nonce, vault_address, expires_after)

    def sign_action(
        self,
        action: Mapping[str, Any],
        nonce: int,
        vault_address: str | None = None,
        expires_after: int | None = None,
    ) -> SignedAction:
        return sign_action(
            self._account,
            action,
            nonce,
            vault_address=vault_address,
            expires_after=expires_after,
            is_testnet=self.is_testnet,
        )

    def __repr__(self) -> str:
        return f"ActionSigner(address={self.address!r}, is_testnet={self.is_testnet})"
