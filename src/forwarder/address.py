"""
Forwarder — Address Derivation

Pure functions that decide where contracts live.  Both the factory and
any off-chain predictor go through ``predict_clone_address`` so the
address computed before deployment is byte-for-byte the address the
factory later deploys to.

Derivations follow the EVM exactly:

  - CREATE   ``keccak256(rlp([deployer, nonce]))[12:]``
  - CREATE2  ``keccak256(0xff ++ deployer ++ salt ++ keccak256(init_code))[12:]``
  - clones   EIP-1167 minimal proxy creation code around the
             implementation address
"""

from __future__ import annotations

from typing import Any, Union

from eth_utils import is_address, keccak, to_canonical_address, to_checksum_address

from .errors import ValidationError

ZERO_ADDRESS = "0x" + "0" * 40

# EIP-1167 minimal proxy: creation prefix, implementation, runtime suffix.
_CLONE_PREFIX = bytes.fromhex("3d602d80600a3d3981f3363d3d373d3d3d363d73")
_CLONE_SUFFIX = bytes.fromhex("5af43d82803e903d91602b57fd5bf3")

SaltLike = Union[int, bytes, str]


def to_address(value: Any) -> str:
    """Normalise *value* to an EIP-55 checksum address."""
    if isinstance(value, (bytes, bytearray)):
        if len(value) != 20:
            raise ValidationError(f"Address must be 20 bytes, got {len(value)}")
        value = "0x" + bytes(value).hex()
    if not isinstance(value, str) or not is_address(value):
        raise ValidationError(f"Invalid address: {value!r}")
    return to_checksum_address(value)


def is_zero_address(value: Any) -> bool:
    if value is None:
        return True
    return to_address(value) == ZERO_ADDRESS


def normalize_salt(value: SaltLike) -> bytes:
    """Return *value* as a 32-byte big-endian salt."""
    if isinstance(value, bool):
        raise ValidationError("Salt must be int, bytes or hex string")
    if isinstance(value, int):
        if value < 0 or value >= 2 ** 256:
            raise ValidationError(f"Salt out of range: {value}")
        return value.to_bytes(32, "big")
    if isinstance(value, (bytes, bytearray)):
        if len(value) > 32:
            raise ValidationError(f"Salt longer than 32 bytes: {len(value)}")
        return bytes(value).rjust(32, b"\x00")
    if isinstance(value, str):
        text = value[2:] if value.startswith(("0x", "0X")) else value
        try:
            raw = bytes.fromhex(text.rjust(len(text) + len(text) % 2, "0"))
        except ValueError:
            raise ValidationError(f"Salt is not valid hex: {value!r}") from None
        return normalize_salt(raw)
    raise ValidationError("Salt must be int, bytes or hex string")


def derive_salt(recipient: Any, nonce: SaltLike = 0) -> bytes:
    """Effective salt for *recipient*: ``keccak256(recipient ++ nonce32)``."""
    return keccak(to_canonical_address(to_address(recipient)) + normalize_salt(nonce))


def clone_init_code(implementation: Any) -> bytes:
    """EIP-1167 creation code for a clone of *implementation*."""
    return _CLONE_PREFIX + to_canonical_address(to_address(implementation)) + _CLONE_SUFFIX


def clone_runtime_code(implementation: Any) -> bytes:
    """Runtime bytecode left at a clone's address after creation."""
    # the 10-byte constructor copies everything after itself
    return clone_init_code(implementation)[10:]


def _rlp_length_prefix(length: int, offset: int) -> bytes:
    if length < 56:
        return bytes([offset + length])
    encoded = length.to_bytes((length.bit_length() + 7) // 8, "big")
    return bytes([offset + 55 + len(encoded)]) + encoded


def _rlp_bytes(item: bytes) -> bytes:
    if len(item) == 1 and item[0] < 0x80:
        return item
    return _rlp_length_prefix(len(item), 0x80) + item


def compute_create_address(deployer: Any, nonce: int) -> str:
    """Address produced by CREATE from *deployer* at account *nonce*."""
    if nonce < 0:
        raise ValidationError(f"Nonce must be non-negative: {nonce}")
    nonce_bytes = nonce.to_bytes((nonce.bit_length() + 7) // 8, "big") if nonce else b""
    payload = _rlp_bytes(to_canonical_address(to_address(deployer))) + _rlp_bytes(nonce_bytes)
    encoded = _rlp_length_prefix(len(payload), 0xC0) + payload
    return to_checksum_address(keccak(encoded)[12:])


def compute_create2_address(deployer: Any, salt: SaltLike, init_code: bytes) -> str:
    """Address produced by CREATE2 from *deployer* with *salt* and *init_code*."""
    preimage = (
        b"\xff"
        + to_canonical_address(to_address(deployer))
        + normalize_salt(salt)
        + keccak(init_code)
    )
    return to_checksum_address(keccak(preimage)[12:])


def predict_clone_address(factory: Any, implementation: Any,
                          recipient: Any, nonce: SaltLike = 0) -> str:
    """``derive(factory, implementation, salt)`` for a recipient's forwarder."""
    return compute_create2_address(
        factory,
        derive_salt(recipient, nonce),
        clone_init_code(implementation),
    )
