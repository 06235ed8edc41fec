"""Public keys, base58 text form, and the account owner check."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Sequence

from dexkit.errors import ProgramError, ProgramErrorKind

logger = logging.getLogger(__name__)

_ALPHABET = "123456789ABCDEFGHJKLMNPQRSTUVWXYZabcdefghijkmnopqrstuvwxyz"
_INDEX = {char: i for i, char in enumerate(_ALPHABET)}

PUBKEY_LEN = 32
OWNER_MISMATCH = 0x100


def b58encode(data: bytes) -> str:
    """Encode bytes with the base58 alphabet, keeping leading zero bytes as '1'."""
    stripped = data.lstrip(b"\x00")
    leading = len(data) - len(stripped)
    number = int.from_bytes(stripped, "big")
    digits = []
    while number:
        number, rem = divmod(number, 58)
        digits.append(_ALPHABET[rem])
    return "1" * leading + "".join(reversed(digits))


def b58decode(text: str) -> bytes:
    """Decode base58 text; raise ValueError on characters outside the alphabet."""
    stripped = text.lstrip("1")
    leading = len(text) - len(stripped)
    number = 0
    for char in stripped:
        try:
            number = number * 58 + _INDEX[char]
        except KeyError:
            raise ValueError(f"invalid base58 character: {char!r}") from None
    body = number.to_bytes((number.bit_length() + 7) // 8, "big") if number else b""
    return b"\x00" * leading + body


@dataclass(frozen=True, order=True)
class Pubkey:
    """A 32-byte public key."""

    data: bytes

    def __post_init__(self) -> None:
        object.__setattr__(self, "data", bytes(self.data))
        if len(self.data) != PUBKEY_LEN:
            raise ValueError(f"a public key is {PUBKEY_LEN} bytes, got {len(self.data)}")

    def __bytes__(self) -> bytes:
        return self.data

    def __str__(self) -> str:
        return b58encode(self.data)


def parse_pubkey(text: str) -> Pubkey:
    """Parse the base58 form of a public key."""
    raw = b58decode(text)
    if len(raw) != PUBKEY_LEN:
        raise ValueError(f"not a {PUBKEY_LEN}-byte public key: {text!r}")
    return Pubkey(raw)


@dataclass
class AccountInfo:
    """An account as seen by a program."""

    key: Pubkey
    owner: Pubkey
    lamports: int = 0
    data: bytes = b""
    is_signer: bool = False
    is_writable: bool = False


def assert_owner(accounts: Sequence[AccountInfo], instruction_data: bytes) -> AccountInfo:
    """Check that the first account is owned by the key given as instruction data."""
    if not accounts:
        raise ProgramError(ProgramErrorKind.NOT_ENOUGH_ACCOUNT_KEYS)
    account = accounts[0]
    if len(instruction_data) != PUBKEY_LEN:
        raise ProgramError(ProgramErrorKind.INVALID_INSTRUCTION_DATA)
    if Pubkey(instruction_data) != account.owner:
        logger.info("Account owner mismatch")
        raise ProgramError(ProgramErrorKind.CUSTOM, OWNER_MISMATCH)
    return account