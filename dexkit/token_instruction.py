"""Token program instructions: wire encoding and instruction builders."""

from __future__ import annotations

import enum
import struct
from dataclasses import dataclass, field
from typing import Sequence

from dexkit.errors import ProgramError, ProgramErrorKind
from dexkit.pubkey import Pubkey

MIN_SIGNERS = 1
"""Minimum number of multisignature signers."""
MAX_SIGNERS = 11
"""Maximum number of multisignature signers."""

INSTRUCTION_LEN = 24
"""Length of every packed instruction: a tag byte, the payload, then zero fill."""

_U64_MAX = (1 << 64) - 1
_U64 = struct.Struct("<Q")


class TokenInstructionKind(enum.IntEnum):
    """Instruction tag, stored in the first byte of the packed form."""

    INITIALIZE_MINT = 0
    INITIALIZE_ACCOUNT = 1
    INITIALIZE_MULTISIG = 2
    TRANSFER = 3
    APPROVE = 4
    REVOKE = 5
    SET_OWNER = 6
    MINT_TO = 7
    BURN = 8
    CLOSE_ACCOUNT = 9


_WITH_AMOUNT = frozenset(
    {
        TokenInstructionKind.INITIALIZE_MINT,
        TokenInstructionKind.TRANSFER,
        TokenInstructionKind.APPROVE,
        TokenInstructionKind.MINT_TO,
        TokenInstructionKind.BURN,
    }
)

# Error code reported when the input is too short for an amount-carrying kind.
_SHORT_AMOUNT_CODES = {
    TokenInstructionKind.TRANSFER: 3,
    TokenInstructionKind.APPROVE: 4,
    TokenInstructionKind.MINT_TO: 5,
    TokenInstructionKind.BURN: 6,
}


def _custom(code: int) -> ProgramError:
    return ProgramError(ProgramErrorKind.CUSTOM, code)


@dataclass(frozen=True)
class TokenInstruction:
    """One token program instruction and its arguments."""

    kind: TokenInstructionKind
    amount: int | None = None
    decimals: int | None = None
    m: int | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "kind", TokenInstructionKind(self.kind))
        needs_amount = self.kind in _WITH_AMOUNT
        needs_decimals = self.kind is TokenInstructionKind.INITIALIZE_MINT
        needs_m = self.kind is TokenInstructionKind.INITIALIZE_MULTISIG
        for name, needed, limit in (
            ("amount", needs_amount, _U64_MAX),
            ("decimals", needs_decimals, 0xFF),
            ("m", needs_m, 0xFF),
        ):
            value = getattr(self, name)
            if needed:
                if value is None:
                    raise ValueError(f"{self.kind.name} needs {name}")
                if not 0 <= value <= limit:
                    raise ValueError(f"{name} out of range: {value}")
            elif value is not None:
                raise ValueError(f"{self.kind.name} takes no {name}")

    def pack(self) -> bytes:
        """Encode as a fixed-length byte string."""
        output = bytearray(INSTRUCTION_LEN)
        output[0] = self.kind
        if self.amount is not None:
            _U64.pack_into(output, 1, self.amount)
        if self.decimals is not None:
            output[1 + _U64.size] = self.decimals
        if self.m is not None:
            output[1] = self.m
        return bytes(output)


def unpack_token_instruction(data: bytes) -> TokenInstruction:
    """Decode a packed instruction; raise ProgramError on short or unknown input."""
    if len(data) < 1:
        raise _custom(0)
    tag = data[0]
    try:
        kind = TokenInstructionKind(tag)
    except ValueError:
        raise _custom(7) from None

    if kind is TokenInstructionKind.INITIALIZE_MINT:
        if len(data) < 1 + _U64.size + 1:
            raise _custom(1)
        (amount,) = _U64.unpack_from(data, 1)
        return TokenInstruction(kind, amount=amount, decimals=data[1 + _U64.size])
    if kind is TokenInstructionKind.INITIALIZE_MULTISIG:
        if len(data) < 2:
            raise _custom(2)
        return TokenInstruction(kind, m=data[1])
    if kind in _SHORT_AMOUNT_CODES:
        if len(data) < 1 + _U64.size:
            raise _custom(_SHORT_AMOUNT_CODES[kind])
        (amount,) = _U64.unpack_from(data, 1)
        return TokenInstruction(kind, amount=amount)
    return TokenInstruction(kind)


@dataclass(frozen=True)
class AccountMeta:
    """An account referenced by an instruction, with its access flags."""

    pubkey: Pubkey
    is_signer: bool
    is_writable: bool

    @classmethod
    def writable(cls, pubkey: Pubkey, is_signer: bool) -> AccountMeta:
        return cls(pubkey, is_signer, True)

    @classmethod
    def readonly(cls, pubkey: Pubkey, is_signer: bool) -> AccountMeta:
        return cls(pubkey, is_signer, False)


@dataclass(frozen=True)
class Instruction:
    """A program id, the accounts the instruction touches, and its data."""

    program_id: Pubkey
    accounts: list[AccountMeta] = field(default_factory=list)
    data: bytes = b""


def _authority_and_signers(
    authority: Pubkey, signer_pubkeys: Sequence[Pubkey]
) -> list[AccountMeta]:
    metas = [AccountMeta.readonly(authority, not signer_pubkeys)]
    metas.extend(AccountMeta.writable(signer, True) for signer in signer_pubkeys)
    return metas


def initialize_mint(
    token_program_id: Pubkey,
    mint_pubkey: Pubkey,
    account_pubkey: Pubkey | None,
    owner_pubkey: Pubkey | None,
    amount: int,
    decimals: int,
) -> Instruction:
    """Build an InitializeMint instruction."""
    data = TokenInstruction(
        TokenInstructionKind.INITIALIZE_MINT, amount=amount, decimals=decimals
    ).pack()
    accounts = [AccountMeta.writable(mint_pubkey, False)]
    if amount != 0:
        if account_pubkey is None:
            raise ProgramError(ProgramErrorKind.NOT_ENOUGH_ACCOUNT_KEYS)
        accounts.append(AccountMeta.writable(account_pubkey, False))
    if owner_pubkey is not None:
        accounts.append(AccountMeta.readonly(owner_pubkey, False))
    elif amount == 0:
        raise _custom(8)
    return Instruction(token_program_id, accounts, data)


def initialize_account(
    token_program_id: Pubkey,
    account_pubkey: Pubkey,
    mint_pubkey: Pubkey,
    owner_pubkey: Pubkey,
) -> Instruction:
    """Build an InitializeAccount instruction."""
    data = TokenInstruction(TokenInstructionKind.INITIALIZE_ACCOUNT).pack()
    accounts = [
        AccountMeta.writable(account_pubkey, False),
        AccountMeta.readonly(mint_pubkey, False),
        AccountMeta.readonly(owner_pubkey, False),
    ]
    return Instruction(token_program_id, accounts, data)


def initialize_multisig(
    token_program_id: Pubkey,
    multisig_pubkey: Pubkey,
    signer_pubkeys: Sequence[Pubkey],
    m: int,
) -> Instruction:
    """Build an InitializeMultisig instruction requiring `m` of the signers."""
    if (
        not is_valid_signer_index(m)
        or not is_valid_signer_index(len(signer_pubkeys))
        or m > len(signer_pubkeys)
    ):
        raise ProgramError(ProgramErrorKind.MISSING_REQUIRED_SIGNATURE)
    data = TokenInstruction(TokenInstructionKind.INITIALIZE_MULTISIG, m=m).pack()
    accounts = [AccountMeta.writable(multisig_pubkey, False)]
    accounts.extend(AccountMeta.readonly(signer, False) for signer in signer_pubkeys)
    return Instruction(token_program_id, accounts, data)


def transfer(
    token_program_id: Pubkey,
    source_pubkey: Pubkey,
    destination_pubkey: Pubkey,
    authority_pubkey: Pubkey,
    signer_pubkeys: Sequence[Pubkey],
    amount: int,
) -> Instruction:
    """Build a Transfer instruction."""
    data = TokenInstruction(TokenInstructionKind.TRANSFER, amount=amount).pack()
    accounts = [
        AccountMeta.writable(source_pubkey, False),
        AccountMeta.writable(destination_pubkey, False),
        *_authority_and_signers(authority_pubkey, signer_pubkeys),
    ]
    return Instruction(token_program_id, accounts, data)


def approve(
    token_program_id: Pubkey,
    source_pubkey: Pubkey,
    delegate_pubkey: Pubkey,
    owner_pubkey: Pubkey,
    signer_pubkeys: Sequence[Pubkey],
    amount: int,
) -> Instruction:
    """Build an Approve instruction."""
    data = TokenInstruction(TokenInstructionKind.APPROVE, amount=amount).pack()
    accounts = [
        AccountMeta.readonly(source_pubkey, False),
        AccountMeta.writable(delegate_pubkey, False),
        *_authority_and_signers(owner_pubkey, signer_pubkeys),
    ]
    return Instruction(token_program_id, accounts, data)


def revoke(
    token_program_id: Pubkey,
    source_pubkey: Pubkey,
    owner_pubkey: Pubkey,
    signer_pubkeys: Sequence[Pubkey],
) -> Instruction:
    """Build a Revoke instruction."""
    data = TokenInstruction(TokenInstructionKind.REVOKE).pack()
    accounts = [
        AccountMeta.readonly(source_pubkey, False),
        *_authority_and_signers(owner_pubkey, signer_pubkeys),
    ]
    return Instruction(token_program_id, accounts, data)


def set_owner(
    token_program_id: Pubkey,
    owned_pubkey: Pubkey,
    new_owner_pubkey: Pubkey,
    owner_pubkey: Pubkey,
    signer_pubkeys: Sequence[Pubkey],
) -> Instruction:
    """Build a SetOwner instruction."""
    data = TokenInstruction(TokenInstructionKind.SET_OWNER).pack()
    accounts = [
        AccountMeta.writable(owned_pubkey, False),
        AccountMeta.readonly(new_owner_pubkey, False),
        *_authority_and_signers(owner_pubkey, signer_pubkeys),
    ]
    return Instruction(token_program_id, accounts, data)


def mint_to(
    token_program_id: Pubkey,
    mint_pubkey: Pubkey,
    account_pubkey: Pubkey,
    owner_pubkey: Pubkey,
    signer_pubkeys: Sequence[Pubkey],
    amount: int,
) -> Instruction:
    """Build a MintTo instruction."""
    data = TokenInstruction(TokenInstructionKind.MINT_TO, amount=amount).pack()
    accounts = [
        AccountMeta.writable(mint_pubkey, False),
        AccountMeta.writable(account_pubkey, False),
        *_authority_and_signers(owner_pubkey, signer_pubkeys),
    ]
    return Instruction(token_program_id, accounts, data)


def burn(
    token_program_id: Pubkey,
    account_pubkey: Pubkey,
    authority_pubkey: Pubkey,
    signer_pubkeys: Sequence[Pubkey],
    amount: int,
) -> Instruction:
    """Build a Burn instruction."""
    data = TokenInstruction(TokenInstructionKind.BURN, amount=amount).pack()
    accounts = [
        AccountMeta.writable(account_pubkey, False),
        *_authority_and_signers(authority_pubkey, signer_pubkeys),
    ]
    return Instruction(token_program_id, accounts, data)


def close_account(
    token_program_id: Pubkey,
    account_pubkey: Pubkey,
    dest_pubkey: Pubkey,
    authority_pubkey: Pubkey,
    signer_pubkeys: Sequence[Pubkey],
) -> Instruction:
    """Build a CloseAccount instruction."""
    data = TokenInstruction(TokenInstructionKind.CLOSE_ACCOUNT).pack()
    accounts = [
        AccountMeta.writable(account_pubkey, False),
        AccountMeta.writable(dest_pubkey, False),
        *_authority_and_signers(authority_pubkey, signer_pubkeys),
    ]
    return Instruction(token_program_id, accounts, data)


def is_valid_signer_index(index: int) -> bool:
    """Whether `index` lies between MIN_SIGNERS and MAX_SIGNERS inclusive."""
    return MIN_SIGNERS <= index <= MAX_SIGNERS