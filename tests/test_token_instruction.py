import pytest
from hypothesis import given
from hypothesis import strategies as st

from dexkit.errors import ProgramError, ProgramErrorKind
from dexkit.pubkey import Pubkey
from dexkit.token_instruction import (
    INSTRUCTION_LEN,
    MAX_SIGNERS,
    MIN_SIGNERS,
    AccountMeta,
    TokenInstruction,
    TokenInstructionKind,
    approve,
    burn,
    close_account,
    initialize_account,
    initialize_mint,
    initialize_multisig,
    is_valid_signer_index,
    mint_to,
    revoke,
    set_owner,
    transfer,
    unpack_token_instruction,
)

U64 = st.integers(min_value=0, max_value=(1 << 64) - 1)
U8 = st.integers(min_value=0, max_value=255)


def key(n):
    return Pubkey(bytes([n]) * 32)


PROGRAM = key(1)
A, B, C = key(2), key(3), key(4)
S1, S2 = key(5), key(6)


def custom(code):
    return ProgramError(ProgramErrorKind.CUSTOM, code)


AMOUNT_KINDS = [
    TokenInstructionKind.TRANSFER,
    TokenInstructionKind.APPROVE,
    TokenInstructionKind.MINT_TO,
    TokenInstructionKind.BURN,
]
PLAIN_KINDS = [
    TokenInstructionKind.INITIALIZE_ACCOUNT,
    TokenInstructionKind.REVOKE,
    TokenInstructionKind.SET_OWNER,
    TokenInstructionKind.CLOSE_ACCOUNT,
]


def test_transfer_wire_bytes():
    packed = TokenInstruction(TokenInstructionKind.TRANSFER, amount=1).pack()
    expected = bytes([3]) + (1).to_bytes(8, "little")
    assert packed == expected + bytes(INSTRUCTION_LEN - len(expected))


def test_initialize_mint_wire_bytes():
    packed = TokenInstruction(
        TokenInstructionKind.INITIALIZE_MINT, amount=1000, decimals=6
    ).pack()
    assert packed[0] == 0
    assert packed[1:9] == (1000).to_bytes(8, "little")
    assert packed[9] == 6
    assert len(packed) == INSTRUCTION_LEN


@given(U64, U8)
def test_initialize_mint_round_trip(amount, decimals):
    ix = TokenInstruction(
        TokenInstructionKind.INITIALIZE_MINT, amount=amount, decimals=decimals
    )
    assert unpack_token_instruction(ix.pack()) == ix


@pytest.mark.parametrize("kind", AMOUNT_KINDS)
@given(amount=U64)
def test_amount_round_trip(kind, amount):
    ix = TokenInstruction(kind, amount=amount)
    packed = ix.pack()
    assert packed[0] == kind
    assert unpack_token_instruction(packed) == ix


@given(U8)
def test_multisig_round_trip(m):
    ix = TokenInstruction(TokenInstructionKind.INITIALIZE_MULTISIG, m=m)
    assert unpack_token_instruction(ix.pack()) == ix


@pytest.mark.parametrize("kind", PLAIN_KINDS)
def test_plain_round_trip(kind):
    packed = TokenInstruction(kind).pack()
    assert packed == bytes([kind]) + bytes(INSTRUCTION_LEN - 1)
    assert unpack_token_instruction(packed) == TokenInstruction(kind)


def test_unpack_minimal_lengths():
    assert unpack_token_instruction(bytes([5])) == TokenInstruction(
        TokenInstructionKind.REVOKE
    )
    assert unpack_token_instruction(bytes([3]) + bytes(8)) == TokenInstruction(
        TokenInstructionKind.TRANSFER, amount=0
    )


@pytest.mark.parametrize(
    "data, code",
    [
        (b"", 0),
        (bytes([0]) + bytes(8), 1),
        (bytes([2]), 2),
        (bytes([3]) + bytes(7), 3),
        (bytes([4]) + bytes(7), 4),
        (bytes([7]) + bytes(7), 5),
        (bytes([8]) + bytes(7), 6),
        (bytes([10]), 7),
        (bytes([255]) + bytes(20), 7),
    ],
)
def test_unpack_errors(data, code):
    with pytest.raises(ProgramError) as exc:
        unpack_token_instruction(data)
    assert exc.value == custom(code)


def test_instruction_argument_validation():
    with pytest.raises(ValueError):
        TokenInstruction(TokenInstructionKind.TRANSFER)
    with pytest.raises(ValueError):
        TokenInstruction(TokenInstructionKind.REVOKE, amount=1)
    with pytest.raises(ValueError):
        TokenInstruction(TokenInstructionKind.TRANSFER, amount=1 << 64)
    with pytest.raises(ValueError):
        TokenInstruction(TokenInstructionKind.INITIALIZE_MINT, amount=1)


def test_initialize_mint_with_supply_and_owner():
    ix = initialize_mint(PROGRAM, A, B, C, 10, 2)
    assert ix.program_id == PROGRAM
    assert ix.accounts == [
        AccountMeta(A, False, True),
        AccountMeta(B, False, True),
        AccountMeta(C, False, False),
    ]
    assert unpack_token_instruction(ix.data) == TokenInstruction(
        TokenInstructionKind.INITIALIZE_MINT, amount=10, decimals=2
    )


def test_initialize_mint_zero_supply_skips_account():
    ix = initialize_mint(PROGRAM, A, B, C, 0, 2)
    assert ix.accounts == [AccountMeta(A, False, True), AccountMeta(C, False, False)]


def test_initialize_mint_errors():
    with pytest.raises(ProgramError) as exc:
        initialize_mint(PROGRAM, A, None, C, 10, 2)
    assert exc.value == ProgramError(ProgramErrorKind.NOT_ENOUGH_ACCOUNT_KEYS)
    with pytest.raises(ProgramError) as exc:
        initialize_mint(PROGRAM, A, None, None, 0, 2)
    assert exc.value == custom(8)


def test_initialize_mint_supply_without_owner():
    ix = initialize_mint(PROGRAM, A, B, None, 5, 0)
    assert [meta.pubkey for meta in ix.accounts] == [A, B]


def test_initialize_account():
    ix = initialize_account(PROGRAM, A, B, C)
    assert ix.accounts == [
        AccountMeta(A, False, True),
        AccountMeta(B, False, False),
        AccountMeta(C, False, False),
    ]
    assert ix.data[0] == TokenInstructionKind.INITIALIZE_ACCOUNT


def test_initialize_multisig():
    ix = initialize_multisig(PROGRAM, A, [S1, S2], 2)
    assert ix.accounts == [
        AccountMeta(A, False, True),
        AccountMeta(S1, False, False),
        AccountMeta(S2, False, False),
    ]
    assert unpack_token_instruction(ix.data).m == 2


@pytest.mark.parametrize(
    "signers, m",
    [([S1], 0), ([S1], 2), ([], 1), ([S1] * (MAX_SIGNERS + 1), 1)],
)
def test_initialize_multisig_rejects(signers, m):
    with pytest.raises(ProgramError) as exc:
        initialize_multisig(PROGRAM, A, signers, m)
    assert exc.value == ProgramError(ProgramErrorKind.MISSING_REQUIRED_SIGNATURE)


def test_transfer_single_owner():
    ix = transfer(PROGRAM, A, B, C, [], 42)
    assert ix.accounts == [
        AccountMeta(A, False, True),
        AccountMeta(B, False, True),
        AccountMeta(C, True, False),
    ]
    assert unpack_token_instruction(ix.data) == TokenInstruction(
        TokenInstructionKind.TRANSFER, amount=42
    )


def test_transfer_multisig_owner():
    ix = transfer(PROGRAM, A, B, C, [S1, S2], 42)
    assert ix.accounts[2] == AccountMeta(C, False, False)
    assert ix.accounts[3:] == [AccountMeta(S1, True, True), AccountMeta(S2, True, True)]


def test_approve_accounts():
    ix = approve(PROGRAM, A, B, C, [], 7)
    assert ix.accounts == [
        AccountMeta(A, False, False),
        AccountMeta(B, False, True),
        AccountMeta(C, True, False),
    ]
    assert unpack_token_instruction(ix.data).kind is TokenInstructionKind.APPROVE


def test_revoke_accounts():
    ix = revoke(PROGRAM, A, C, [S1])
    assert ix.accounts == [
        AccountMeta(A, False, False),
        AccountMeta(C, False, False),
        AccountMeta(S1, True, True),
    ]
    assert unpack_token_instruction(ix.data) == TokenInstruction(
        TokenInstructionKind.REVOKE
    )


def test_set_owner_accounts():
    ix = set_owner(PROGRAM, A, B, C, [])
    assert ix.accounts == [
        AccountMeta(A, False, True),
        AccountMeta(B, False, False),
        AccountMeta(C, True, False),
    ]


def test_mint_to_accounts():
    ix = mint_to(PROGRAM, A, B, C, [], 9)
    assert ix.accounts == [
        AccountMeta(A, False, True),
        AccountMeta(B, False, True),
        AccountMeta(C, True, False),
    ]
    assert unpack_token_instruction(ix.data).amount == 9


def test_burn_accounts():
    ix = burn(PROGRAM, A, C, [S1], 3)
    assert ix.accounts == [
        AccountMeta(A, False, True),
        AccountMeta(C, False, False),
        AccountMeta(S1, True, True),
    ]
    assert unpack_token_instruction(ix.data) == TokenInstruction(
        TokenInstructionKind.BURN, amount=3
    )


def test_close_account_accounts():
    ix = close_account(PROGRAM, A, B, C, [])
    assert ix.accounts == [
        AccountMeta(A, False, True),
        AccountMeta(B, False, True),
        AccountMeta(C, True, False),
    ]
    assert ix.data[0] == TokenInstructionKind.CLOSE_ACCOUNT


def test_is_valid_signer_index():
    assert not is_valid_signer_index(MIN_SIGNERS - 1)
    assert is_valid_signer_index(MIN_SIGNERS)
    assert is_valid_signer_index(MAX_SIGNERS)
    assert not is_valid_signer_index(MAX_SIGNERS + 1)
    assert (MIN_SIGNERS, MAX_SIGNERS) == (1, 11)