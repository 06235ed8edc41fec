"""Error types shared by the exchange program and its tooling."""

from __future__ import annotations

import enum


class ProgramErrorKind(enum.Enum):
    """Built-in runtime error categories."""

    CUSTOM = "custom program error"
    INVALID_ARGUMENT = "invalid program argument"
    INVALID_INSTRUCTION_DATA = "invalid instruction data"
    NOT_ENOUGH_ACCOUNT_KEYS = "not enough account keys given to the instruction"
    MISSING_REQUIRED_SIGNATURE = "missing required signature for instruction"
    ACCOUNT_BORROW_FAILED = "failed to borrow a reference to account data"


class ProgramError(Exception):
    """A runtime program error, optionally carrying a custom numeric code."""

    def __init__(self, kind: ProgramErrorKind, code: int | None = None) -> None:
        if kind is ProgramErrorKind.CUSTOM:
            if code is None:
                raise ValueError("a custom program error needs a code")
            if not 0 <= code <= 0xFFFFFFFF:
                raise ValueError(f"custom error code out of range: {code}")
        elif code is not None:
            raise ValueError(f"{kind.name} takes no code")
        super().__init__(kind, code)
        self.kind = kind
        self.code = code

    def __str__(self) -> str:
        if self.kind is ProgramErrorKind.CUSTOM:
            return f"custom program error: 0x{self.code:x}"
        return self.kind.value

    def __repr__(self) -> str:
        if self.code is None:
            return f"ProgramError({self.kind.name})"
        return f"ProgramError({self.kind.name}, {self.code:#x})"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ProgramError):
            return NotImplemented
        return (self.kind, self.code) == (other.kind, other.code)

    def __hash__(self) -> int:
        return hash((self.kind, self.code))


class DexErrorCode(enum.IntEnum):
    """Numeric error codes reported by the exchange program."""

    INVALID_MARKET_FLAGS = 0
    INVALID_ASK_FLAGS = 1
    INVALID_BID_FLAGS = 2
    INVALID_QUEUE_LENGTH = 3
    OWNER_ACCOUNT_NOT_PROVIDED = 4

    CONSUME_EVENTS_QUEUE_FAILURE = 5
    WRONG_COIN_VAULT = 6
    WRONG_PC_VAULT = 7
    WRONG_COIN_MINT = 8
    WRONG_PC_MINT = 9

    COIN_VAULT_PROGRAM_ID = 10
    PC_VAULT_PROGRAM_ID = 11
    COIN_MINT_PROGRAM_ID = 12
    PC_MINT_PROGRAM_ID = 13

    WRONG_COIN_MINT_SIZE = 14
    WRONG_PC_MINT_SIZE = 15
    WRONG_COIN_VAULT_SIZE = 16
    WRONG_PC_VAULT_SIZE = 17

    UNINITIALIZED_VAULT = 18
    UNINITIALIZED_MINT = 19

    COIN_MINT_UNINITIALIZED = 20
    PC_MINT_UNINITIALIZED = 21
    WRONG_MINT = 22
    WRONG_VAULT_OWNER = 23
    VAULT_HAS_DELEGATE = 24

    ALREADY_INITIALIZED = 25
    WRONG_ACCOUNT_DATA_ALIGNMENT = 26
    WRONG_ACCOUNT_DATA_PADDING_LENGTH = 27
    WRONG_ACCOUNT_HEAD_PADDING = 28
    WRONG_ACCOUNT_TAIL_PADDING = 29

    REQUEST_QUEUE_EMPTY = 30
    EVENT_QUEUE_TOO_SMALL = 31
    SLAB_TOO_SMALL = 32
    BAD_VAULT_SIGNER_NONCE = 33
    INSUFFICIENT_FUNDS = 34

    SPL_ACCOUNT_PROGRAM_ID = 35
    SPL_ACCOUNT_LEN = 36
    WRONG_FEE_DISCOUNT_ACCOUNT_OWNER = 37
    WRONG_FEE_DISCOUNT_MINT = 38

    COIN_PAYER_PROGRAM_ID = 39
    PC_PAYER_PROGRAM_ID = 40
    CLIENT_ID_NOT_FOUND = 41
    TOO_MANY_OPEN_ORDERS = 42

    FAKE_ERROR_SO_WE_DONT_CHANGE_NUMBERS = 43
    BORROW_ERROR = 44

    WRONG_ORDERS_ACCOUNT = 45
    WRONG_BIDS_ACCOUNT = 46
    WRONG_ASKS_ACCOUNT = 47
    WRONG_REQUEST_QUEUE_ACCOUNT = 48
    WRONG_EVENT_QUEUE_ACCOUNT = 49

    REQUEST_QUEUE_FULL = 50
    EVENT_QUEUE_FULL = 51
    MARKET_IS_DISABLED = 52
    WRONG_SIGNER = 53
    TRANSFER_FAILED = 54
    CLIENT_ORDER_ID_IS_ZERO = 55

    WRONG_RENT_SYSVAR_ACCOUNT = 56
    RENT_NOT_PROVIDED = 57
    ORDERS_NOT_RENT_EXEMPT = 58
    ORDER_NOT_FOUND = 59
    ORDER_NOT_YOURS = 60

    WOULD_SELF_TRADE = 61

    UNKNOWN = 1000

    # Line number in the lower 16 bits, source file id in the upper 8 bits.
    ASSERTION_ERROR = 1001

    def __str__(self) -> str:
        return "".join(part.capitalize() for part in self.name.split("_"))


def dex_error_code_from_int(value: int) -> DexErrorCode:
    """Map a raw code to a DexErrorCode; unknown values map to ASSERTION_ERROR."""
    try:
        return DexErrorCode(value)
    except ValueError:
        return DexErrorCode.ASSERTION_ERROR


class SourceFileId(enum.IntEnum):
    """Identifies the source file in which a checked assertion failed."""

    STATE = 1
    MATCHING = 2
    CRITBIT = 3

    @property
    def path(self) -> str:
        return f"src/{self.name.lower()}.rs"

    def __str__(self) -> str:
        return self.path


class DexError(Exception):
    """An exchange error: either a DexErrorCode or a wrapped ProgramError."""

    def __init__(self, code: DexErrorCode | ProgramError) -> None:
        if not isinstance(code, (DexErrorCode, ProgramError)):
            raise TypeError(f"expected DexErrorCode or ProgramError, got {code!r}")
        super().__init__(code)
        self.error = code

    @property
    def error_code(self) -> DexErrorCode | None:
        return self.error if isinstance(self.error, DexErrorCode) else None

    def to_program_error(self) -> ProgramError:
        if isinstance(self.error, ProgramError):
            return self.error
        return ProgramError(ProgramErrorKind.CUSTOM, int(self.error))

    def __str__(self) -> str:
        return str(self.error)

    def __eq__(self, other: object) -> bool:
        if isinstance(other, DexError):
            return self.error == other.error
        if isinstance(other, (DexErrorCode, ProgramError)):
            return self.error == other
        return NotImplemented

    def __hash__(self) -> int:
        return hash(self.error)


class DexAssertionError(DexError):
    """A failed internal check, encoded as a custom program error."""

    def __init__(self, line: int, file_id: SourceFileId | int) -> None:
        self.line = line & 0xFFFF
        self.file_id = SourceFileId(file_id)
        super().__init__(ProgramError(ProgramErrorKind.CUSTOM, self.code()))

    def code(self) -> int:
        return self.line + ((int(self.file_id) & 0xFF) << 24)

    def to_program_error(self) -> ProgramError:
        return ProgramError(ProgramErrorKind.CUSTOM, self.code())

    def __str__(self) -> str:
        return f"assertion failed at {self.file_id.path}:{self.line}"


def check_assert(condition: bool, line: int, file_id: SourceFileId | int) -> None:
    """Raise DexAssertionError for the given location unless condition holds."""
    if not condition:
        raise DexAssertionError(line, file_id)