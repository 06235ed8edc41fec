"""Fee tiers and fixed-point fee arithmetic."""

from __future__ import annotations

import enum

_U64_MAX = (1 << 64) - 1
_FRAC_MASK = _U64_MAX
_ONE = 1 << 64


def _check_u64(value: int, name: str) -> int:
    if not 0 <= value <= _U64_MAX:
        raise ValueError(f"{name} must fit in an unsigned 64-bit integer: {value}")
    return value


def fee_bps(bps: int) -> int:
    """The rate of `bps` basis points as a 64.64 fixed-point value, rounded down."""
    return (bps << 64) // 10_000


def rebate_bps(bps: int) -> int:
    """The rebate rate of `bps` basis points, rounded up by one unit."""
    return fee_bps(bps) + 1


class FeeTier(enum.IntEnum):
    """Fee tier, determined by the SRM and MSRM held."""

    BASE = 0
    SRM2 = 1
    SRM3 = 2
    SRM4 = 3
    SRM5 = 4
    SRM6 = 5
    MSRM = 6

    def maker_rebate(self, pc_qty: int) -> int:
        """Rebate paid to a maker for `pc_qty`, rounded down."""
        _check_u64(pc_qty, "pc_qty")
        rate = rebate_bps(5) if self is FeeTier.MSRM else rebate_bps(3)
        return (rate * pc_qty) >> 64

    def taker_rate(self) -> int:
        """Taker fee rate as a 64.64 fixed-point value."""
        return fee_bps(_TAKER_BPS[self])

    def taker_fee(self, pc_qty: int) -> int:
        """Fee charged to a taker for `pc_qty`, rounded up."""
        _check_u64(pc_qty, "pc_qty")
        exact = self.taker_rate() * pc_qty
        return (exact >> 64) + (1 if exact & _FRAC_MASK else 0)

    def remove_taker_fee(self, pc_qty_incl_fee: int) -> int:
        """The quantity that, with the taker fee added, comes to at most `pc_qty_incl_fee`."""
        _check_u64(pc_qty_incl_fee, "pc_qty_incl_fee")
        return (pc_qty_incl_fee << 64) // (_ONE + self.taker_rate())


_TAKER_BPS = {
    FeeTier.BASE: 22,
    FeeTier.SRM2: 20,
    FeeTier.SRM3: 18,
    FeeTier.SRM4: 16,
    FeeTier.SRM5: 14,
    FeeTier.SRM6: 12,
    FeeTier.MSRM: 10,
}

_ONE_SRM = 1_000_000
_SRM_THRESHOLDS = (
    (_ONE_SRM * 1_000_000, FeeTier.SRM6),
    (_ONE_SRM * 100_000, FeeTier.SRM5),
    (_ONE_SRM * 10_000, FeeTier.SRM4),
    (_ONE_SRM * 1_000, FeeTier.SRM3),
    (_ONE_SRM * 100, FeeTier.SRM2),
)


def fee_tier_from_balances(srm_held: int, msrm_held: int) -> FeeTier:
    """Pick the fee tier for the given native SRM and MSRM balances."""
    if msrm_held >= 1:
        return FeeTier.MSRM
    return next(
        (tier for threshold, tier in _SRM_THRESHOLDS if srm_held >= threshold),
        FeeTier.BASE,
    )


def referrer_rebate(amount: int) -> int:
    """Share of a taker fee paid to the referrer."""
    return amount // 5