"""
Virtual constant-product bonding curve math.

Quotes reproduce the launchpad contract exactly: every operation is
unsigned integer arithmetic and every division truncates toward zero.
An intermediate that would go negative aborts the trade on-chain; here
it raises ``ValueError``.

    K = virtual_stx * total_supply
    (virtual_stx + stx_reserve) * (total_supply - tokens_sold) = K
"""

from __future__ import annotations

from dataclasses import dataclass

TOKEN_DECIMALS = 6
STX_DECIMALS = 6

TOTAL_SUPPLY = 1_000_000_000 * 10**TOKEN_DECIMALS
VIRTUAL_STX = 10_000 * 10**STX_DECIMALS
GRADUATION_STX = 16_667 * 10**STX_DECIMALS
DEFAULT_FEE_BPS = 100
MAX_FEE_BPS = 500
BPS_DENOMINATOR = 10_000
PRICE_SCALE = 10**12


@dataclass(frozen=True)
class CurveParams:
    """Static parameters shared by every curve of a launchpad."""

    total_supply: int = TOTAL_SUPPLY
    virtual_stx: int = VIRTUAL_STX
    graduation_stx: int = GRADUATION_STX
    fee_bps: int = DEFAULT_FEE_BPS

    def __post_init__(self) -> None:
        if self.total_supply <= 0 or self.virtual_stx <= 0:
            raise ValueError("total_supply and virtual_stx must be positive")
        if self.graduation_stx < 0:
            raise ValueError("graduation_stx must be non-negative")
        if not 0 <= self.fee_bps <= MAX_FEE_BPS:
            raise ValueError(f"fee_bps must be between 0 and {MAX_FEE_BPS}")

    @property
    def k(self) -> int:
        return self.virtual_stx * self.total_supply


@dataclass(frozen=True)
class BuyQuote:
    tokens_out: int
    fee: int
    net_stx: int


@dataclass(frozen=True)
class SellQuote:
    stx_out: int
    fee: int
    gross_stx: int


def _check_state(stx_reserve: int, tokens_sold: int, params: CurveParams) -> int:
    """Validate curve state and return the remaining token reserve."""
    if stx_reserve < 0 or tokens_sold < 0:
        raise ValueError("stx_reserve and tokens_sold must be non-negative")
    if tokens_sold >= params.total_supply:
        raise ValueError("tokens_sold must be below total_supply")
    return params.total_supply - tokens_sold


def fee_for(amount: int, fee_bps: int) -> int:
    return amount * fee_bps // BPS_DENOMINATOR


def buy_quote(
    stx_in: int,
    stx_reserve: int,
    tokens_sold: int,
    params: CurveParams | None = None,
) -> BuyQuote:
    """Tokens received for ``stx_in`` micro-STX, fee taken from the input."""
    params = params or CurveParams()
    if stx_in < 0:
        raise ValueError("stx_in must be non-negative")
    token_reserve = _check_state(stx_reserve, tokens_sold, params)

    fee = fee_for(stx_in, params.fee_bps)
    net_stx = stx_in - fee
    new_token_reserve = params.k // (params.virtual_stx + stx_reserve + net_stx)
    tokens_out = token_reserve - new_token_reserve
    if tokens_out < 0:
        raise ValueError("Curve state is inconsistent with its invariant")
    return BuyQuote(tokens_out=tokens_out, fee=fee, net_stx=net_stx)


def sell_quote(
    tokens_in: int,
    stx_reserve: int,
    tokens_sold: int,
    params: CurveParams | None = None,
) -> SellQuote:
    """Micro-STX received for ``tokens_in`` token units, fee taken from the output."""
    params = params or CurveParams()
    if tokens_in < 0:
        raise ValueError("tokens_in must be non-negative")
    token_reserve = _check_state(stx_reserve, tokens_sold, params)
    if tokens_in > tokens_sold:
        raise ValueError("Cannot sell more tokens than have been sold")

    new_token_reserve = token_reserve + tokens_in
    new_stx_reserve = params.k // new_token_reserve - params.virtual_stx
    if new_stx_reserve < 0:
        raise ValueError("Sell would underflow the virtual reserve")
    gross_stx = stx_reserve - new_stx_reserve
    if gross_stx < 0:
        raise ValueError("Sell would underflow the STX reserve")
    fee = fee_for(gross_stx, params.fee_bps)
    return SellQuote(stx_out=gross_stx - fee, fee=fee, gross_stx=gross_stx)


def marginal_price(
    stx_reserve: int,
    tokens_sold: int,
    params: CurveParams | None = None,
) -> int:
    """Current price in micro-STX per token unit, multiplied by ``PRICE_SCALE``."""
    params = params or CurveParams()
    token_reserve = _check_state(stx_reserve, tokens_sold, params)
    return (params.virtual_stx + stx_reserve) * PRICE_SCALE // token_reserve


def graduation_progress(stx_reserve: int, graduation_stx: int) -> int:
    """Percent of the graduation threshold reached, clamped to 0..100."""
    if graduation_stx == 0:
        return 100
    if stx_reserve <= 0:
        return 0
    return min(100, stx_reserve * 100 // graduation_stx)
