"""Correlation guard — limits exposure to assets that move together."""

from dataclasses import dataclass
from typing import Iterable, Mapping, Protocol


class _HasSymbol(Protocol):
    symbol: str


@dataclass(frozen=True)
class CorrelationCheck:
    blocked: bool
    reason: str = ""


def base_asset(symbol: str) -> str:
    """``"ETH/USDT"`` → ``"ETH"``; bare tickers pass through upper-cased."""
    for sep in ("/", "_", "-"):
        if sep in symbol:
            return symbol.split(sep, 1)[0].upper()
    return symbol.upper()


def check_correlation_block(
    symbol: str,
    open_positions: Iterable[_HasSymbol],
    correlated_assets: Mapping[str, Iterable[str]],
    max_correlated: int = 2,
) -> CorrelationCheck:
    """Block a new *symbol* position when too many correlated ones are open.

    Blocked iff at least *max_correlated* open positions are in assets
    configured as correlated with the candidate's base asset.
    """
    peers = {p.upper() for p in correlated_assets.get(base_asset(symbol), ())}
    if not peers:
        return CorrelationCheck(False)

    conflicting = [
        base_asset(p.symbol) for p in open_positions if base_asset(p.symbol) in peers
    ]
    if len(conflicting) >= max_correlated:
        return CorrelationCheck(
            True,
            f"Too many correlated positions: {', '.join(conflicting)} already open",
        )
    return CorrelationCheck(False)
