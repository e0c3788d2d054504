"""
Stablecoin/fiat equivalence classes.

A quote currency can be swapped for any other member of its class when
searching for matching pairs across exchanges: BTC/USDT on one venue is
comparable to BTC/USDC or BTC/USD on another. The table is fixed at import
time and never mutated.
"""
from __future__ import annotations

from types import MappingProxyType
from typing import Mapping

FIAT_CODES = frozenset(["USD", "EUR"])

EQUIVALENCE_CLASSES: Mapping[str, frozenset[str]] = MappingProxyType({
    "USD": frozenset(["USD", "USDT", "USDC", "BUSD", "DAI", "TUSD", "USDP", "GUSD", "FDUSD"]),
    "EUR": frozenset(["EUR", "EURS", "EURT", "SEUR", "CEUR", "EURE", "JEUR"]),
})

STABLECOINS = frozenset(
    symbol
    for members in EQUIVALENCE_CLASSES.values()
    for symbol in members
    if symbol not in FIAT_CODES
)

# Conversion pair ranking: lower is better
PRIORITY_FIAT = 1
PRIORITY_STABLECOIN = 2
PRIORITY_OTHER = 3

_CLASS_OF: Mapping[str, frozenset[str]] = MappingProxyType({
    symbol: members
    for members in EQUIVALENCE_CLASSES.values()
    for symbol in members
})


def variants_of(symbol: str) -> frozenset[str]:
    """All symbols interchangeable with `symbol`, itself included.

    Symbols outside every class map to the singleton {symbol}.
    """
    return _CLASS_OF.get(symbol, frozenset([symbol]))


def conversion_priority(base_symbol: str, quote_symbol: str) -> int:
    """Rank a candidate conversion pair by what it trades.

    Fiat on either side beats a stablecoin on either side, which beats
    anything else.
    """
    if base_symbol in FIAT_CODES or quote_symbol in FIAT_CODES:
        return PRIORITY_FIAT
    if base_symbol in STABLECOINS or quote_symbol in STABLECOINS:
        return PRIORITY_STABLECOIN
    return PRIORITY_OTHER
