"""
Exception hierarchy for the arbitrage simulator.

Quote-layer errors are always recovered inside the market package;
none of them reach the portfolio ledger.
"""


class ArbitrageError(Exception):
    """Base exception for simulator errors."""


class InvalidQuote(ArbitrageError):
    """Quote with malformed or non-positive price data."""

    def __init__(self, message: str, exchange: str = "", symbol: str = "") -> None:
        super().__init__(message)
        self.exchange = exchange
        self.symbol = symbol


class FetchFailure(ArbitrageError):
    """Quote source could not provide data."""

    def __init__(self, message: str, source: str = "", status: int | None = None) -> None:
        super().__init__(message)
        self.source = source
        self.status = status


class FetchTimeout(FetchFailure):
    """Quote source did not answer within the allowed time."""

    pass


class InsufficientData(ArbitrageError):
    """Fewer quotes than needed to form a buy/sell pair."""

    pass
