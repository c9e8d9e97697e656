"""Market data module for quote sources and the fallback provider."""

from arbsim.market.provider import QuoteProvider
from arbsim.market.sources import CoinGeckoQuoteSource, QuoteSource, SyntheticQuoteSource


__all__ = [
    "CoinGeckoQuoteSource",
    "QuoteProvider",
    "QuoteSource",
    "SyntheticQuoteSource",
]
