"""Mock implementations for testing."""

from tests.mocks.quotes import (
    FailingQuoteSource,
    FakeClock,
    SlowQuoteSource,
    StaticQuoteSource,
    make_opportunity,
    make_quote,
    make_record,
)


__all__ = [
    "FailingQuoteSource",
    "FakeClock",
    "SlowQuoteSource",
    "StaticQuoteSource",
    "make_opportunity",
    "make_quote",
    "make_record",
]
