"""Portfolio module holding the ledger and risk metrics."""

from arbsim.portfolio.ledger import LedgerConfig, PortfolioLedger
from arbsim.portfolio.metrics import compute_risk_metrics, max_drawdown_pct, win_rate


__all__ = [
    "LedgerConfig",
    "PortfolioLedger",
    "compute_risk_metrics",
    "max_drawdown_pct",
    "win_rate",
]
