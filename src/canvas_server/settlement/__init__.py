"""Fee computation and the value-transfer collaborator."""

from canvas_server.settlement.fees import (
    FeeSchedule,
    PricingRules,
    dynamic_cost,
    settle,
    simple_cost,
)
from canvas_server.settlement.transfer import (
    InsufficientFundsError,
    SqliteAccountTransfer,
    ValueTransfer,
    fund_account,
    get_balance,
)

__all__ = [
    "FeeSchedule",
    "InsufficientFundsError",
    "PricingRules",
    "SqliteAccountTransfer",
    "ValueTransfer",
    "dynamic_cost",
    "fund_account",
    "get_balance",
    "settle",
    "simple_cost",
]
