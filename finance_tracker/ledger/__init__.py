"""
Daily Account Ledger

Derives per-day, per-account inflow, outflow and running balance from the
expense, income and transfer streams.
"""

from finance_tracker.ledger.aggregator import aggregate_account_day, aggregate_accounts
from finance_tracker.ledger.assembler import (
    assemble_summaries,
    column_labels,
    order_accounts,
    sort_summaries,
)
from finance_tracker.ledger.dates import (
    add_months,
    expand_date_range,
    format_date_for_display,
    format_date_for_storage,
    month_window,
    parse_date,
)
from finance_tracker.ledger.engine import (
    build_ledger,
    compute_daily_summaries,
    compute_daily_summaries_strict,
)
from finance_tracker.ledger.resolver import AccountResolver, ResolutionMethod
from finance_tracker.ledger.service import DailySummaryService, fingerprint

__all__ = [
    "AccountResolver",
    "DailySummaryService",
    "ResolutionMethod",
    "add_months",
    "aggregate_account_day",
    "aggregate_accounts",
    "assemble_summaries",
    "build_ledger",
    "column_labels",
    "compute_daily_summaries",
    "compute_daily_summaries_strict",
    "expand_date_range",
    "fingerprint",
    "format_date_for_display",
    "format_date_for_storage",
    "month_window",
    "order_accounts",
    "parse_date",
    "sort_summaries",
]
