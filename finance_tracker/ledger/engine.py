"""
Daily ledger entry points.

expand days -> aggregate per account -> assemble rows -> order columns

The computation is a pure function of its inputs. Bad records never stop
it; anything unexpected is logged and an empty ledger is returned.
"""

import datetime
from typing import Optional, Sequence

import structlog

from finance_tracker.ledger.aggregator import aggregate_accounts
from finance_tracker.ledger.assembler import assemble_summaries, order_accounts
from finance_tracker.ledger.dates import DEFAULT_MAX_DAYS, expand_date_range
from finance_tracker.models.ledger import (
    DailySummary,
    FinanceSnapshot,
    LedgerFilters,
    LedgerView,
)
from finance_tracker.models.records import Account, Expense, Income, Transfer

logger = structlog.get_logger(__name__)


def compute_daily_summaries_strict(
    accounts: Sequence[Account],
    expenses: Sequence[Expense],
    income: Sequence[Income],
    transfers: Sequence[Transfer],
    start: datetime.date,
    end: datetime.date,
    max_days: int = DEFAULT_MAX_DAYS,
) -> list[DailySummary]:
    """Same as compute_daily_summaries, but errors propagate."""
    days = expand_date_range(start, end, max_days=max_days)
    if not days:
        return []

    span = (end - start).days + 1
    if span > max_days:
        logger.info(
            "ledger_range_truncated",
            requested_days=span,
            max_days=max_days,
            last_day=days[-1].isoformat(),
        )

    figures = aggregate_accounts(days, accounts, expenses, income, transfers)
    return assemble_summaries(days, accounts, figures)


def compute_daily_summaries(
    accounts: Sequence[Account],
    expenses: Sequence[Expense],
    income: Sequence[Income],
    transfers: Sequence[Transfer],
    start: datetime.date,
    end: datetime.date,
    max_days: int = DEFAULT_MAX_DAYS,
) -> list[DailySummary]:
    """
    Ledger rows for every day from start to end, newest first.

    Returns an empty list for a reversed range or when the computation
    fails.
    """
    try:
        return compute_daily_summaries_strict(
            accounts, expenses, income, transfers, start, end, max_days
        )
    except Exception as e:
        logger.error(
            "ledger_computation_failed",
            error=str(e),
            error_type=type(e).__name__,
            start=str(start),
            end=str(end),
        )
        return []


def build_ledger(
    snapshot: FinanceSnapshot,
    filters: LedgerFilters,
    max_days: int = DEFAULT_MAX_DAYS,
    fingerprint: Optional[str] = None,
    strict: bool = False,
) -> LedgerView:
    """
    Summaries plus the ordered visible account columns.

    With `strict`, computation errors propagate instead of producing an
    empty ledger.
    """
    compute = compute_daily_summaries_strict if strict else compute_daily_summaries
    summaries = compute(
        snapshot.accounts,
        snapshot.expenses,
        snapshot.income,
        snapshot.transfers,
        filters.start_date,
        filters.end_date,
        max_days=max_days,
    )
    visible = order_accounts(
        snapshot.accounts,
        summaries,
        sort_by=filters.sort_by,
        direction=filters.sort_direction,
        visible_ids=filters.visible_accounts,
        custom_order=filters.custom_order,
    )
    return LedgerView(
        summaries=summaries,
        visible_accounts=visible,
        filters=filters,
        fingerprint=fingerprint,
    )
