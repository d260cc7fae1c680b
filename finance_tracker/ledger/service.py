"""
Recompute-on-demand wrapper around the ledger engine.

The ledger is recomputed only when its inputs change. Inputs are identified
by a SHA-256 fingerprint of the four record streams plus the filter state,
so equal content hits the cache even when the objects are new.
"""

import hashlib
from typing import Optional

import structlog

from finance_tracker.ledger.dates import DEFAULT_MAX_DAYS
from finance_tracker.ledger.engine import build_ledger
from finance_tracker.models.ledger import FinanceSnapshot, LedgerFilters, LedgerView

logger = structlog.get_logger(__name__)


def fingerprint(
    snapshot: FinanceSnapshot,
    filters: LedgerFilters,
    max_days: int = DEFAULT_MAX_DAYS,
) -> str:
    """Content hash of everything the ledger depends on."""
    digest = hashlib.sha256()
    digest.update(snapshot.model_dump_json().encode("utf-8"))
    digest.update(b"\x00")
    digest.update(filters.model_dump_json().encode("utf-8"))
    digest.update(f"\x00{max_days}".encode("utf-8"))
    return digest.hexdigest()


class DailySummaryService:
    """
    Holds the last computed LedgerView.

    One instance per user session; no locking.
    """

    def __init__(self, max_days: int = DEFAULT_MAX_DAYS, strict: bool = False):
        self.max_days = max_days
        self.strict = strict
        self._cached: Optional[LedgerView] = None
        self.last_was_cache_hit = False

    @property
    def cached_view(self) -> Optional[LedgerView]:
        return self._cached

    def get_view(self, snapshot: FinanceSnapshot, filters: LedgerFilters) -> LedgerView:
        """Return the cached view if inputs are unchanged, else recompute."""
        key = fingerprint(snapshot, filters, self.max_days)

        if self._cached is not None and self._cached.fingerprint == key:
            self.last_was_cache_hit = True
            logger.debug("ledger_cache_hit", fingerprint=key[:12])
            return self._cached

        view = build_ledger(
            snapshot,
            filters,
            max_days=self.max_days,
            fingerprint=key,
            strict=self.strict,
        )
        self._cached = view
        self.last_was_cache_hit = False
        logger.info(
            "ledger_recomputed",
            fingerprint=key[:12],
            days=view.day_count,
            accounts=len(snapshot.accounts),
        )
        return view

    def invalidate(self) -> None:
        """Forget the cached view; the next call recomputes."""
        self._cached = None
