"""Financial reports built from persisted transactions and approved payments"""

from datetime import date
from typing import List, Optional, Tuple

from sqlalchemy.orm import Session

from agency_ledger.config import settings
from agency_ledger.domain import aggregation
from agency_ledger.domain.exceptions import ValidationError
from agency_ledger.domain.models import (
    Actor,
    CategoryBreakdown,
    FinancialDataPoint,
    FinancialSummary,
    PaymentSubmission,
    Transaction,
)
from agency_ledger.infrastructure.database.repositories import (
    PaymentSubmissionRepository,
    TransactionRepository,
    submission_to_domain,
    transaction_to_domain,
)
from agency_ledger.services.access import require_admin
from agency_ledger.utils.clock import Clock
from agency_ledger.utils.date_utils import add_months


class ReportService:
    """Read-only financial views for the admin dashboard and the finance report"""

    def __init__(self, db: Session, clock: Clock | None = None):
        self.db = db
        self.clock = clock or Clock()
        self.transactions = TransactionRepository(db)
        self.submissions = PaymentSubmissionRepository(db)

    def monthly(self, actor: Actor, months: Optional[int] = None) -> List[FinancialDataPoint]:
        """
        Month-by-month trend. With ``months`` only that many calendar months,
        the current one included, are loaded (the dashboard uses 12);
        ``months=0`` means all time.
        """
        require_admin(actor, "view financial reports")
        if months is None:
            months = settings.dashboard_history_months
        if months < 0:
            raise ValidationError("months must not be negative")

        since = add_months(self.clock.today(), -(months - 1)).replace(day=1) if months else None
        transactions, submissions = self._load(since)
        return aggregation.monthly_trend(transactions, submissions)

    def daily(self, actor: Actor, start: date, end: date) -> List[FinancialDataPoint]:
        """One zero-filled point per day in [start, end]"""
        require_admin(actor, "view financial reports")
        if end < start:
            raise ValidationError(f"Range end {end} is before start {start}")
        transactions, submissions = self._load(start, end)
        return aggregation.daily_range(transactions, submissions, start, end)

    def last_days(self, actor: Actor, days: Optional[int] = None) -> List[FinancialDataPoint]:
        days = settings.report_default_days if days is None else days
        if days < 0:
            raise ValidationError("days must not be negative")
        start, end = aggregation.trailing_range(self.clock.today(), days)
        return self.daily(actor, start, end)

    def month(self, actor: Actor, month_key: str) -> List[FinancialDataPoint]:
        """Daily view of one calendar month (YYYY-MM)"""
        try:
            start, end = aggregation.month_range(month_key)
        except ValueError as e:
            raise ValidationError(str(e)) from e
        return self.daily(actor, start, end)

    def summary(self, actor: Actor, start: Optional[date] = None, end: Optional[date] = None) -> FinancialSummary:
        """Totals and trend over a daily range, or over the all-time monthly series"""
        if start is not None and end is not None:
            return aggregation.summarize(self.daily(actor, start, end))
        if start is not None or end is not None:
            raise ValidationError("Both start and end are required for a ranged summary")
        return aggregation.summarize(self.monthly(actor, months=0))

    def categories(
        self, actor: Actor, start: Optional[date] = None, end: Optional[date] = None
    ) -> List[CategoryBreakdown]:
        require_admin(actor, "view financial reports")
        transactions = [transaction_to_domain(t) for t in self.transactions.list_transactions(start, end)]
        return aggregation.category_breakdown(transactions)

    def available_months(self, actor: Actor) -> List[str]:
        require_admin(actor, "view financial reports")
        transactions, submissions = self._load()
        return aggregation.available_months(transactions, submissions)

    def _load(
        self, start: Optional[date] = None, end: Optional[date] = None
    ) -> Tuple[List[Transaction], List[PaymentSubmission]]:
        transactions = [transaction_to_domain(t) for t in self.transactions.list_transactions(start, end)]
        submissions = [submission_to_domain(s) for s in self.submissions.list_approved()]
        if start is not None:
            submissions = [s for s in submissions if s.received_at.date() >= start]
        if end is not None:
            submissions = [s for s in submissions if s.received_at.date() <= end]
        return transactions, submissions
