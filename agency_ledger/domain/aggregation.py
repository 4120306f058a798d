"""Financial aggregation - merges recorded transactions and approved payments into time buckets"""

from collections import defaultdict
from datetime import date, timedelta
from decimal import Decimal
from typing import Callable, Dict, Iterable, List, Optional, Sequence, Tuple

from agency_ledger.domain.models import (
    CategoryBreakdown,
    FinancialDataPoint,
    FinancialSummary,
    PaymentStatus,
    PaymentSubmission,
    Transaction,
    TransactionStatus,
    TransactionType,
)
from agency_ledger.utils.date_utils import day_key, generate_date_range, month_bounds, month_key
from agency_ledger.utils.money import ZERO, to_money

BucketFn = Callable[[date], str]


def counted_transactions(transactions: Iterable[Transaction]) -> List[Transaction]:
    """Transactions that count toward totals (approved only)"""
    return [t for t in transactions if t.status == TransactionStatus.APPROVED]


def approved_submissions(submissions: Iterable[PaymentSubmission]) -> List[PaymentSubmission]:
    return [s for s in submissions if s.status == PaymentStatus.APPROVED]


def aggregate(
    transactions: Iterable[Transaction],
    submissions: Iterable[PaymentSubmission],
    bucket_fn: BucketFn,
    seed_buckets: Optional[Sequence[str]] = None,
) -> List[FinancialDataPoint]:
    """
    Merge transactions and approved payment submissions into bucketed totals.

    Requirements:
    - Income transactions add to income, expense transactions to expense
    - Approved submissions add to income, bucketed by review date (submission date
      if never reviewed)
    - Pending transactions and non-approved submissions are ignored
    - Buckets sorted ascending; with ``seed_buckets`` exactly those buckets are
      returned, zero-filled, and anything falling outside them is dropped
    """
    totals: Dict[str, List[Decimal]] = {}
    if seed_buckets is not None:
        for key in seed_buckets:
            totals[key] = [ZERO, ZERO]

    def _bucket(day: date) -> Optional[List[Decimal]]:
        key = bucket_fn(day)
        if key not in totals:
            if seed_buckets is not None:
                return None
            totals[key] = [ZERO, ZERO]
        return totals[key]

    for txn in counted_transactions(transactions):
        bucket = _bucket(txn.date)
        if bucket is None:
            continue
        if txn.type == TransactionType.INCOME:
            bucket[0] += to_money(txn.amount)
        else:
            bucket[1] += to_money(txn.amount)

    for submission in approved_submissions(submissions):
        bucket = _bucket(submission.received_at.date())
        if bucket is None:
            continue
        bucket[0] += to_money(submission.amount)

    return [
        FinancialDataPoint(bucket_label=key, income=income, expense=expense)
        for key, (income, expense) in sorted(totals.items())
    ]


def monthly_trend(
    transactions: Iterable[Transaction],
    submissions: Iterable[PaymentSubmission],
) -> List[FinancialDataPoint]:
    """YYYY-MM buckets for every month with at least one contributing record"""
    return aggregate(transactions, submissions, month_key)


def daily_range(
    transactions: Iterable[Transaction],
    submissions: Iterable[PaymentSubmission],
    start: date,
    end: date,
) -> List[FinancialDataPoint]:
    """YYYY-MM-DD buckets for every day in [start, end], zero-filled"""
    if end < start:
        raise ValueError(f"Range end {end} is before start {start}")
    seed = [day_key(day) for day in generate_date_range(start, end)]
    return aggregate(transactions, submissions, day_key, seed_buckets=seed)


def summarize(points: Sequence[FinancialDataPoint]) -> FinancialSummary:
    """
    Totals and a two-bucket trend for a series.

    Trend is net of the second half minus net of the first half, split at
    len(points) // 2. It is a rough direction indicator, not a regression.
    """
    total_income = sum((p.income for p in points), ZERO)
    total_expense = sum((p.expense for p in points), ZERO)

    midpoint = len(points) // 2
    first_half_net = sum((p.net for p in points[:midpoint]), ZERO)
    second_half_net = sum((p.net for p in points[midpoint:]), ZERO)

    return FinancialSummary(
        total_income=to_money(total_income),
        total_expense=to_money(total_expense),
        net_profit=to_money(total_income - total_expense),
        trend=to_money(second_half_net - first_half_net),
        bucket_count=len(points),
    )


def category_breakdown(transactions: Iterable[Transaction]) -> List[CategoryBreakdown]:
    """Per-category totals with their percentage of the type total, largest first"""
    by_category: Dict[Tuple[TransactionType, str], Decimal] = defaultdict(lambda: ZERO)
    by_type: Dict[TransactionType, Decimal] = defaultdict(lambda: ZERO)

    for txn in counted_transactions(transactions):
        amount = to_money(txn.amount)
        by_category[(txn.type, txn.category)] += amount
        by_type[txn.type] += amount

    breakdown = []
    for (txn_type, category), amount in by_category.items():
        type_total = by_type[txn_type]
        percentage = to_money(amount * 100 / type_total) if type_total else ZERO
        breakdown.append(
            CategoryBreakdown(category=category, type=txn_type, amount=amount, percentage=percentage)
        )

    return sorted(breakdown, key=lambda b: (b.type.value, -b.amount, b.category))


def available_months(
    transactions: Iterable[Transaction],
    submissions: Iterable[PaymentSubmission],
) -> List[str]:
    """YYYY-MM keys with any activity, most recent first"""
    months = {month_key(t.date) for t in counted_transactions(transactions)}
    months.update(month_key(s.received_at.date()) for s in approved_submissions(submissions))
    return sorted(months, reverse=True)


def trailing_range(today: date, days: int = 30) -> Tuple[date, date]:
    """Range covering the last ``days`` days up to and including today"""
    return today - timedelta(days=days), today


def month_range(key: str) -> Tuple[date, date]:
    """Range covering one YYYY-MM month"""
    return month_bounds(key)
