"""Unit tests for financial aggregation"""

import pytest
from datetime import date, datetime, timezone
from decimal import Decimal
from agency_ledger.domain.aggregation import (
    aggregate,
    available_months,
    category_breakdown,
    daily_range,
    month_range,
    monthly_trend,
    summarize,
    trailing_range,
)
from agency_ledger.domain.models import (
    FinancialDataPoint,
    PaymentStatus,
    PaymentSubmission,
    Transaction,
    TransactionStatus,
    TransactionType,
)
from agency_ledger.utils.date_utils import month_key


def _txn(kind: str, amount: str, day: date, category: str = "general", status=TransactionStatus.APPROVED):
    return Transaction(
        id=f"{kind}-{day}-{amount}",
        type=TransactionType(kind),
        category=category,
        amount=Decimal(amount),
        date=day,
        status=status,
    )


def _submission(amount: str, submitted: datetime, reviewed: datetime | None = None, status=PaymentStatus.APPROVED):
    return PaymentSubmission(
        id=f"sub-{submitted.isoformat()}",
        project_id="project-1",
        installment_number=1,
        amount=Decimal(amount),
        receipt_url="http://storage.test/r.pdf",
        status=status,
        submitted_by="collab-1",
        submitted_at=submitted,
        reviewed_at=reviewed,
    )


def _at(year: int, month: int, day: int) -> datetime:
    return datetime(year, month, day, 12, 0, tzinfo=timezone.utc)


def test_daily_range_zero_fills_missing_days():
    """Test one point per day with zeros where nothing happened"""
    points = daily_range([_txn("expense", "50", date(2025, 1, 2))], [], date(2025, 1, 1), date(2025, 1, 3))

    assert [(p.bucket_label, p.income, p.expense) for p in points] == [
        ("2025-01-01", Decimal("0"), Decimal("0")),
        ("2025-01-02", Decimal("0"), Decimal("50")),
        ("2025-01-03", Decimal("0"), Decimal("0")),
    ]


def test_daily_range_drops_records_outside_range():
    transactions = [_txn("income", "100", date(2024, 12, 31)), _txn("income", "70", date(2025, 1, 1))]
    submissions = [_submission("500", _at(2025, 1, 5))]

    points = daily_range(transactions, submissions, date(2025, 1, 1), date(2025, 1, 2))

    assert len(points) == 2
    assert points[0].income == Decimal("70")
    assert points[1].income == Decimal("0")


def test_daily_range_rejects_inverted_range():
    with pytest.raises(ValueError):
        daily_range([], [], date(2025, 1, 3), date(2025, 1, 1))


def test_aggregate_counts_each_record_once():
    """Income is income transactions plus approved payments; expense is expense transactions"""
    transactions = [
        _txn("income", "1000", date(2025, 1, 3)),
        _txn("expense", "200", date(2025, 1, 4)),
        _txn("income", "999", date(2025, 1, 5), status=TransactionStatus.PENDING),
    ]
    submissions = [
        _submission("500", _at(2025, 1, 10), _at(2025, 1, 11)),
        _submission("300", _at(2025, 1, 12), status=PaymentStatus.PENDING),
        _submission("400", _at(2025, 1, 12), _at(2025, 1, 13), status=PaymentStatus.REJECTED),
    ]

    points = monthly_trend(transactions, submissions)

    assert len(points) == 1
    assert points[0].bucket_label == "2025-01"
    assert points[0].income == Decimal("1500.00")
    assert points[0].expense == Decimal("200.00")
    assert points[0].net == Decimal("1300.00")


def test_approved_payment_bucketed_by_review_date():
    """Money counts as received when the admin approved it"""
    submissions = [_submission("500", _at(2025, 1, 31), _at(2025, 2, 1))]

    points = monthly_trend([], submissions)

    assert [p.bucket_label for p in points] == ["2025-02"]


def test_approved_payment_without_review_date_uses_submission_date():
    points = monthly_trend([], [_submission("250", _at(2025, 3, 9))])

    assert points[0].bucket_label == "2025-03"
    assert points[0].income == Decimal("250.00")


def test_monthly_trend_sorted_ascending():
    transactions = [
        _txn("income", "10", date(2025, 3, 1)),
        _txn("income", "10", date(2024, 11, 1)),
        _txn("expense", "5", date(2025, 1, 1)),
    ]

    assert [p.bucket_label for p in monthly_trend(transactions, [])] == ["2024-11", "2025-01", "2025-03"]


def test_aggregate_custom_bucket_fn():
    points = aggregate([_txn("income", "10", date(2025, 1, 1))], [], lambda day: str(day.year))

    assert points == [FinancialDataPoint(bucket_label="2025", income=Decimal("10.00"), expense=Decimal("0.00"))]


def test_summarize_trend_compares_halves():
    """Trend is net of the second half minus net of the first half"""
    points = [
        FinancialDataPoint("2025-01", Decimal("100"), Decimal("0")),
        FinancialDataPoint("2025-02", Decimal("0"), Decimal("50")),
        FinancialDataPoint("2025-03", Decimal("300"), Decimal("100")),
        FinancialDataPoint("2025-04", Decimal("50"), Decimal("0")),
    ]

    summary = summarize(points)

    assert summary.total_income == Decimal("450.00")
    assert summary.total_expense == Decimal("150.00")
    assert summary.net_profit == Decimal("300.00")
    assert summary.trend == Decimal("200.00")
    assert summary.bucket_count == 4


def test_summarize_empty_series():
    summary = summarize([])

    assert summary.net_profit == Decimal("0.00")
    assert summary.trend == Decimal("0.00")
    assert summary.bucket_count == 0


def test_category_breakdown_percentages():
    transactions = [
        _txn("expense", "50", date(2025, 1, 1), category="software"),
        _txn("expense", "25", date(2025, 1, 2), category="software"),
        _txn("expense", "25", date(2025, 1, 3), category="rent"),
        _txn("income", "80", date(2025, 1, 3), category="consulting"),
        _txn("expense", "500", date(2025, 1, 3), category="rent", status=TransactionStatus.PENDING),
    ]

    breakdown = category_breakdown(transactions)

    assert [(b.type, b.category, b.amount, b.percentage) for b in breakdown] == [
        (TransactionType.EXPENSE, "software", Decimal("75.00"), Decimal("75.00")),
        (TransactionType.EXPENSE, "rent", Decimal("25.00"), Decimal("25.00")),
        (TransactionType.INCOME, "consulting", Decimal("80.00"), Decimal("100.00")),
    ]


def test_available_months_newest_first():
    transactions = [_txn("income", "10", date(2024, 12, 5)), _txn("expense", "10", date(2025, 2, 5))]
    submissions = [
        _submission("10", _at(2025, 1, 5)),
        _submission("10", _at(2023, 1, 5), status=PaymentStatus.REJECTED),
    ]

    assert available_months(transactions, submissions) == ["2025-02", "2025-01", "2024-12"]


def test_trailing_range_and_month_range():
    assert trailing_range(date(2025, 1, 31)) == (date(2025, 1, 1), date(2025, 1, 31))
    assert trailing_range(date(2025, 1, 31), days=7) == (date(2025, 1, 24), date(2025, 1, 31))
    assert month_range("2024-02") == (date(2024, 2, 1), date(2024, 2, 29))
    assert month_key(date(2025, 7, 4)) == "2025-07"
