"""Integration tests for financial reports over persisted data"""

import pytest
from datetime import date, datetime, timezone
from decimal import Decimal
from agency_ledger.domain.exceptions import PermissionDeniedError, ValidationError
from agency_ledger.services.reports import ReportService
from agency_ledger.services.transactions import TransactionLedger

RECEIPT = "http://storage.test/buckets/payment-receipts/objects/p/1_recibo.pdf"


@pytest.fixture
def reports(db, clock) -> ReportService:
    return ReportService(db, clock)


@pytest.fixture
def ledger(db, clock, storage) -> TransactionLedger:
    return TransactionLedger(db, clock, storage)


@pytest.fixture
def activity(ledger, store, project, admin, collaborator, clock):
    """
    Transactions in Dec 2024 and Jan 2025, one approved payment on 2025-01-15,
    one pending payment and one pending transaction that must not count
    """
    ledger.create(admin, "income", "consulting", Decimal("1000"), date=date(2024, 12, 10))
    ledger.create(admin, "expense", "software", Decimal("300"), date=date(2024, 12, 20))
    ledger.create(admin, "expense", "rent", Decimal("200"), date=date(2025, 1, 2))
    ledger.create(admin, "expense", "rent", Decimal("999"), date=date(2025, 1, 3), status="pending")

    approved = store.submit(collaborator, project.id, 1, Decimal("500"), RECEIPT)
    store.approve(admin, approved.id)
    store.submit(collaborator, project.id, 2, Decimal("500"), RECEIPT)
    return approved


def test_monthly_combines_transactions_and_payments(reports, admin, activity):
    points = reports.monthly(admin)

    assert [(p.bucket_label, p.income, p.expense, p.net) for p in points] == [
        ("2024-12", Decimal("1000.00"), Decimal("300.00"), Decimal("700.00")),
        ("2025-01", Decimal("500.00"), Decimal("200.00"), Decimal("300.00")),
    ]


def test_monthly_window_excludes_older_months(reports, admin, activity, clock):
    clock.set_time(datetime(2025, 2, 10, 9, 0, tzinfo=timezone.utc))

    assert reports.monthly(admin, months=1) == []
    assert [p.bucket_label for p in reports.monthly(admin, months=2)] == ["2025-01"]
    assert [p.bucket_label for p in reports.monthly(admin, months=0)] == ["2024-12", "2025-01"]


def test_monthly_window_counts_current_month(reports, admin, activity, clock):
    """Test a 12-month window ends in the current month and starts eleven months back"""
    clock.set_time(datetime(2025, 12, 5, 9, 0, tzinfo=timezone.utc))

    assert [p.bucket_label for p in reports.monthly(admin, months=12)] == ["2025-01"]
    assert [p.bucket_label for p in reports.monthly(admin, months=13)] == ["2024-12", "2025-01"]


def test_daily_range(reports, admin, activity):
    points = reports.daily(admin, date(2025, 1, 1), date(2025, 1, 3))

    assert [(p.bucket_label, p.income, p.expense) for p in points] == [
        ("2025-01-01", Decimal("0.00"), Decimal("0.00")),
        ("2025-01-02", Decimal("0.00"), Decimal("200.00")),
        ("2025-01-03", Decimal("0.00"), Decimal("0.00")),
    ]


def test_last_days_default_window(reports, admin, activity):
    points = reports.last_days(admin)

    assert len(points) == 31
    assert points[0].bucket_label == "2024-12-16"
    assert points[-1].bucket_label == "2025-01-15"
    assert points[-1].income == Decimal("500.00")
    assert sum(p.expense for p in points) == Decimal("500.00")


def test_month_view(reports, admin, activity):
    points = reports.month(admin, "2024-12")

    assert len(points) == 31
    assert sum(p.income for p in points) == Decimal("1000.00")

    with pytest.raises(ValidationError):
        reports.month(admin, "2024-13")


def test_summary_all_time_and_ranged(reports, admin, activity):
    summary = reports.summary(admin)

    assert summary.total_income == Decimal("1500.00")
    assert summary.total_expense == Decimal("500.00")
    assert summary.net_profit == Decimal("1000.00")
    # Jan net (300) minus Dec net (700)
    assert summary.trend == Decimal("-400.00")

    ranged = reports.summary(admin, date(2025, 1, 1), date(2025, 1, 31))
    assert ranged.net_profit == Decimal("300.00")
    assert ranged.bucket_count == 31

    with pytest.raises(ValidationError):
        reports.summary(admin, start=date(2025, 1, 1))


def test_categories(reports, admin, activity):
    breakdown = reports.categories(admin)

    assert [(b.category, b.percentage) for b in breakdown] == [
        ("software", Decimal("60.00")),
        ("rent", Decimal("40.00")),
        ("consulting", Decimal("100.00")),
    ]


def test_available_months(reports, admin, activity):
    assert reports.available_months(admin) == ["2025-01", "2024-12"]


def test_reports_survive_project_deletion(reports, admin, activity, project, project_service):
    project_service.delete_project(admin, project.id)

    assert reports.summary(admin).total_income == Decimal("1500.00")


def test_reports_are_admin_only(reports, collaborator):
    with pytest.raises(PermissionDeniedError):
        reports.monthly(collaborator)
    with pytest.raises(PermissionDeniedError):
        reports.daily(collaborator, date(2025, 1, 1), date(2025, 1, 2))
    with pytest.raises(PermissionDeniedError):
        reports.available_months(collaborator)


def test_report_argument_validation(reports, admin):
    with pytest.raises(ValidationError):
        reports.daily(admin, date(2025, 1, 2), date(2025, 1, 1))
    with pytest.raises(ValidationError):
        reports.monthly(admin, months=-1)
    with pytest.raises(ValidationError):
        reports.last_days(admin, days=-5)
