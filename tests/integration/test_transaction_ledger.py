"""Integration tests for the manual transaction ledger"""

import asyncio
import httpx
import logging
import pytest
import uuid
from datetime import date
from decimal import Decimal
from agency_ledger.domain.exceptions import NotFoundError, PermissionDeniedError, ValidationError
from agency_ledger.domain.models import TransactionStatus, TransactionType
from agency_ledger.infrastructure.clients.storage import StorageClient
from agency_ledger.services.transactions import TransactionLedger


@pytest.fixture
def ledger(db, clock, storage) -> TransactionLedger:
    return TransactionLedger(db, clock, storage)


def test_create_transaction_defaults(ledger, admin, clock):
    """Test status defaults to approved and date to today"""
    transaction = ledger.create(admin, TransactionType.EXPENSE, "software", Decimal("49.999"))

    assert transaction.status == TransactionStatus.APPROVED
    assert transaction.date == clock.today()
    assert transaction.amount == Decimal("50.00")
    assert transaction.created_by == "admin-1"
    assert ledger.get(admin, transaction.id) == transaction


def test_create_transaction_with_project(ledger, admin, project):
    transaction = ledger.create(
        admin,
        "income",
        " consulting ",
        "1200",
        date=date(2025, 1, 3),
        status="pending",
        description="Kickoff workshop",
        project_id=project.id,
    )

    assert transaction.type == TransactionType.INCOME
    assert transaction.category == "consulting"
    assert transaction.status == TransactionStatus.PENDING
    assert transaction.project_id == project.id


@pytest.mark.parametrize(
    "overrides,message",
    [
        ({"type": "refund"}, "type"),
        ({"amount": Decimal("0")}, "positive"),
        ({"amount": "twelve"}, "Invalid amount"),
        ({"category": "  "}, "Category"),
        ({"status": "archived"}, "status"),
        ({"description": "x" * 501}, "500"),
        ({"project_id": "not-a-uuid"}, "project id"),
    ],
)
def test_create_transaction_validation(ledger, admin, overrides, message):
    fields = {"type": "expense", "category": "rent", "amount": Decimal("100")}
    fields.update(overrides)

    with pytest.raises(ValidationError, match=message):
        ledger.create(admin, **fields)


def test_ledger_is_admin_only(ledger, admin, collaborator):
    transaction = ledger.create(admin, "expense", "rent", Decimal("100"))

    with pytest.raises(PermissionDeniedError):
        ledger.create(collaborator, "expense", "rent", Decimal("100"))
    with pytest.raises(PermissionDeniedError):
        ledger.get(collaborator, transaction.id)
    with pytest.raises(PermissionDeniedError):
        ledger.list(collaborator)
    with pytest.raises(PermissionDeniedError):
        asyncio.run(ledger.delete(collaborator, transaction.id))


def test_update_transaction_partial(ledger, admin):
    transaction = ledger.create(admin, "expense", "rent", Decimal("100"), date=date(2025, 1, 5))

    updated = ledger.update(admin, transaction.id, amount="120.5", status=TransactionStatus.PENDING)

    assert updated.amount == Decimal("120.50")
    assert updated.status == TransactionStatus.PENDING
    assert updated.category == "rent"
    assert updated.date == date(2025, 1, 5)


def test_update_transaction_errors(ledger, admin):
    transaction = ledger.create(admin, "expense", "rent", Decimal("100"))

    with pytest.raises(ValidationError, match="created_by"):
        ledger.update(admin, transaction.id, created_by="someone-else")
    with pytest.raises(ValidationError):
        ledger.update(admin, transaction.id, amount=Decimal("-1"))
    with pytest.raises(NotFoundError):
        ledger.update(admin, str(uuid.uuid4()), amount=Decimal("1"))

    assert ledger.get(admin, transaction.id).amount == Decimal("100.00")


def test_list_transactions_by_range(ledger, admin):
    ledger.create(admin, "income", "consulting", Decimal("10"), date=date(2024, 12, 31))
    middle = ledger.create(admin, "expense", "rent", Decimal("20"), date=date(2025, 1, 10))
    latest = ledger.create(admin, "income", "consulting", Decimal("30"), date=date(2025, 1, 20))

    assert [t.id for t in ledger.list(admin, date(2025, 1, 1), date(2025, 1, 31))] == [latest.id, middle.id]
    assert len(ledger.list(admin)) == 3
    with pytest.raises(ValidationError):
        ledger.list(admin, date(2025, 2, 1), date(2025, 1, 1))


def test_delete_transaction_removes_managed_receipt(ledger, admin, storage_requests):
    """Test the stored receipt file is deleted with its transaction"""
    receipt_url = asyncio.run(ledger.upload_receipt(admin, "factura.png", "image/png", b"\x89PNG"))
    transaction = ledger.create(admin, "expense", "hosting", Decimal("15"), receipt_url=receipt_url)

    asyncio.run(ledger.delete(admin, transaction.id))

    with pytest.raises(NotFoundError):
        ledger.get(admin, transaction.id)
    assert [r.method for r in storage_requests] == ["PUT", "DELETE"]
    assert str(storage_requests[1].url) == receipt_url
    assert "/objects/transactions/" in receipt_url


def test_delete_transaction_leaves_external_receipt(ledger, admin, storage_requests):
    transaction = ledger.create(
        admin, "expense", "hosting", Decimal("15"), receipt_url="https://elsewhere.example/invoice.pdf"
    )

    asyncio.run(ledger.delete(admin, transaction.id))

    assert storage_requests == []


def test_delete_unknown_transaction(ledger, admin):
    with pytest.raises(NotFoundError):
        asyncio.run(ledger.delete(admin, str(uuid.uuid4())))


def test_delete_transaction_succeeds_when_receipt_cleanup_fails(db, clock, admin, caplog):
    """Test a committed delete stays successful and the storage failure is logged"""

    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(500)

    failing_storage = StorageClient(
        base_url="http://storage.test/", bucket="payment-receipts", transport=httpx.MockTransport(handler)
    )
    ledger = TransactionLedger(db, clock, failing_storage)
    receipt_url = "http://storage.test/buckets/payment-receipts/objects/transactions/1_factura.png"
    transaction = ledger.create(admin, "expense", "hosting", Decimal("15"), receipt_url=receipt_url)

    with caplog.at_level(logging.ERROR, logger="agency_ledger.services.transactions"):
        asyncio.run(ledger.delete(admin, transaction.id))

    with pytest.raises(NotFoundError):
        ledger.get(admin, transaction.id)
    assert [r.message for r in caplog.records] == ["Receipt cleanup failed"]
    assert caplog.records[0].receipt_url == receipt_url
