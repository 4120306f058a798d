"""Manually recorded income and expense entries"""

import logging
from datetime import date
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from agency_ledger.domain.exceptions import NotFoundError, StorageError, ValidationError
from agency_ledger.domain.models import Actor, Transaction, TransactionStatus, TransactionType
from agency_ledger.infrastructure.clients.storage import StorageClient
from agency_ledger.infrastructure.database.models import TransactionRecord
from agency_ledger.infrastructure.database.repositories import (
    TransactionRepository,
    parse_uuid,
    transaction_to_domain,
)
from agency_ledger.infrastructure.observability.logging import log_transaction
from agency_ledger.infrastructure.observability.metrics import transaction_counter
from agency_ledger.services.access import require_admin
from agency_ledger.services.receipts import receipt_path
from agency_ledger.utils.clock import Clock
from agency_ledger.utils.money import to_money

MAX_DESCRIPTION_LENGTH = 500

EDITABLE_FIELDS = {"type", "category", "amount", "date", "status", "receipt_url", "description", "project_id"}

logger = logging.getLogger(__name__)


class TransactionLedger:
    """Admin-only CRUD over transactions that are independent of installments"""

    def __init__(self, db: Session, clock: Clock | None = None, storage: StorageClient | None = None):
        self.db = db
        self.clock = clock or Clock()
        self.storage = storage or StorageClient()
        self.transactions = TransactionRepository(db)

    def create(
        self,
        actor: Actor,
        type: TransactionType,
        category: str,
        amount: Decimal,
        date: Optional[date] = None,
        status: Optional[TransactionStatus] = None,
        receipt_url: Optional[str] = None,
        description: Optional[str] = None,
        project_id: Optional[str] = None,
    ) -> Transaction:
        """Record a transaction; status defaults to approved and date to today"""
        require_admin(actor, "record transactions")
        fields = self._clean(
            {
                "type": type,
                "category": category,
                "amount": amount,
                "date": date or self.clock.today(),
                "status": status or TransactionStatus.APPROVED,
                "receipt_url": receipt_url,
                "description": description,
                "project_id": project_id,
            }
        )

        try:
            db_transaction = self.transactions.create_transaction(created_by=actor.user_id, **fields)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        transaction = transaction_to_domain(db_transaction)
        transaction_counter.labels(type=transaction.type.value).inc()
        log_transaction("created", transaction.id, actor.user_id)
        return transaction

    def update(self, actor: Actor, transaction_id: str, **changes: Any) -> Transaction:
        require_admin(actor, "edit transactions")
        unknown = set(changes) - EDITABLE_FIELDS
        if unknown:
            raise ValidationError(f"Fields cannot be edited: {sorted(unknown)}")

        try:
            db_transaction = self._load(transaction_id)
            self.transactions.update_transaction(db_transaction, self._clean(changes))
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        log_transaction("updated", transaction_id, actor.user_id)
        return transaction_to_domain(db_transaction)

    async def delete(self, actor: Actor, transaction_id: str) -> None:
        """
        Delete a transaction and the receipt it references in storage.

        The delete is final once committed: a storage failure afterwards is
        logged and leaves the receipt orphaned.
        """
        require_admin(actor, "delete transactions")

        try:
            db_transaction = self._load(transaction_id)
            receipt_url = db_transaction.receipt_url
            self.transactions.delete_transaction(db_transaction)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        log_transaction("deleted", transaction_id, actor.user_id)
        if receipt_url and self.storage.manages(receipt_url):
            try:
                await self.storage.delete_file(receipt_url)
            except StorageError as e:
                logger.error(
                    "Receipt cleanup failed",
                    extra={"transaction_id": transaction_id, "receipt_url": receipt_url, "error": str(e)},
                )

    def get(self, actor: Actor, transaction_id: str) -> Transaction:
        require_admin(actor, "view transactions")
        return transaction_to_domain(self._load(transaction_id))

    def list(self, actor: Actor, start: Optional[date] = None, end: Optional[date] = None) -> List[Transaction]:
        """Transactions in an optional inclusive date range, newest first"""
        require_admin(actor, "view transactions")
        if start and end and end < start:
            raise ValidationError(f"Range end {end} is before start {start}")
        return [transaction_to_domain(t) for t in self.transactions.list_transactions(start, end)]

    async def upload_receipt(self, actor: Actor, filename: str, content_type: str, content: bytes) -> str:
        require_admin(actor, "upload transaction receipts")
        path = receipt_path("transactions", filename, content_type, len(content), self.clock.now())
        return await self.storage.store_file(path, content, content_type)

    def _load(self, transaction_id: str) -> TransactionRecord:
        transaction_uuid = parse_uuid(transaction_id)
        db_transaction = self.transactions.get_transaction(transaction_uuid) if transaction_uuid else None
        if db_transaction is None:
            raise NotFoundError(f"Transaction {transaction_id} not found")
        return db_transaction

    @staticmethod
    def _clean(fields: Dict[str, Any]) -> Dict[str, Any]:
        """Validate and normalize column values; enums are stored by value"""
        cleaned: Dict[str, Any] = {}
        for name, value in fields.items():
            if name == "type":
                try:
                    value = TransactionType(value).value
                except ValueError as e:
                    raise ValidationError(f"Invalid transaction type: {value!r}") from e
            elif name == "status":
                try:
                    value = TransactionStatus(value).value
                except ValueError as e:
                    raise ValidationError(f"Invalid transaction status: {value!r}") from e
            elif name == "amount":
                try:
                    value = to_money(value)
                except (InvalidOperation, TypeError, ValueError) as e:
                    raise ValidationError(f"Invalid amount: {value!r}") from e
                if value <= 0:
                    raise ValidationError("Amount must be positive")
            elif name == "category":
                if not value or not str(value).strip():
                    raise ValidationError("Category is required")
                value = str(value).strip()
            elif name == "date":
                if value is None:
                    raise ValidationError("Date is required")
            elif name == "description":
                if value is not None and len(value) > MAX_DESCRIPTION_LENGTH:
                    raise ValidationError(f"Description exceeds {MAX_DESCRIPTION_LENGTH} characters")
            elif name == "project_id":
                if value is not None:
                    project_uuid = parse_uuid(value)
                    if project_uuid is None:
                        raise ValidationError(f"Invalid project id: {value!r}")
                    value = project_uuid
            cleaned[name] = value
        return cleaned
