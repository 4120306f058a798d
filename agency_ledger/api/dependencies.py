"""Dependency injection for FastAPI endpoints"""

from typing import Any, Dict, Optional

from fastapi import BackgroundTasks, Depends, Header, HTTPException, Request
from sqlalchemy.orm import Session

from agency_ledger.config import settings
from agency_ledger.domain.exceptions import ValidationError
from agency_ledger.domain.models import Actor, NotificationType, UserRole
from agency_ledger.domain.notifications import NotificationDispatcher
from agency_ledger.infrastructure.clients.notifications import NotificationClient
from agency_ledger.infrastructure.clients.storage import StorageClient
from agency_ledger.infrastructure.database.session import get_db
from agency_ledger.services.payments import PaymentSubmissionStore
from agency_ledger.services.projects import ProjectService
from agency_ledger.services.reports import ReportService
from agency_ledger.services.transactions import TransactionLedger
from agency_ledger.utils.clock import Clock


def get_request_id(request: Request) -> str:
    """Extract request ID from request state"""
    return getattr(request.state, "request_id", "unknown")


def get_current_actor(
    x_user_id: Optional[str] = Header(None),
    x_user_role: Optional[str] = Header(None),
) -> Actor:
    """Caller identity forwarded by the auth gateway in X-User-Id / X-User-Role"""
    if not x_user_id:
        raise HTTPException(status_code=401, detail="Missing X-User-Id header")
    try:
        role = UserRole((x_user_role or "").lower())
    except ValueError:
        raise HTTPException(status_code=401, detail=f"Unknown role: {x_user_role!r}")
    return Actor(user_id=x_user_id, role=role)


async def read_receipt_body(request: Request) -> bytes:
    """
    Read a raw receipt upload, refusing it once it passes receipt_max_bytes.

    A declared Content-Length over the limit is rejected before any of the
    body is read; otherwise the stream is counted as it arrives.
    """
    max_bytes = settings.receipt_max_bytes
    too_large = ValidationError(f"Receipt exceeds the maximum size of {max_bytes / (1024 * 1024):g}MB")

    declared = request.headers.get("content-length")
    if declared and declared.isdigit() and int(declared) > max_bytes:
        raise too_large

    chunks = []
    received = 0
    async for chunk in request.stream():
        received += len(chunk)
        if received > max_bytes:
            raise too_large
        chunks.append(chunk)
    return b"".join(chunks)


def get_admin_user_ids() -> list[str]:
    """Admins notified when a payment enters review"""
    return list(settings.admin_user_ids)


def get_clock() -> Clock:
    return Clock()


def get_storage_client() -> StorageClient:
    """Provide receipt storage client instance"""
    return StorageClient()


def get_notification_client() -> NotificationClient:
    """Provide notification webhook client instance"""
    return NotificationClient()


class BackgroundNotificationDispatcher:
    """Sends each notification from a background task once the response is out"""

    def __init__(self, background_tasks: BackgroundTasks, client: NotificationClient):
        self.background_tasks = background_tasks
        self.client = client

    def enqueue_notification(
        self,
        user_id: str,
        type: NotificationType,
        title: str,
        message: str,
        data: Dict[str, Any],
    ) -> None:
        self.background_tasks.add_task(
            self.client.send_notification,
            {
                "user_id": user_id,
                "type": type.value,
                "title": title,
                "message": message,
                "data": data,
            },
        )


def get_notifier(
    background_tasks: BackgroundTasks,
    client: NotificationClient = Depends(get_notification_client),
) -> NotificationDispatcher:
    return BackgroundNotificationDispatcher(background_tasks, client)


def get_project_service(db: Session = Depends(get_db), clock: Clock = Depends(get_clock)) -> ProjectService:
    return ProjectService(db, clock)


def get_payment_store(
    db: Session = Depends(get_db),
    notifier: NotificationDispatcher = Depends(get_notifier),
    clock: Clock = Depends(get_clock),
    storage: StorageClient = Depends(get_storage_client),
) -> PaymentSubmissionStore:
    return PaymentSubmissionStore(db, notifier, clock, storage)


def get_transaction_ledger(
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
    storage: StorageClient = Depends(get_storage_client),
) -> TransactionLedger:
    return TransactionLedger(db, clock, storage)


def get_report_service(db: Session = Depends(get_db), clock: Clock = Depends(get_clock)) -> ReportService:
    return ReportService(db, clock)
