"""Notification templates for the payment review workflow"""

from decimal import Decimal
from typing import Any, Dict, Optional, Protocol

from agency_ledger.domain.models import Notification, NotificationType, PaymentSubmission


class NotificationDispatcher(Protocol):
    """Fire-and-forget sink for user notifications"""

    def enqueue_notification(
        self,
        user_id: str,
        type: NotificationType,
        title: str,
        message: str,
        data: Dict[str, Any],
    ) -> None: ...


TITLES = {
    NotificationType.PAYMENT_SUBMITTED: "Payment in process",
    NotificationType.PAYMENT_PENDING_REVIEW: "Payment pending review",
    NotificationType.PAYMENT_APPROVED: "Payment approved",
    NotificationType.PAYMENT_REJECTED: "Payment rejected",
}


def _payload(submission: PaymentSubmission, project_name: Optional[str]) -> Dict[str, Any]:
    return {
        "project_id": submission.project_id,
        "project_name": project_name,
        "submission_id": submission.id,
        "installment_number": submission.installment_number,
        "amount": str(submission.amount),
    }


def _format_amount(amount: Decimal) -> str:
    return f"{amount:,.2f}"


def pending_review(admin_id: str, submission: PaymentSubmission, project_name: Optional[str]) -> Notification:
    return Notification(
        user_id=admin_id,
        type=NotificationType.PAYMENT_PENDING_REVIEW,
        title=TITLES[NotificationType.PAYMENT_PENDING_REVIEW],
        message=f'A payment of {_format_amount(submission.amount)} for "{project_name}" requires approval',
        data=_payload(submission, project_name),
    )


def submitted(submission: PaymentSubmission, project_name: Optional[str]) -> Notification:
    return Notification(
        user_id=submission.submitted_by,
        type=NotificationType.PAYMENT_SUBMITTED,
        title=TITLES[NotificationType.PAYMENT_SUBMITTED],
        message=f"Your payment for installment #{submission.installment_number} is being processed",
        data=_payload(submission, project_name),
    )


def approved(submission: PaymentSubmission, project_name: Optional[str]) -> Notification:
    return Notification(
        user_id=submission.submitted_by,
        type=NotificationType.PAYMENT_APPROVED,
        title=TITLES[NotificationType.PAYMENT_APPROVED],
        message=f"Your payment for installment #{submission.installment_number} has been approved",
        data=_payload(submission, project_name),
    )


def rejected(submission: PaymentSubmission, project_name: Optional[str]) -> Notification:
    message = f"Your payment for installment #{submission.installment_number} has been rejected"
    data = _payload(submission, project_name)
    if submission.review_notes:
        message += f". Reason: {submission.review_notes}"
        data["rejection_notes"] = submission.review_notes

    return Notification(
        user_id=submission.submitted_by,
        type=NotificationType.PAYMENT_REJECTED,
        title=TITLES[NotificationType.PAYMENT_REJECTED],
        message=message,
        data=data,
    )


def dispatch(dispatcher: NotificationDispatcher, notification: Notification) -> None:
    dispatcher.enqueue_notification(
        notification.user_id,
        notification.type,
        notification.title,
        notification.message,
        notification.data,
    )
