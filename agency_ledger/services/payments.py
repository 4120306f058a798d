"""Payment submission lifecycle: submit, approve, reject"""

import uuid
from decimal import Decimal, InvalidOperation
from typing import Iterable, List, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from agency_ledger.domain import notifications
from agency_ledger.domain.exceptions import (
    ConflictError,
    InvalidStateError,
    NotFoundError,
    PermissionDeniedError,
    ValidationError,
)
from agency_ledger.domain.models import Actor, PaymentStatus, PaymentSubmission
from agency_ledger.domain.notifications import NotificationDispatcher
from agency_ledger.infrastructure.clients.storage import StorageClient
from agency_ledger.infrastructure.database.models import PaymentSubmissionRecord, ProjectRecord
from agency_ledger.infrastructure.database.repositories import (
    PaymentSubmissionRepository,
    ProjectRepository,
    parse_uuid,
    submission_to_domain,
)
from agency_ledger.infrastructure.observability.logging import log_review, log_submission
from agency_ledger.infrastructure.observability.metrics import (
    record_review,
    submission_conflict_counter,
    submission_counter,
)
from agency_ledger.services.access import require_admin
from agency_ledger.services.receipts import receipt_path
from agency_ledger.utils.clock import Clock
from agency_ledger.utils.money import to_money


class PaymentSubmissionStore:
    """
    Owns the pending -> approved | rejected state machine of payment submissions.

    Every transition is committed before notifications are enqueued, so a
    failed write never produces a notification.
    """

    def __init__(
        self,
        db: Session,
        notifier: NotificationDispatcher,
        clock: Clock | None = None,
        storage: StorageClient | None = None,
    ):
        self.db = db
        self.notifier = notifier
        self.clock = clock or Clock()
        self.storage = storage or StorageClient()
        self.projects = ProjectRepository(db)
        self.submissions = PaymentSubmissionRepository(db)

    def submit(
        self,
        actor: Actor,
        project_id: str,
        installment_number: int,
        amount: Decimal,
        receipt_url: str,
        admin_user_ids: Iterable[str] = (),
    ) -> PaymentSubmission:
        """
        Record a claim that an installment was paid.

        Raises:
            ValidationError: Non-positive amount or missing receipt
            NotFoundError: Unknown project or installment
            PermissionDeniedError: Actor is neither admin nor project member
            ConflictError: Installment already paid or already has a pending submission
        """
        amount = self._validate_amount(amount)
        if not receipt_url or not receipt_url.strip():
            raise ValidationError("A receipt is required")

        db_project = self._load_project(project_id)
        if not actor.is_admin and not self.projects.is_member(db_project.id, actor.user_id):
            raise PermissionDeniedError("Only project members can submit payments")

        try:
            installment = self.projects.get_installment(db_project.id, installment_number, for_update=True)
            if installment is None:
                raise NotFoundError(f"Installment #{installment_number} not found on project {project_id}")
            if installment.paid:
                submission_conflict_counter.labels(reason="already_paid").inc()
                raise ConflictError(f"Installment #{installment_number} is already paid")
            if self.submissions.find_pending(db_project.id, installment_number) is not None:
                submission_conflict_counter.labels(reason="pending_exists").inc()
                raise ConflictError(f"Installment #{installment_number} already has a payment pending review")

            db_submission = self.submissions.create_submission(
                project_id=db_project.id,
                installment_number=installment_number,
                amount=amount,
                receipt_url=receipt_url.strip(),
                submitted_by=actor.user_id,
                submitted_at=self.clock.now(),
            )
            project_name = db_project.name
            self.db.commit()

        except IntegrityError as e:
            # A concurrent submit won the race on the pending-uniqueness index
            self.db.rollback()
            submission_conflict_counter.labels(reason="pending_exists").inc()
            raise ConflictError(
                f"Installment #{installment_number} already has a payment pending review"
            ) from e
        except Exception:
            self.db.rollback()
            raise

        submission = submission_to_domain(db_submission)
        submission_counter.inc()
        log_submission(submission.id, submission.project_id, installment_number, actor.user_id)

        for admin_id in dict.fromkeys(admin_user_ids):
            notifications.dispatch(self.notifier, notifications.pending_review(admin_id, submission, project_name))
        notifications.dispatch(self.notifier, notifications.submitted(submission, project_name))

        return submission

    def approve(self, actor: Actor, submission_id: str) -> PaymentSubmission:
        """
        Approve a pending submission and mark its installment paid.

        Both writes happen in one database transaction: either the submission
        is approved and the installment paid, or neither changes.

        Raises:
            PermissionDeniedError: Actor is not an admin
            NotFoundError: Unknown submission, or its installment no longer exists
            InvalidStateError: Submission already reviewed
            ConflictError: Installment already marked paid
        """
        require_admin(actor, "approve payments")

        try:
            db_submission = self._load_pending(submission_id)
            now = self.clock.now()

            if self.submissions.mark_reviewed(db_submission.id, PaymentStatus.APPROVED, now, actor.user_id) != 1:
                raise InvalidStateError(f"Submission {submission_id} is no longer pending")

            number = db_submission.installment_number
            if self.projects.mark_installment_paid(db_submission.project_id, number, now) != 1:
                if self.projects.get_installment(db_submission.project_id, number) is None:
                    raise NotFoundError(f"Installment #{number} no longer exists on project {db_submission.project_id}")
                raise ConflictError(f"Installment #{number} is already paid")

            project_name = self._project_name(db_submission.project_id)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        submission = submission_to_domain(db_submission)
        record_review(PaymentStatus.APPROVED.value, submission.amount)
        log_review(submission.id, submission.project_id, number, PaymentStatus.APPROVED.value, actor.user_id)
        notifications.dispatch(self.notifier, notifications.approved(submission, project_name))

        return submission

    def reject(self, actor: Actor, submission_id: str, notes: Optional[str] = None) -> PaymentSubmission:
        """
        Reject a pending submission. The installment stays unpaid.

        Raises:
            PermissionDeniedError: Actor is not an admin
            NotFoundError: Unknown submission
            InvalidStateError: Submission already reviewed
        """
        require_admin(actor, "reject payments")
        notes = notes.strip() if notes and notes.strip() else None

        try:
            db_submission = self._load_pending(submission_id)
            updated = self.submissions.mark_reviewed(
                db_submission.id, PaymentStatus.REJECTED, self.clock.now(), actor.user_id, notes
            )
            if updated != 1:
                raise InvalidStateError(f"Submission {submission_id} is no longer pending")

            project_name = self._project_name(db_submission.project_id)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        submission = submission_to_domain(db_submission)
        record_review(PaymentStatus.REJECTED.value, submission.amount)
        log_review(
            submission.id,
            submission.project_id,
            submission.installment_number,
            PaymentStatus.REJECTED.value,
            actor.user_id,
            notes,
        )
        notifications.dispatch(self.notifier, notifications.rejected(submission, project_name))

        return submission

    def get(self, actor: Actor, submission_id: str) -> PaymentSubmission:
        db_submission = self._load(submission_id)
        if not actor.is_admin and db_submission.submitted_by != actor.user_id:
            if not self.projects.is_member(db_submission.project_id, actor.user_id):
                raise PermissionDeniedError("Only project members can view this submission")
        return submission_to_domain(db_submission)

    def list_pending(self, actor: Actor) -> List[PaymentSubmission]:
        """Review queue, newest first"""
        require_admin(actor, "review payments")
        return [submission_to_domain(s) for s in self.submissions.list_pending()]

    def list_for_project(self, actor: Actor, project_id: str) -> List[PaymentSubmission]:
        """Payment history of one project, newest first"""
        project_uuid = parse_uuid(project_id)
        if project_uuid is None:
            raise NotFoundError(f"Project {project_id} not found")
        if not actor.is_admin and not self.projects.is_member(project_uuid, actor.user_id):
            raise PermissionDeniedError("Only project members can view project payments")
        return [submission_to_domain(s) for s in self.submissions.list_for_project(project_uuid)]

    def list_all(self, actor: Actor) -> List[PaymentSubmission]:
        require_admin(actor, "view all payments")
        return [submission_to_domain(s) for s in self.submissions.list_all()]

    async def upload_receipt(
        self,
        actor: Actor,
        project_id: str,
        installment_number: int,
        filename: str,
        content_type: str,
        content: bytes,
    ) -> str:
        """Store a payment receipt and return its URL for a later submit()"""
        db_project = self._load_project(project_id)
        if not actor.is_admin and not self.projects.is_member(db_project.id, actor.user_id):
            raise PermissionDeniedError("Only project members can upload receipts")
        if self.projects.get_installment(db_project.id, installment_number) is None:
            raise NotFoundError(f"Installment #{installment_number} not found on project {project_id}")

        path = receipt_path(
            f"{db_project.id}/installment_{installment_number}",
            filename,
            content_type,
            len(content),
            self.clock.now(),
        )
        return await self.storage.store_file(path, content, content_type)

    def _load(self, submission_id: str, for_update: bool = False) -> PaymentSubmissionRecord:
        submission_uuid = parse_uuid(submission_id)
        db_submission = (
            self.submissions.get_submission(submission_uuid, for_update=for_update) if submission_uuid else None
        )
        if db_submission is None:
            raise NotFoundError(f"Payment submission {submission_id} not found")
        return db_submission

    def _load_pending(self, submission_id: str) -> PaymentSubmissionRecord:
        db_submission = self._load(submission_id, for_update=True)
        if db_submission.status != PaymentStatus.PENDING.value:
            raise InvalidStateError(f"Submission {submission_id} is already {db_submission.status}")
        return db_submission

    def _load_project(self, project_id: str) -> ProjectRecord:
        project_uuid = parse_uuid(project_id)
        db_project = self.projects.get_project(project_uuid) if project_uuid else None
        if db_project is None:
            raise NotFoundError(f"Project {project_id} not found")
        return db_project

    def _project_name(self, project_id: uuid.UUID) -> Optional[str]:
        db_project = self.projects.get_project(project_id)
        return db_project.name if db_project else None

    @staticmethod
    def _validate_amount(amount) -> Decimal:
        try:
            amount = to_money(amount)
        except (InvalidOperation, TypeError, ValueError) as e:
            raise ValidationError(f"Invalid amount: {amount!r}") from e
        if amount <= 0:
            raise ValidationError("Amount must be positive")
        return amount
