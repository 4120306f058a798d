"""Data access layer for projects, payment submissions and transactions"""

import uuid
from datetime import date, datetime, timezone
from typing import Any, Dict, List, Optional
from sqlalchemy.orm import Session
from agency_ledger.infrastructure.database.models import (
    InstallmentRecord,
    PaymentSubmissionRecord,
    ProjectMemberRecord,
    ProjectRecord,
    TransactionRecord,
)
from agency_ledger.domain.models import (
    Installment,
    PaymentStatus,
    PaymentSubmission,
    Project,
    Transaction,
    TransactionStatus,
    TransactionType,
)


def parse_uuid(value: str) -> Optional[uuid.UUID]:
    """Parse an id coming from a caller; None when malformed"""
    if isinstance(value, uuid.UUID):
        return value
    try:
        return uuid.UUID(str(value))
    except ValueError:
        return None


def _aware(value: Optional[datetime]) -> Optional[datetime]:
    # SQLite drops tzinfo; everything is stored in UTC
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def installment_to_domain(record: InstallmentRecord) -> Installment:
    return Installment(
        number=record.number,
        amount=record.amount,
        date=record.due_date,
        paid=record.paid,
        paid_at=_aware(record.paid_at),
    )


def project_to_domain(record: ProjectRecord) -> Project:
    return Project(
        id=str(record.id),
        name=record.name,
        budget=record.budget,
        deadline=record.deadline,
        installments=[
            installment_to_domain(inst) for inst in sorted(record.installments, key=lambda r: r.number)
        ],
        member_ids=sorted(m.user_id for m in record.members),
        created_at=_aware(record.created_at),
    )


def submission_to_domain(record: PaymentSubmissionRecord) -> PaymentSubmission:
    return PaymentSubmission(
        id=str(record.id),
        project_id=str(record.project_id),
        installment_number=record.installment_number,
        amount=record.amount,
        receipt_url=record.receipt_url,
        status=PaymentStatus(record.status),
        submitted_by=record.submitted_by,
        submitted_at=_aware(record.submitted_at),
        reviewed_at=_aware(record.reviewed_at),
        reviewed_by=record.reviewed_by,
        review_notes=record.review_notes,
    )


def transaction_to_domain(record: TransactionRecord) -> Transaction:
    return Transaction(
        id=str(record.id),
        type=TransactionType(record.type),
        category=record.category,
        amount=record.amount,
        date=record.date,
        status=TransactionStatus(record.status),
        receipt_url=record.receipt_url,
        description=record.description,
        project_id=str(record.project_id) if record.project_id else None,
        created_by=record.created_by,
        created_at=_aware(record.created_at),
    )


class ProjectRepository:
    """Repository for projects and their installment schedules"""

    def __init__(self, db: Session):
        self.db = db

    def create_project(
        self,
        name: str,
        budget,
        deadline: Optional[date],
        installments: List[Installment],
        member_ids: List[str],
    ) -> ProjectRecord:
        """Create project with installments and members"""
        db_project = ProjectRecord(name=name, budget=budget, deadline=deadline)
        for inst in installments:
            db_project.installments.append(
                InstallmentRecord(
                    number=inst.number,
                    amount=inst.amount,
                    due_date=inst.date,
                    paid=inst.paid,
                    paid_at=inst.paid_at,
                )
            )
        for user_id in dict.fromkeys(member_ids):
            db_project.members.append(ProjectMemberRecord(user_id=user_id))

        self.db.add(db_project)
        self.db.flush()
        return db_project

    def get_project(self, project_id: uuid.UUID, for_update: bool = False) -> Optional[ProjectRecord]:
        query = self.db.query(ProjectRecord).filter(ProjectRecord.id == project_id)
        if for_update:
            query = query.with_for_update()
        return query.first()

    def list_projects(self) -> List[ProjectRecord]:
        return self.db.query(ProjectRecord).order_by(ProjectRecord.created_at.desc()).all()

    def replace_installments(self, db_project: ProjectRecord, installments: List[Installment]) -> None:
        """
        Make the stored schedule match ``installments``.

        Rows are updated in place by number so the (project_id, number)
        unique constraint never sees two rows for the same number.
        """
        current = {rec.number: rec for rec in db_project.installments}
        for inst in installments:
            rec = current.pop(inst.number, None)
            if rec is None:
                db_project.installments.append(
                    InstallmentRecord(
                        number=inst.number,
                        amount=inst.amount,
                        due_date=inst.date,
                        paid=inst.paid,
                        paid_at=inst.paid_at,
                    )
                )
            else:
                rec.amount = inst.amount
                rec.due_date = inst.date
                rec.paid = inst.paid
                rec.paid_at = inst.paid_at

        for rec in current.values():
            db_project.installments.remove(rec)

        self.db.flush()

    def get_installment(
        self, project_id: uuid.UUID, number: int, for_update: bool = False
    ) -> Optional[InstallmentRecord]:
        query = self.db.query(InstallmentRecord).filter(
            InstallmentRecord.project_id == project_id,
            InstallmentRecord.number == number,
        )
        if for_update:
            query = query.with_for_update()
        return query.first()

    def mark_installment_paid(self, project_id: uuid.UUID, number: int, paid_at: datetime) -> int:
        """Flip an unpaid installment to paid; returns the number of rows changed (0 or 1)"""
        return (
            self.db.query(InstallmentRecord)
            .filter(
                InstallmentRecord.project_id == project_id,
                InstallmentRecord.number == number,
                InstallmentRecord.paid.is_(False),
            )
            .update({"paid": True, "paid_at": paid_at}, synchronize_session="fetch")
        )

    def add_member(self, db_project: ProjectRecord, user_id: str) -> None:
        if not any(m.user_id == user_id for m in db_project.members):
            db_project.members.append(ProjectMemberRecord(user_id=user_id))
            self.db.flush()

    def is_member(self, project_id: uuid.UUID, user_id: str) -> bool:
        return (
            self.db.query(ProjectMemberRecord.id)
            .filter(ProjectMemberRecord.project_id == project_id, ProjectMemberRecord.user_id == user_id)
            .first()
            is not None
        )

    def delete_project(self, db_project: ProjectRecord) -> None:
        self.db.delete(db_project)
        self.db.flush()


class PaymentSubmissionRepository:
    """Repository for installment payment submissions"""

    def __init__(self, db: Session):
        self.db = db

    def create_submission(
        self,
        project_id: uuid.UUID,
        installment_number: int,
        amount,
        receipt_url: str,
        submitted_by: str,
        submitted_at: datetime,
    ) -> PaymentSubmissionRecord:
        """Insert a pending submission; flush surfaces unique-index violations"""
        db_submission = PaymentSubmissionRecord(
            project_id=project_id,
            installment_number=installment_number,
            amount=amount,
            receipt_url=receipt_url,
            status=PaymentStatus.PENDING.value,
            submitted_by=submitted_by,
            submitted_at=submitted_at,
        )
        self.db.add(db_submission)
        self.db.flush()
        return db_submission

    def get_submission(self, submission_id: uuid.UUID, for_update: bool = False) -> Optional[PaymentSubmissionRecord]:
        query = self.db.query(PaymentSubmissionRecord).filter(PaymentSubmissionRecord.id == submission_id)
        if for_update:
            query = query.with_for_update()
        return query.first()

    def find_pending(self, project_id: uuid.UUID, installment_number: int) -> Optional[PaymentSubmissionRecord]:
        return (
            self.db.query(PaymentSubmissionRecord)
            .filter(
                PaymentSubmissionRecord.project_id == project_id,
                PaymentSubmissionRecord.installment_number == installment_number,
                PaymentSubmissionRecord.status == PaymentStatus.PENDING.value,
            )
            .first()
        )

    def mark_reviewed(
        self,
        submission_id: uuid.UUID,
        status: PaymentStatus,
        reviewed_at: datetime,
        reviewed_by: str,
        review_notes: Optional[str] = None,
    ) -> int:
        """Move a pending submission to a terminal status; returns rows changed (0 or 1)"""
        return (
            self.db.query(PaymentSubmissionRecord)
            .filter(
                PaymentSubmissionRecord.id == submission_id,
                PaymentSubmissionRecord.status == PaymentStatus.PENDING.value,
            )
            .update(
                {
                    "status": status.value,
                    "reviewed_at": reviewed_at,
                    "reviewed_by": reviewed_by,
                    "review_notes": review_notes,
                },
                synchronize_session="fetch",
            )
        )

    def list_pending(self) -> List[PaymentSubmissionRecord]:
        return self._ordered(
            self.db.query(PaymentSubmissionRecord).filter(
                PaymentSubmissionRecord.status == PaymentStatus.PENDING.value
            )
        )

    def list_for_project(self, project_id: uuid.UUID) -> List[PaymentSubmissionRecord]:
        return self._ordered(
            self.db.query(PaymentSubmissionRecord).filter(PaymentSubmissionRecord.project_id == project_id)
        )

    def list_all(self) -> List[PaymentSubmissionRecord]:
        return self._ordered(self.db.query(PaymentSubmissionRecord))

    def list_approved(self) -> List[PaymentSubmissionRecord]:
        query = self.db.query(PaymentSubmissionRecord).filter(
            PaymentSubmissionRecord.status == PaymentStatus.APPROVED.value
        )
        return query.order_by(PaymentSubmissionRecord.submitted_at.asc()).all()

    @staticmethod
    def _ordered(query) -> List[PaymentSubmissionRecord]:
        return query.order_by(PaymentSubmissionRecord.submitted_at.desc()).all()


class TransactionRepository:
    """Repository for manually recorded transactions"""

    def __init__(self, db: Session):
        self.db = db

    def create_transaction(self, **fields: Any) -> TransactionRecord:
        db_transaction = TransactionRecord(**fields)
        self.db.add(db_transaction)
        self.db.flush()
        return db_transaction

    def get_transaction(self, transaction_id: uuid.UUID) -> Optional[TransactionRecord]:
        return self.db.query(TransactionRecord).filter(TransactionRecord.id == transaction_id).first()

    def update_transaction(self, db_transaction: TransactionRecord, changes: Dict[str, Any]) -> TransactionRecord:
        for name, value in changes.items():
            setattr(db_transaction, name, value)
        self.db.flush()
        return db_transaction

    def delete_transaction(self, db_transaction: TransactionRecord) -> None:
        self.db.delete(db_transaction)
        self.db.flush()

    def list_transactions(self, start: Optional[date] = None, end: Optional[date] = None) -> List[TransactionRecord]:
        """Fetch transactions in an optional inclusive date range, newest first"""
        query = self.db.query(TransactionRecord)
        if start is not None:
            query = query.filter(TransactionRecord.date >= start)
        if end is not None:
            query = query.filter(TransactionRecord.date <= end)
        return query.order_by(TransactionRecord.date.desc(), TransactionRecord.created_at.desc()).all()
