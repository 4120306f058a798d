"""SQLAlchemy ORM models for projects, installments, payment submissions and transactions"""

import uuid
from sqlalchemy import (
    Boolean,
    Column,
    Date,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    Text,
    UniqueConstraint,
    Uuid,
    text,
)
from sqlalchemy.orm import declarative_base, relationship
from sqlalchemy.sql import func

Base = declarative_base()

MONEY = Numeric(12, 2)


class ProjectRecord(Base):
    """Agency project with budget and deadline"""

    __tablename__ = "project"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    name = Column(Text, nullable=False)
    budget = Column(MONEY, nullable=True)
    deadline = Column(Date, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    installments = relationship(
        "InstallmentRecord",
        back_populates="project",
        cascade="all, delete-orphan",
        order_by="InstallmentRecord.number",
    )
    members = relationship("ProjectMemberRecord", back_populates="project", cascade="all, delete-orphan")


class InstallmentRecord(Base):
    """One installment of a project's payment schedule"""

    __tablename__ = "project_installment"
    __table_args__ = (UniqueConstraint("project_id", "number", name="uq_project_installment_number"),)

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    project_id = Column(Uuid(as_uuid=True), ForeignKey("project.id", ondelete="CASCADE"), nullable=False)
    number = Column(Integer, nullable=False)
    amount = Column(MONEY, nullable=False)
    due_date = Column(Date, nullable=False)
    paid = Column(Boolean, nullable=False, default=False)
    paid_at = Column(DateTime(timezone=True), nullable=True)

    project = relationship("ProjectRecord", back_populates="installments")


class ProjectMemberRecord(Base):
    """User allowed to submit payments for a project"""

    __tablename__ = "project_member"
    __table_args__ = (UniqueConstraint("project_id", "user_id", name="uq_project_member"),)

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    project_id = Column(Uuid(as_uuid=True), ForeignKey("project.id", ondelete="CASCADE"), nullable=False)
    user_id = Column(Text, nullable=False, index=True)

    project = relationship("ProjectRecord", back_populates="members")


class PaymentSubmissionRecord(Base):
    """Installment payment claim awaiting or past admin review.

    project_id is a plain value, not a foreign key: submissions outlive
    deleted projects as financial history.
    """

    __tablename__ = "payment_submission"
    __table_args__ = (
        # At most one pending submission per installment
        Index(
            "uq_payment_submission_pending",
            "project_id",
            "installment_number",
            unique=True,
            sqlite_where=text("status = 'pending'"),
            postgresql_where=text("status = 'pending'"),
        ),
    )

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    project_id = Column(Uuid(as_uuid=True), nullable=False, index=True)
    installment_number = Column(Integer, nullable=False)
    amount = Column(MONEY, nullable=False)
    receipt_url = Column(Text, nullable=False)
    status = Column(Text, nullable=False, default="pending", index=True)
    submitted_by = Column(Text, nullable=False)
    submitted_at = Column(DateTime(timezone=True), nullable=False)
    reviewed_at = Column(DateTime(timezone=True), nullable=True)
    reviewed_by = Column(Text, nullable=True)
    review_notes = Column(Text, nullable=True)


class TransactionRecord(Base):
    """Manually recorded income or expense"""

    __tablename__ = "financial_transaction"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    type = Column(Text, nullable=False)
    category = Column(Text, nullable=False)
    amount = Column(MONEY, nullable=False)
    date = Column(Date, nullable=False, index=True)
    status = Column(Text, nullable=False, default="approved")
    receipt_url = Column(Text, nullable=True)
    description = Column(Text, nullable=True)
    project_id = Column(Uuid(as_uuid=True), nullable=True, index=True)
    created_by = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
