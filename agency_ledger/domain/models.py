"""Domain models - pure Python dataclasses representing business entities"""

import enum
from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Dict, List, Optional


class UserRole(str, enum.Enum):
    ADMIN = "admin"
    COLLABORATOR = "collaborator"
    CLIENT = "client"


class PaymentStatus(str, enum.Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class TransactionType(str, enum.Enum):
    INCOME = "income"
    EXPENSE = "expense"


class TransactionStatus(str, enum.Enum):
    APPROVED = "approved"
    PENDING = "pending"


class NotificationType(str, enum.Enum):
    PAYMENT_SUBMITTED = "payment_submitted"
    PAYMENT_PENDING_REVIEW = "payment_pending_review"
    PAYMENT_APPROVED = "payment_approved"
    PAYMENT_REJECTED = "payment_rejected"


@dataclass(frozen=True)
class Actor:
    """Caller identity as resolved by the upstream auth layer"""

    user_id: str
    role: UserRole

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN


@dataclass
class Installment:
    """Single scheduled payment of a project budget"""

    number: int
    amount: Decimal
    date: Optional[date]
    paid: bool = False
    paid_at: Optional[datetime] = None


@dataclass
class Project:
    """Project with its embedded installment schedule"""

    id: str
    name: str
    budget: Optional[Decimal]
    deadline: Optional[date]
    installments: List[Installment] = field(default_factory=list)
    member_ids: List[str] = field(default_factory=list)
    created_at: Optional[datetime] = None


@dataclass
class PaymentSubmission:
    """Claim that an installment was paid, awaiting admin review"""

    id: str
    project_id: str
    installment_number: int
    amount: Decimal
    receipt_url: str
    status: PaymentStatus
    submitted_by: str
    submitted_at: datetime
    reviewed_at: Optional[datetime] = None
    reviewed_by: Optional[str] = None
    review_notes: Optional[str] = None

    @property
    def received_at(self) -> datetime:
        """When the money counts as received: review time, else submission time"""
        return self.reviewed_at or self.submitted_at


@dataclass
class Transaction:
    """Manually recorded income or expense"""

    id: str
    type: TransactionType
    category: str
    amount: Decimal
    date: date
    status: TransactionStatus = TransactionStatus.APPROVED
    receipt_url: Optional[str] = None
    description: Optional[str] = None
    project_id: Optional[str] = None
    created_by: Optional[str] = None
    created_at: Optional[datetime] = None


@dataclass
class Notification:
    """Outbound notification for a single user"""

    user_id: str
    type: NotificationType
    title: str
    message: str
    data: Dict[str, Any] = field(default_factory=dict)


@dataclass
class FinancialDataPoint:
    """Income/expense totals for one time bucket"""

    bucket_label: str
    income: Decimal
    expense: Decimal

    @property
    def net(self) -> Decimal:
        return self.income - self.expense


@dataclass
class FinancialSummary:
    """Totals derived from a sequence of data points"""

    total_income: Decimal
    total_expense: Decimal
    net_profit: Decimal
    trend: Decimal
    bucket_count: int


@dataclass
class CategoryBreakdown:
    """Share of one category within its transaction type"""

    category: str
    type: TransactionType
    amount: Decimal
    percentage: Decimal
