"""Pydantic schemas for API request/response validation"""

from datetime import date as Date, datetime
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from agency_ledger.domain.models import PaymentStatus, TransactionStatus, TransactionType


class InstallmentSchema(BaseModel):
    """Single installment of a project schedule"""

    model_config = ConfigDict(from_attributes=True)

    number: int
    amount: Decimal
    date: Optional[Date] = None
    paid: bool = False
    paid_at: Optional[datetime] = None


class InstallmentEdit(BaseModel):
    """Hand-edited installment; paid state is never taken from the request"""

    number: int
    amount: Optional[Decimal] = None
    date: Optional[Date] = None


class ProjectCreateRequest(BaseModel):
    """Request body for POST /v1/projects"""

    name: str = Field(..., min_length=1)
    budget: Optional[Decimal] = Field(None, gt=0)
    installment_count: int = Field(0, ge=0)
    deadline: Optional[Date] = None
    member_ids: List[str] = []


class ReplanRequest(BaseModel):
    """Request body for PUT /v1/projects/{project_id}/plan"""

    budget: Decimal
    installment_count: int
    deadline: Optional[Date] = None


class InstallmentsEditRequest(BaseModel):
    """Request body for PUT /v1/projects/{project_id}/installments"""

    installments: List[InstallmentEdit]


class MemberRequest(BaseModel):
    user_id: str = Field(..., min_length=1)


class ProjectResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    budget: Optional[Decimal] = None
    deadline: Optional[Date] = None
    installments: List[InstallmentSchema]
    member_ids: List[str]
    created_at: Optional[datetime] = None


class SubmissionRequest(BaseModel):
    """Request body for POST /v1/projects/{project_id}/payments"""

    installment_number: int = Field(..., ge=1)
    amount: Decimal
    receipt_url: str = Field(..., min_length=1)


class RejectRequest(BaseModel):
    notes: Optional[str] = Field(None, max_length=1000)


class SubmissionResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

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


class ReceiptResponse(BaseModel):
    """Response for receipt uploads"""

    url: str


class TransactionCreateRequest(BaseModel):
    """Request body for POST /v1/transactions"""

    type: TransactionType
    category: str = Field(..., min_length=1)
    amount: Decimal
    date: Optional[Date] = None
    status: Optional[TransactionStatus] = None
    receipt_url: Optional[str] = None
    description: Optional[str] = None
    project_id: Optional[str] = None


class TransactionUpdateRequest(BaseModel):
    """Request body for PATCH /v1/transactions/{transaction_id}; only sent fields change"""

    type: Optional[TransactionType] = None
    category: Optional[str] = None
    amount: Optional[Decimal] = None
    date: Optional[Date] = None
    status: Optional[TransactionStatus] = None
    receipt_url: Optional[str] = None
    description: Optional[str] = None
    project_id: Optional[str] = None


class TransactionResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    type: TransactionType
    category: str
    amount: Decimal
    date: Date
    status: TransactionStatus
    receipt_url: Optional[str] = None
    description: Optional[str] = None
    project_id: Optional[str] = None
    created_by: Optional[str] = None
    created_at: Optional[datetime] = None


class DataPointResponse(BaseModel):
    """Income/expense totals for one bucket (day or month)"""

    bucket: str
    income: Decimal
    expense: Decimal
    net: Decimal


class SummaryResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    total_income: Decimal
    total_expense: Decimal
    net_profit: Decimal
    trend: Decimal
    bucket_count: int


class CategoryResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    category: str
    type: TransactionType
    amount: Decimal
    percentage: Decimal
