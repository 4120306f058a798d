"""/v1/payments - installment payment submissions and their review"""

from typing import List

from fastapi import APIRouter, Depends, Header

from agency_ledger.api.dependencies import (
    get_admin_user_ids,
    get_current_actor,
    get_payment_store,
    read_receipt_body,
)
from agency_ledger.api.v1.schemas import ReceiptResponse, RejectRequest, SubmissionRequest, SubmissionResponse
from agency_ledger.domain.models import Actor
from agency_ledger.services.payments import PaymentSubmissionStore

router = APIRouter()


@router.post(
    "/projects/{project_id}/installments/{installment_number}/receipt",
    response_model=ReceiptResponse,
    status_code=201,
)
async def upload_receipt(
    project_id: str,
    installment_number: int,
    content_type: str = Header("application/octet-stream"),
    x_filename: str = Header("receipt"),
    actor: Actor = Depends(get_current_actor),
    store: PaymentSubmissionStore = Depends(get_payment_store),
    content: bytes = Depends(read_receipt_body),
):
    """
    Store a receipt file sent as the raw request body.

    The file name travels in X-Filename; the returned URL is then passed to
    the submit endpoint.
    """
    url = await store.upload_receipt(actor, project_id, installment_number, x_filename, content_type, content)
    return ReceiptResponse(url=url)


@router.post("/projects/{project_id}/payments", response_model=SubmissionResponse, status_code=201)
def submit_payment(
    project_id: str,
    request_body: SubmissionRequest,
    actor: Actor = Depends(get_current_actor),
    store: PaymentSubmissionStore = Depends(get_payment_store),
    admin_user_ids: List[str] = Depends(get_admin_user_ids),
):
    submission = store.submit(
        actor,
        project_id,
        request_body.installment_number,
        request_body.amount,
        request_body.receipt_url,
        admin_user_ids=admin_user_ids,
    )
    return SubmissionResponse.model_validate(submission)


@router.get("/projects/{project_id}/payments", response_model=List[SubmissionResponse])
def list_project_payments(
    project_id: str,
    actor: Actor = Depends(get_current_actor),
    store: PaymentSubmissionStore = Depends(get_payment_store),
):
    return [SubmissionResponse.model_validate(s) for s in store.list_for_project(actor, project_id)]


@router.get("/payments/pending", response_model=List[SubmissionResponse])
def list_pending(
    actor: Actor = Depends(get_current_actor),
    store: PaymentSubmissionStore = Depends(get_payment_store),
):
    """Admin review queue"""
    return [SubmissionResponse.model_validate(s) for s in store.list_pending(actor)]


@router.get("/payments", response_model=List[SubmissionResponse])
def list_payments(
    actor: Actor = Depends(get_current_actor),
    store: PaymentSubmissionStore = Depends(get_payment_store),
):
    return [SubmissionResponse.model_validate(s) for s in store.list_all(actor)]


@router.get("/payments/{submission_id}", response_model=SubmissionResponse)
def get_payment(
    submission_id: str,
    actor: Actor = Depends(get_current_actor),
    store: PaymentSubmissionStore = Depends(get_payment_store),
):
    return SubmissionResponse.model_validate(store.get(actor, submission_id))


@router.post("/payments/{submission_id}/approve", response_model=SubmissionResponse)
def approve_payment(
    submission_id: str,
    actor: Actor = Depends(get_current_actor),
    store: PaymentSubmissionStore = Depends(get_payment_store),
):
    """Approve the submission and mark its installment paid"""
    return SubmissionResponse.model_validate(store.approve(actor, submission_id))


@router.post("/payments/{submission_id}/reject", response_model=SubmissionResponse)
def reject_payment(
    submission_id: str,
    request_body: RejectRequest | None = None,
    actor: Actor = Depends(get_current_actor),
    store: PaymentSubmissionStore = Depends(get_payment_store),
):
    notes = request_body.notes if request_body else None
    return SubmissionResponse.model_validate(store.reject(actor, submission_id, notes))
