"""/v1/transactions - manually recorded income and expenses"""

from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, Header, Response

from agency_ledger.api.dependencies import get_current_actor, get_transaction_ledger, read_receipt_body
from agency_ledger.api.v1.schemas import (
    ReceiptResponse,
    TransactionCreateRequest,
    TransactionResponse,
    TransactionUpdateRequest,
)
from agency_ledger.domain.models import Actor
from agency_ledger.services.transactions import TransactionLedger

router = APIRouter()


@router.post("/transactions/receipt", response_model=ReceiptResponse, status_code=201)
async def upload_transaction_receipt(
    content_type: str = Header("application/octet-stream"),
    x_filename: str = Header("receipt"),
    actor: Actor = Depends(get_current_actor),
    ledger: TransactionLedger = Depends(get_transaction_ledger),
    content: bytes = Depends(read_receipt_body),
):
    url = await ledger.upload_receipt(actor, x_filename, content_type, content)
    return ReceiptResponse(url=url)


@router.post("/transactions", response_model=TransactionResponse, status_code=201)
def create_transaction(
    request_body: TransactionCreateRequest,
    actor: Actor = Depends(get_current_actor),
    ledger: TransactionLedger = Depends(get_transaction_ledger),
):
    transaction = ledger.create(actor, **request_body.model_dump())
    return TransactionResponse.model_validate(transaction)


@router.get("/transactions", response_model=List[TransactionResponse])
def list_transactions(
    start: Optional[date] = None,
    end: Optional[date] = None,
    actor: Actor = Depends(get_current_actor),
    ledger: TransactionLedger = Depends(get_transaction_ledger),
):
    """Transactions in an optional inclusive date range, newest first"""
    return [TransactionResponse.model_validate(t) for t in ledger.list(actor, start, end)]


@router.get("/transactions/{transaction_id}", response_model=TransactionResponse)
def get_transaction(
    transaction_id: str,
    actor: Actor = Depends(get_current_actor),
    ledger: TransactionLedger = Depends(get_transaction_ledger),
):
    return TransactionResponse.model_validate(ledger.get(actor, transaction_id))


@router.patch("/transactions/{transaction_id}", response_model=TransactionResponse)
def update_transaction(
    transaction_id: str,
    request_body: TransactionUpdateRequest,
    actor: Actor = Depends(get_current_actor),
    ledger: TransactionLedger = Depends(get_transaction_ledger),
):
    """Partial update: only fields present in the body are changed"""
    transaction = ledger.update(actor, transaction_id, **request_body.model_dump(exclude_unset=True))
    return TransactionResponse.model_validate(transaction)


@router.delete("/transactions/{transaction_id}", status_code=204)
async def delete_transaction(
    transaction_id: str,
    actor: Actor = Depends(get_current_actor),
    ledger: TransactionLedger = Depends(get_transaction_ledger),
):
    await ledger.delete(actor, transaction_id)
    return Response(status_code=204)
