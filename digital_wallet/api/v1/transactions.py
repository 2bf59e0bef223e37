"""/v1/transactions/{id} - single ledger entry"""

import uuid

from fastapi import APIRouter, Depends

from digital_wallet.api.dependencies import get_current_caller, get_history_service
from digital_wallet.api.responses import render
from digital_wallet.api.v1.schemas import ApiResponse, TransactionOut
from digital_wallet.domain.models import Caller
from digital_wallet.services.history import TransactionHistoryService

router = APIRouter(prefix="/transactions")


@router.get("/{transaction_id}", response_model=ApiResponse[TransactionOut])
def get_transaction(
    transaction_id: uuid.UUID,
    caller: Caller = Depends(get_current_caller),
    service: TransactionHistoryService = Depends(get_history_service),
):
    return render(service.get_transaction(caller, transaction_id), TransactionOut)
