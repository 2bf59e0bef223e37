"""/v1/transfers - send money and list transfers"""

import logging
from typing import List

from fastapi import APIRouter, Depends, Request

from digital_wallet.api.dependencies import (
    get_current_caller,
    get_history_service,
    get_request_id,
    get_transfer_orchestrator,
)
from digital_wallet.api.responses import render
from digital_wallet.api.v1.schemas import ApiResponse, SendMoneyBody, TransferOut, TransferSummaryOut
from digital_wallet.domain.models import Caller, SendMoneyRequest
from digital_wallet.services.history import TransactionHistoryService
from digital_wallet.services.transfers import TransferOrchestrator

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/transfers")


@router.post("", response_model=ApiResponse[TransferSummaryOut])
def send_money(
    body: SendMoneyBody,
    request: Request,
    caller: Caller = Depends(get_current_caller),
    orchestrator: TransferOrchestrator = Depends(get_transfer_orchestrator),
):
    """
    Send money from one of the caller's wallets to another user.

    Flow:
    1. Consume the caller's Transfer OTP
    2. Verify wallet ownership and resolve the receiver by email or phone
    3. Check balance and daily limit, then debit and credit both wallets
    4. Record the transfer and its two ledger entries
    5. Notify both parties
    """
    logger.info(
        "Send money requested",
        extra={"request_id": get_request_id(request), "user_id": str(caller.user_id)},
    )
    result = orchestrator.send_money(
        caller,
        SendMoneyRequest(
            sender_wallet_id=body.sender_wallet_id,
            receiver_identifier=body.receiver_identifier,
            amount_cents=body.amount_cents,
            otp_code=body.otp_code,
            description=body.description,
        ),
    )
    return render(result, TransferSummaryOut)


@router.get("", response_model=ApiResponse[List[TransferOut]])
def list_transfers(
    caller: Caller = Depends(get_current_caller),
    service: TransactionHistoryService = Depends(get_history_service),
):
    return render(service.list_user_transfers(caller), List[TransferOut])
