"""/v1/bills - billers and bill payments"""

from typing import List

from fastapi import APIRouter, Depends

from digital_wallet.api.dependencies import get_bill_service, get_current_caller
from digital_wallet.api.responses import render
from digital_wallet.api.v1.schemas import (
    ApiResponse,
    BillerOut,
    BillPaymentOut,
    BillPaymentSummaryOut,
    PayBillBody,
)
from digital_wallet.domain.models import Caller, PayBillRequest
from digital_wallet.services.bills import BillPaymentService

router = APIRouter(prefix="/bills")


@router.get("/billers", response_model=ApiResponse[List[BillerOut]])
def list_billers(
    caller: Caller = Depends(get_current_caller),
    service: BillPaymentService = Depends(get_bill_service),
):
    return render(service.list_billers(), List[BillerOut])


@router.post("/pay", response_model=ApiResponse[BillPaymentSummaryOut])
def pay_bill(
    body: PayBillBody,
    caller: Caller = Depends(get_current_caller),
    service: BillPaymentService = Depends(get_bill_service),
):
    result = service.pay_bill(
        caller,
        PayBillRequest(
            wallet_id=body.wallet_id,
            biller_id=body.biller_id,
            amount_cents=body.amount_cents,
            otp_code=body.otp_code,
        ),
    )
    return render(result, BillPaymentSummaryOut)


@router.get("", response_model=ApiResponse[List[BillPaymentOut]])
def list_bill_payments(
    caller: Caller = Depends(get_current_caller),
    service: BillPaymentService = Depends(get_bill_service),
):
    return render(service.list_user_bill_payments(caller), List[BillPaymentOut])
