"""/v1/bank - deposit from and withdraw to the simulated bank"""

from fastapi import APIRouter, Depends

from digital_wallet.api.dependencies import get_bank_service, get_current_caller
from digital_wallet.api.responses import render
from digital_wallet.api.v1.schemas import ApiResponse, BankAmountBody, BankTransactionOut
from digital_wallet.domain.models import Caller
from digital_wallet.services.bank import BankService

router = APIRouter(prefix="/bank")


@router.post("/deposit", response_model=ApiResponse[BankTransactionOut])
async def deposit(
    body: BankAmountBody,
    caller: Caller = Depends(get_current_caller),
    service: BankService = Depends(get_bank_service),
):
    """Bank account -> default wallet, after the simulated processing delay"""
    return render(await service.deposit(caller, body.amount_cents), BankTransactionOut)


@router.post("/withdraw", response_model=ApiResponse[BankTransactionOut])
async def withdraw(
    body: BankAmountBody,
    caller: Caller = Depends(get_current_caller),
    service: BankService = Depends(get_bank_service),
):
    """Default wallet -> bank account, after the simulated processing delay"""
    return render(await service.withdraw(caller, body.amount_cents), BankTransactionOut)
