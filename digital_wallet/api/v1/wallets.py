"""/v1/wallets - wallet management, balance and history"""

import uuid
from typing import List

from fastapi import APIRouter, Depends, Query, status

from digital_wallet.api.dependencies import get_current_caller, get_history_service, get_wallet_service
from digital_wallet.api.responses import render
from digital_wallet.api.v1.schemas import (
    ApiResponse,
    BalanceOut,
    CreateWalletBody,
    PageOut,
    TransactionOut,
    WalletOut,
)
from digital_wallet.domain.models import Caller
from digital_wallet.services.history import TransactionHistoryService
from digital_wallet.services.wallets import WalletService

router = APIRouter(prefix="/wallets")


@router.get("", response_model=ApiResponse[List[WalletOut]])
def list_wallets(caller: Caller = Depends(get_current_caller), service: WalletService = Depends(get_wallet_service)):
    return render(service.list_user_wallets(caller), List[WalletOut])


@router.post("", response_model=ApiResponse[WalletOut], status_code=status.HTTP_201_CREATED)
def create_wallet(
    body: CreateWalletBody,
    caller: Caller = Depends(get_current_caller),
    service: WalletService = Depends(get_wallet_service),
):
    return render(service.create_wallet(caller, body.currency), WalletOut, status_code=status.HTTP_201_CREATED)


@router.get("/{wallet_id}", response_model=ApiResponse[WalletOut])
def get_wallet(
    wallet_id: uuid.UUID,
    caller: Caller = Depends(get_current_caller),
    service: WalletService = Depends(get_wallet_service),
):
    return render(service.get_wallet(caller, wallet_id), WalletOut)


@router.get("/{wallet_id}/balance", response_model=ApiResponse[BalanceOut])
def get_balance(
    wallet_id: uuid.UUID,
    caller: Caller = Depends(get_current_caller),
    service: WalletService = Depends(get_wallet_service),
):
    return render(service.get_balance(caller, wallet_id), BalanceOut)


@router.get("/{wallet_id}/transactions", response_model=ApiResponse[PageOut[TransactionOut]])
def get_transaction_history(
    wallet_id: uuid.UUID,
    page: int = Query(1, description="1-based page number"),
    page_size: int = Query(20, description="Items per page, at most 100"),
    caller: Caller = Depends(get_current_caller),
    service: TransactionHistoryService = Depends(get_history_service),
):
    """Newest-first ledger entries of one wallet"""
    result = service.get_transaction_history(caller, wallet_id, page, page_size)
    return render(result, PageOut[TransactionOut])
