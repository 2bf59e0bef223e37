"""/v1/requests - peer money requests"""

import uuid
from typing import List

from fastapi import APIRouter, Depends, status

from digital_wallet.api.dependencies import get_current_caller, get_money_request_service
from digital_wallet.api.responses import render
from digital_wallet.api.v1.schemas import (
    ApiResponse,
    CreateMoneyRequestBody,
    MoneyRequestOut,
    RespondMoneyRequestBody,
)
from digital_wallet.domain.models import Caller
from digital_wallet.services.money_requests import MoneyRequestService

router = APIRouter(prefix="/requests")


@router.post("", response_model=ApiResponse[MoneyRequestOut], status_code=status.HTTP_201_CREATED)
def create_request(
    body: CreateMoneyRequestBody,
    caller: Caller = Depends(get_current_caller),
    service: MoneyRequestService = Depends(get_money_request_service),
):
    result = service.create_request(caller, body.to_identifier, body.amount_cents, body.currency)
    return render(result, MoneyRequestOut, status_code=status.HTTP_201_CREATED)


@router.get("/sent", response_model=ApiResponse[List[MoneyRequestOut]])
def list_sent(
    caller: Caller = Depends(get_current_caller),
    service: MoneyRequestService = Depends(get_money_request_service),
):
    return render(service.list_sent(caller), List[MoneyRequestOut])


@router.get("/received", response_model=ApiResponse[List[MoneyRequestOut]])
def list_received(
    caller: Caller = Depends(get_current_caller),
    service: MoneyRequestService = Depends(get_money_request_service),
):
    return render(service.list_received(caller), List[MoneyRequestOut])


@router.post("/{request_id}/respond", response_model=ApiResponse[MoneyRequestOut])
def respond(
    request_id: uuid.UUID,
    body: RespondMoneyRequestBody,
    caller: Caller = Depends(get_current_caller),
    service: MoneyRequestService = Depends(get_money_request_service),
):
    """Accepting pays the request and needs a Transfer OTP; rejecting does not"""
    return render(service.respond(caller, request_id, body.accept, body.otp_code), MoneyRequestOut)
