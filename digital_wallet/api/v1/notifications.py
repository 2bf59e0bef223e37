"""/v1/notifications - the caller's inbox"""

import uuid

from fastapi import APIRouter, Depends, Query

from digital_wallet.api.dependencies import get_current_caller, get_notification_service
from digital_wallet.api.responses import render
from digital_wallet.api.v1.schemas import ApiResponse, NotificationOut, PageOut, UnreadCountOut
from digital_wallet.domain.models import Caller, ServiceResult
from digital_wallet.services.notifications import NotificationService

router = APIRouter(prefix="/notifications")


@router.get("", response_model=ApiResponse[PageOut[NotificationOut]])
def list_notifications(
    page: int = Query(1),
    page_size: int = Query(20),
    caller: Caller = Depends(get_current_caller),
    service: NotificationService = Depends(get_notification_service),
):
    return render(service.list_for_user(caller, page, page_size), PageOut[NotificationOut])


@router.get("/unread-count", response_model=ApiResponse[UnreadCountOut])
def unread_count(
    caller: Caller = Depends(get_current_caller),
    service: NotificationService = Depends(get_notification_service),
):
    result = service.unread_count(caller)
    if result.is_success:
        result = ServiceResult.success(UnreadCountOut(unread_count=result.data), result.message)
    return render(result)


@router.put("/{notification_id}/read", response_model=ApiResponse[bool])
def mark_as_read(
    notification_id: uuid.UUID,
    caller: Caller = Depends(get_current_caller),
    service: NotificationService = Depends(get_notification_service),
):
    return render(service.mark_as_read(caller, notification_id))
