"""/v1/admin - back-office listings, admin role only"""

from fastapi import APIRouter, Depends, Query

from digital_wallet.api.dependencies import get_admin_service, require_capability
from digital_wallet.api.responses import render
from digital_wallet.api.v1.schemas import ApiResponse, PageOut, UserOut, WalletOut
from digital_wallet.domain.models import Caller, Capability
from digital_wallet.services.admin import AdminService

router = APIRouter(prefix="/admin")


@router.get("/users", response_model=ApiResponse[PageOut[UserOut]])
def list_users(
    page: int = Query(1),
    page_size: int = Query(20),
    caller: Caller = Depends(require_capability(Capability.VIEW_ALL_USERS)),
    service: AdminService = Depends(get_admin_service),
):
    return render(service.list_users(caller, page, page_size), PageOut[UserOut])


@router.get("/wallets", response_model=ApiResponse[PageOut[WalletOut]])
def list_wallets(
    page: int = Query(1),
    page_size: int = Query(20),
    caller: Caller = Depends(require_capability(Capability.VIEW_ANY_WALLET)),
    service: AdminService = Depends(get_admin_service),
):
    return render(service.list_wallets(caller, page, page_size), PageOut[WalletOut])
