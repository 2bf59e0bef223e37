"""/v1/users - the caller's profile"""

from fastapi import APIRouter, Depends

from digital_wallet.api.dependencies import get_current_caller, get_user_service
from digital_wallet.api.responses import render
from digital_wallet.api.v1.schemas import ApiResponse, UserOut
from digital_wallet.domain.models import Caller
from digital_wallet.services.users import UserService

router = APIRouter(prefix="/users")


@router.get("/me", response_model=ApiResponse[UserOut])
def get_me(caller: Caller = Depends(get_current_caller), service: UserService = Depends(get_user_service)):
    return render(service.get_me(caller), UserOut)
