"""/v1/auth - registration and two-step login"""

from fastapi import APIRouter, Depends, status

from digital_wallet.api.dependencies import get_auth_service, get_current_caller
from digital_wallet.api.responses import render
from digital_wallet.api.v1.schemas import (
    ApiResponse,
    AuthTokenOut,
    LoginBody,
    LoginChallengeOut,
    OtpDispatchOut,
    RegisterBody,
    SendOtpBody,
    VerifyOtpBody,
)
from digital_wallet.domain.models import Caller, RegisterRequest
from digital_wallet.services.auth import AuthService

router = APIRouter(prefix="/auth")


@router.post("/register", response_model=ApiResponse[AuthTokenOut], status_code=status.HTTP_201_CREATED)
def register(body: RegisterBody, service: AuthService = Depends(get_auth_service)):
    """Create the user with a default wallet and a simulated bank account"""
    result = service.register(
        RegisterRequest(
            full_name=body.full_name,
            email=body.email,
            phone=body.phone,
            password=body.password,
            confirm_password=body.confirm_password,
        )
    )
    return render(result, AuthTokenOut, status_code=status.HTTP_201_CREATED)


@router.post("/login", response_model=ApiResponse[LoginChallengeOut])
def login(body: LoginBody, service: AuthService = Depends(get_auth_service)):
    """
    Check the password and issue a Login OTP.

    The code is returned in the response body (simulated SMS delivery).
    """
    return render(service.login(body.email_or_phone, body.password), LoginChallengeOut)


@router.post("/verify-otp", response_model=ApiResponse[AuthTokenOut])
def verify_otp(body: VerifyOtpBody, service: AuthService = Depends(get_auth_service)):
    return render(service.verify_login_otp(body.user_id, body.code), AuthTokenOut)


@router.post("/send-otp", response_model=ApiResponse[OtpDispatchOut])
def send_otp(
    body: SendOtpBody,
    caller: Caller = Depends(get_current_caller),
    service: AuthService = Depends(get_auth_service),
):
    """Issue a Transfer OTP to the signed-in user"""
    return render(service.send_otp(caller, body.purpose), OtpDispatchOut)
