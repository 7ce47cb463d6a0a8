"""API router for authentication and self-service account management."""

from fastapi import APIRouter, BackgroundTasks, Depends, status

from ....application.services.account_service import AccountService
from ....core.config import Settings
from ....core.dependencies import get_account_service, get_email_service, get_settings
from ....domain.models import User
from ....services.email_service import EmailService
from ..dependencies import get_current_user
from ..schemas.auth import (
    AuthData,
    ChangePasswordRequest,
    ForgotPasswordRequest,
    LoginRequest,
    RegisterData,
    RegisterRequest,
    ResetPasswordRequest,
    UpdateProfileRequest,
    VerifyEmailRequest,
)
from ..schemas.user_schemas import ApiResponse, MessageResponse, UserData, UserResponse

router = APIRouter(prefix="/api/auth", tags=["auth"])

FORGOT_PASSWORD_MESSAGE = "If an account exists for that email, a password reset link has been sent."


@router.post("/register", response_model=ApiResponse[RegisterData], status_code=status.HTTP_201_CREATED)
def register(
    payload: RegisterRequest,
    background_tasks: BackgroundTasks,
    account_service: AccountService = Depends(get_account_service),
    email_service: EmailService = Depends(get_email_service),
    settings: Settings = Depends(get_settings),
) -> ApiResponse[RegisterData]:
    """Register a new user and send the verification email."""
    result = account_service.register(
        email=payload.email,
        password=payload.password,
        first_name=payload.first_name,
        last_name=payload.last_name,
        phone=payload.phone,
        department=payload.department,
        position=payload.position,
        date_of_birth=payload.date_of_birth,
    )
    background_tasks.add_task(
        email_service.send_verification_email,
        result.user.email,
        result.verification_token,
        settings.frontend_base_url,
    )
    return ApiResponse[RegisterData](
        message="User registered successfully. Please verify your email.",
        data=RegisterData(
            user=UserResponse.from_user(result.user),
            token=result.token,
            verification_token=result.verification_token,
        ),
    )


@router.post("/login", response_model=ApiResponse[AuthData])
def login(
    payload: LoginRequest,
    account_service: AccountService = Depends(get_account_service),
) -> ApiResponse[AuthData]:
    result = account_service.authenticate(payload.email, payload.password)
    return ApiResponse[AuthData](
        message="Login successful",
        data=AuthData(user=UserResponse.from_user(result.user), token=result.token),
    )


@router.post("/logout", response_model=MessageResponse)
def logout(_: User = Depends(get_current_user)) -> MessageResponse:
    # Tokens are stateless; the client discards its copy.
    return MessageResponse(message="Logout successful")


@router.get("/me", response_model=ApiResponse[UserData])
def get_me(
    user: User = Depends(get_current_user),
    account_service: AccountService = Depends(get_account_service),
) -> ApiResponse[UserData]:
    profile = account_service.get_profile(user.id)
    return ApiResponse[UserData](data=UserData(user=UserResponse.from_user(profile)))


@router.put("/profile", response_model=ApiResponse[UserData])
def update_profile(
    payload: UpdateProfileRequest,
    user: User = Depends(get_current_user),
    account_service: AccountService = Depends(get_account_service),
) -> ApiResponse[UserData]:
    updated = account_service.update_profile(user.id, **payload.model_dump(exclude_unset=True))
    return ApiResponse[UserData](
        message="Profile updated successfully",
        data=UserData(user=UserResponse.from_user(updated)),
    )


@router.put("/change-password", response_model=MessageResponse)
def change_password(
    payload: ChangePasswordRequest,
    user: User = Depends(get_current_user),
    account_service: AccountService = Depends(get_account_service),
) -> MessageResponse:
    account_service.change_password(user.id, payload.current_password, payload.new_password)
    return MessageResponse(message="Password changed successfully")


@router.post("/forgot-password", response_model=MessageResponse)
def forgot_password(
    payload: ForgotPasswordRequest,
    background_tasks: BackgroundTasks,
    account_service: AccountService = Depends(get_account_service),
    email_service: EmailService = Depends(get_email_service),
    settings: Settings = Depends(get_settings),
) -> MessageResponse:
    """Start a password reset. The answer never reveals whether the email is registered."""
    issued = account_service.request_password_reset(payload.email)
    if issued:
        user, reset_token = issued
        background_tasks.add_task(
            email_service.send_password_reset_email,
            user.email,
            reset_token,
            settings.frontend_base_url,
        )
    return MessageResponse(message=FORGOT_PASSWORD_MESSAGE)


@router.post("/reset-password", response_model=MessageResponse)
def reset_password(
    payload: ResetPasswordRequest,
    account_service: AccountService = Depends(get_account_service),
) -> MessageResponse:
    account_service.reset_password(payload.token, payload.new_password)
    return MessageResponse(message="Password reset successfully")


@router.post("/verify-email", response_model=MessageResponse)
def verify_email(
    payload: VerifyEmailRequest,
    account_service: AccountService = Depends(get_account_service),
) -> MessageResponse:
    account_service.verify_email(payload.token)
    return MessageResponse(message="Email verified successfully")


@router.post("/resend-verification", response_model=MessageResponse)
def resend_verification(
    background_tasks: BackgroundTasks,
    user: User = Depends(get_current_user),
    account_service: AccountService = Depends(get_account_service),
    email_service: EmailService = Depends(get_email_service),
    settings: Settings = Depends(get_settings),
) -> MessageResponse:
    account, verification_token = account_service.resend_verification(user.id)
    background_tasks.add_task(
        email_service.send_verification_email,
        account.email,
        verification_token,
        settings.frontend_base_url,
    )
    return MessageResponse(message="Verification email sent successfully")
