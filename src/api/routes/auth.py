"""Authentication routes.

- POST /auth/login-with-provider-token: identity-provider token → session
- POST /auth/google: same flow, email required
- POST /auth/register, POST /auth/login: password accounts
- GET /auth/me, GET|PUT /auth/profile: current user

Flow:
    Client → provider sign-in → idToken
    Client → POST /auth/login-with-provider-token → verify → reconcile user → session token
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials

from api.dependencies import get_identity_verifier, get_user_repo
from api.errors import to_http_exception
from api.models import (
    ApiResponse,
    AuthData,
    LoginRequest,
    ProfileUpdateRequest,
    ProviderLoginRequest,
    RegisterRequest,
    UserResponse,
)
from api.security import get_current_user_required, security
from domain.model.errors import (
    AudienceMismatchError,
    AuthenticationError,
    DomainError,
    ProviderUnavailableError,
)
from domain.model.identity import Session
from domain.model.user import User
from port.identity_verifier import IdentityVerifier
from port.user_repository import UserRepository
from services import auth_service
from services.identity_service import reconcile_identity
from services.session_service import build_user_view, issue_session

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])


def _auth_response(session: Session, message: str) -> ApiResponse[AuthData]:
    return ApiResponse[AuthData](
        data=AuthData(token=session.token, user=UserResponse.from_view(session.user)),
        message=message,
    )


def _verify_provider_token(verifier: IdentityVerifier, id_token: str, endpoint: str):
    """Verify a provider token, logging the precise failure and exposing only a generic one."""
    try:
        return verifier.verify(id_token)
    except AudienceMismatchError as e:
        logger.error("Provider token audience mismatch", extra={
            "endpoint": endpoint,
            "tokenAudience": e.token_audience,
            "expectedProject": e.expected,
            "reason": str(e),
        })
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token")
    except AuthenticationError as e:
        logger.warning("Provider token rejected", extra={
            "endpoint": endpoint,
            "errorType": type(e).__name__,
            "reason": str(e),
        })
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token")
    except ProviderUnavailableError as e:
        logger.error("Identity provider unavailable", extra={"endpoint": endpoint, "reason": str(e)})
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Authentication service unavailable",
        )


def _pick_id_token(payload: Optional[ProviderLoginRequest], credentials: Optional[HTTPAuthorizationCredentials]) -> str | None:
    """Body token wins over the Authorization header."""
    if payload and payload.id_token:
        return payload.id_token
    if credentials and credentials.credentials:
        return credentials.credentials
    return None


def _provider_login(
    payload: Optional[ProviderLoginRequest],
    credentials: Optional[HTTPAuthorizationCredentials],
    verifier: IdentityVerifier,
    repo: UserRepository,
    endpoint: str,
    require_email: bool = False,
) -> ApiResponse[AuthData]:
    id_token = _pick_id_token(payload, credentials)
    if not id_token:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="idToken required")

    claims = _verify_provider_token(verifier, id_token, endpoint)
    if require_email and not claims.email:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Email not present in Google token")

    try:
        result = reconcile_identity(repo, claims, payload.user_type if payload else None)
    except DomainError as e:
        raise to_http_exception(e)

    session = issue_session(result.user)
    logger.info("Provider login succeeded", extra={
        "endpoint": endpoint,
        "userId": result.user.id,
        "isNewUser": result.is_new,
    })
    return _auth_response(session, "Authentication successful")


@router.post("/login-with-provider-token", response_model=ApiResponse[AuthData], response_model_exclude_none=True)
def login_with_provider_token(
    payload: Optional[ProviderLoginRequest] = None,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    verifier: IdentityVerifier = Depends(get_identity_verifier),
    repo: UserRepository = Depends(get_user_repo),
):
    """Exchange an identity-provider ID token for a session token.

    The token is read from the body's idToken, else the Bearer header. A
    first login creates the user with the body's userType; any recognised type
    is honoured, including "admin", which grants every admin capability.
    Unknown or missing hints fall back to seller. Existing users keep their type.

    Raises:
        HTTPException: 400 missing token or no email/phone, 401 verification
            failure, 503 provider or database unavailable
    """
    return _provider_login(payload, credentials, verifier, repo, "login-with-provider-token")


@router.post("/google", response_model=ApiResponse[AuthData], response_model_exclude_none=True)
def google_login(
    payload: Optional[ProviderLoginRequest] = None,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    verifier: IdentityVerifier = Depends(get_identity_verifier),
    repo: UserRepository = Depends(get_user_repo),
):
    """Google sign-in; identical to provider-token login but requires an email claim."""
    return _provider_login(payload, credentials, verifier, repo, "google", require_email=True)


@router.post(
    "/register",
    response_model=ApiResponse[AuthData],
    response_model_exclude_none=True,
    status_code=status.HTTP_201_CREATED,
)
def register(request: RegisterRequest, repo: UserRepository = Depends(get_user_repo)):
    """Register a password account and return a session.

    Raises:
        HTTPException: 400 validation failure or duplicate email/phone
    """
    try:
        user = auth_service.register(
            repo,
            name=request.name,
            email=request.email,
            phone=request.phone,
            password=request.password,
            user_type=request.user_type,
            experience=request.experience,
            specializations=request.specializations,
            service_areas=request.service_areas,
        )
    except DomainError as e:
        raise to_http_exception(e)

    logger.info("User registered", extra={"userId": user.id, "userType": user.user_type})
    return _auth_response(issue_session(user), "User registered successfully")


@router.post("/login", response_model=ApiResponse[AuthData], response_model_exclude_none=True)
def login(request: LoginRequest, repo: UserRepository = Depends(get_user_repo)):
    """Password login by username, email or phone.

    Raises:
        HTTPException: 400 no identifier, 401 invalid credentials
    """
    try:
        user = auth_service.authenticate(
            repo,
            password=request.password,
            email=request.email,
            phone=request.phone,
            username=request.username,
        )
    except AuthenticationError:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid credentials")
    except DomainError as e:
        raise to_http_exception(e)

    message = "Login successful"
    if user.is_first_login:
        message = "First login successful - please change your password"

    logger.info("User logged in", extra={"userId": user.id})
    return _auth_response(issue_session(user), message)


@router.get("/me", response_model=ApiResponse[UserResponse], response_model_exclude_none=True)
def get_me(current_user: User = Depends(get_current_user_required)):
    """Current user from the session token."""
    return ApiResponse[UserResponse](data=UserResponse.from_view(build_user_view(current_user)))


@router.get("/profile", response_model=ApiResponse[UserResponse], response_model_exclude_none=True)
def get_profile(current_user: User = Depends(get_current_user_required)):
    return ApiResponse[UserResponse](data=UserResponse.from_view(build_user_view(current_user)))


@router.put("/profile", response_model=ApiResponse[UserResponse], response_model_exclude_none=True)
def update_profile(
    request: ProfileUpdateRequest,
    current_user: User = Depends(get_current_user_required),
    repo: UserRepository = Depends(get_user_repo),
):
    """Update the caller's own name/preferences. Identity and role fields are not writable."""
    try:
        user = auth_service.update_profile(repo, current_user.id, request.model_dump(exclude_none=True))
    except DomainError as e:
        raise to_http_exception(e)

    return ApiResponse[UserResponse](
        data=UserResponse.from_view(build_user_view(user)),
        message="Profile updated successfully",
    )


@router.post("/send-otp", status_code=status.HTTP_410_GONE)
@router.post("/verify-otp", status_code=status.HTTP_410_GONE)
def deprecated_otp():
    """Server-side OTP was replaced by provider phone sign-in."""
    raise HTTPException(
        status_code=status.HTTP_410_GONE,
        detail="Deprecated. Use provider phone sign-in and POST /auth/login-with-provider-token with idToken.",
    )
