from fastapi import APIRouter, Depends, Response

from blooddb.routers.deps import (
    clear_session_cookie,
    get_credential_store,
    get_session_manager,
    get_session_token,
    set_session_cookie,
)
from blooddb.schemas.user import (
    CheckResponse,
    IdentityResponse,
    LoginRequest,
    LoginResponse,
    RegisterRequest,
    RegisterResponse,
)
from blooddb.services import auth as auth_service
from blooddb.services.credentials import CredentialStore
from blooddb.services.sessions import SessionManager

router = APIRouter(prefix="/api/auth", tags=["auth"])


@router.post("/register", response_model=RegisterResponse, status_code=201)
def register(payload: RegisterRequest, store: CredentialStore = Depends(get_credential_store)):
    user = auth_service.register_user(store, payload)
    return RegisterResponse(message="Registration successful! Please login.", user_id=user.user_id)


@router.post("/login", response_model=LoginResponse)
def login(
    payload: LoginRequest,
    response: Response,
    store: CredentialStore = Depends(get_credential_store),
    sessions: SessionManager = Depends(get_session_manager),
):
    user, token = auth_service.login_user(store, sessions, payload)
    set_session_cookie(response, token)
    return LoginResponse(message="Login successful", user=auth_service.to_user_response(user))


@router.post("/logout")
def logout(
    response: Response,
    token: str | None = Depends(get_session_token),
    sessions: SessionManager = Depends(get_session_manager),
):
    auth_service.logout(sessions, token)
    clear_session_cookie(response)
    return {"statusCode": 200, "message": "Logged out successfully", "data": None}


@router.get("/check", response_model=CheckResponse)
def check(
    token: str | None = Depends(get_session_token),
    sessions: SessionManager = Depends(get_session_manager),
):
    identity = auth_service.check(sessions, token)
    if identity is None:
        return CheckResponse(authenticated=False)
    return CheckResponse(
        authenticated=True,
        identity=IdentityResponse(user_id=identity.user_id, username=identity.username, email=identity.email),
    )
