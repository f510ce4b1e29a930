"""Authentication router for handling user authentication endpoints."""
import logging
import os
import secrets
from urllib.parse import urlencode

from fastapi import APIRouter, Depends, HTTPException, status, Request, Body
from fastapi.responses import RedirectResponse
from fastapi.security import OAuth2PasswordRequestForm
from sqlalchemy.orm import Session

from canvas_grader.database import get_db
from .models import User, Token, UserCreate, UserResponse
from .service import AuthService, get_current_active_user
import requests

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["Authentication"])


def get_auth_service(db: Session = Depends(get_db)) -> AuthService:
    """Dependency to get an instance of AuthService."""
    return AuthService(db)


@router.post("/register", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
async def register_user(
    user_data: UserCreate,
    service: AuthService = Depends(get_auth_service)
):
    """Register a new user."""
    try:
        return service.register_user(user_data)
    except HTTPException as e:
        raise e
    except Exception as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(e)
        )


@router.post("/login", response_model=Token)
async def login_for_access_token(
    request: Request,
    form_data: OAuth2PasswordRequestForm = Depends(),
    service: AuthService = Depends(get_auth_service)
):
    """OAuth2 compatible token login, get an access token for future requests."""
    user_agent = request.headers.get("user-agent")
    ip_address = request.client.host if request.client else None

    try:
        user = service.authenticate_user(form_data.username, form_data.password)
        if not user:
            service.record_login_attempt(
                email=form_data.username,
                ip_address=ip_address,
                user_agent=user_agent,
                success=False
            )
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Incorrect email or password",
                headers={"WWW-Authenticate": "Bearer"},
            )

        service.record_login_attempt(
            email=user.email,
            ip_address=ip_address,
            user_agent=user_agent,
            success=True
        )
        refresh_token = service.create_refresh_token(
            user_id=user.id,
            user_agent=user_agent,
            ip_address=ip_address
        )
        return {
            "access_token": service.issue_access_token(user),
            "token_type": "bearer",
            "refresh_token": refresh_token.token
        }

    except HTTPException as e:
        raise e
    except Exception as e:
        logger.error(f"Login failed: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=str(e)
        )


@router.post("/refresh", response_model=Token)
async def refresh_access_token(
    refresh_token: str = Body(embed=True),
    service: AuthService = Depends(get_auth_service)
):
    """Refresh an access token using a refresh token."""
    try:
        return service.refresh_tokens(refresh_token)
    except HTTPException as e:
        raise e
    except Exception:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid refresh token"
        )


@router.post("/logout")
async def logout(
    refresh_token: str = Body(embed=True),
    service: AuthService = Depends(get_auth_service)
):
    """Revoke a refresh token."""
    service.revoke_refresh_token(refresh_token)
    return {"message": "Successfully logged out"}


@router.get("/me", response_model=UserResponse)
async def read_users_me(current_user: User = Depends(get_current_active_user)):
    """Get the current user's account."""
    return current_user


# --- Google OAuth (hosted identity provider) ---

GOOGLE_AUTH_URL = "https://accounts.google.com/o/oauth2/v2/auth"
GOOGLE_TOKEN_URL = "https://oauth2.googleapis.com/token"
GOOGLE_USERINFO_URL = "https://openidconnect.googleapis.com/v1/userinfo"
OAUTH_STATE_COOKIE = "oauth_state"


def _google_oauth_config():
    client_id = os.getenv("GOOGLE_CLIENT_ID")
    client_secret = os.getenv("GOOGLE_CLIENT_SECRET")
    redirect_uri = os.getenv("GOOGLE_REDIRECT_URI")
    if not client_id or not client_secret or not redirect_uri:
        raise HTTPException(status_code=500, detail="Google OAuth not configured")
    return client_id, client_secret, redirect_uri


def _next_page(db: Session, user: User) -> str:
    """Signed-in users without Canvas credentials go to onboarding first."""
    from canvas_grader.canvas.credentials import resolve_canvas_credentials

    if resolve_canvas_credentials(db, user) is not None:
        return "/dashboard"
    return "/onboarding"


@router.get("/oauth/google/login")
@router.get("/oauth/google/login/")
async def google_login(request: Request):
    """Initiate Google OAuth authorization code flow."""
    client_id, _, redirect_uri = _google_oauth_config()
    state = secrets.token_urlsafe(24)
    params = {
        "client_id": client_id,
        "redirect_uri": redirect_uri,
        "response_type": "code",
        "scope": "openid email profile",
        "access_type": "offline",
        "include_granted_scopes": "true",
        "state": state,
        "prompt": "consent",
    }
    response = RedirectResponse(f"{GOOGLE_AUTH_URL}?{urlencode(params)}", status_code=307)
    # State is validated on callback
    response.set_cookie(OAUTH_STATE_COOKIE, state, httponly=True, max_age=600, samesite="lax")
    return response


@router.get("/oauth/google/callback")
@router.get("/oauth/google/callback/")
def google_callback(
    request: Request,
    code: str,
    state: str,
    db: Session = Depends(get_db),
    service: AuthService = Depends(get_auth_service),
):
    """Exchange the code, fetch userinfo, upsert the user and issue our tokens."""
    client_id, client_secret, redirect_uri = _google_oauth_config()
    state_cookie = request.cookies.get(OAUTH_STATE_COOKIE)
    if not state_cookie or state_cookie != state:
        raise HTTPException(status_code=400, detail="Invalid OAuth state")

    token_resp = requests.post(GOOGLE_TOKEN_URL, data={
        "code": code,
        "client_id": client_id,
        "client_secret": client_secret,
        "redirect_uri": redirect_uri,
        "grant_type": "authorization_code",
    }, timeout=10)
    if token_resp.status_code != 200:
        raise HTTPException(status_code=401, detail="Failed to exchange code for tokens")
    access_token = token_resp.json().get("access_token")
    if not access_token:
        raise HTTPException(status_code=401, detail="No access token returned by provider")

    userinfo_resp = requests.get(
        GOOGLE_USERINFO_URL,
        headers={"Authorization": f"Bearer {access_token}"},
        timeout=10,
    )
    if userinfo_resp.status_code != 200:
        raise HTTPException(status_code=401, detail="Failed to fetch user info")
    userinfo = userinfo_resp.json()
    email = userinfo.get("email")
    name = userinfo.get("name") or userinfo.get("given_name")
    if not email:
        raise HTTPException(status_code=400, detail="Email not provided by provider")

    user = db.query(User).filter(User.email == email).first()
    if not user:
        logger.info(f"Creating account for {email} from Google sign-in")
        user = User(email=email, full_name=name, is_active=True, is_verified=True, user_metadata={})
        # Random placeholder; this account signs in through Google
        user.set_password(secrets.token_urlsafe(12))
        db.add(user)
        db.commit()
        db.refresh(user)

    access_jwt = service.issue_access_token(user)
    refresh = service.create_refresh_token(
        user_id=user.id,
        user_agent=request.headers.get("user-agent"),
        ip_address=request.client.host if request.client else None,
    )
    next_page = _next_page(db, user)

    frontend_redirect = os.getenv("FRONTEND_OAUTH_REDIRECT_URI")
    if frontend_redirect:
        fragment = urlencode({
            "access_token": access_jwt,
            "refresh_token": refresh.token,
            "token_type": "bearer",
            "next": next_page,
        })
        return RedirectResponse(f"{frontend_redirect}#{fragment}")

    return {
        "access_token": access_jwt,
        "token_type": "bearer",
        "refresh_token": refresh.token,
        "email": user.email,
        "name": user.full_name,
        "canvas_connected": next_page == "/dashboard",
        "next": next_page,
    }
