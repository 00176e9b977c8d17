from fastapi import APIRouter, Depends, HTTPException, Request, status
from sqlalchemy.orm import Session

from app.core.security import create_access_token, verify_password
from app.core.settings import settings
from app.db.session import get_db
from app.deps import client_ip, get_current_user, get_request_id
from app.models.user import User
from app.schemas.auth import ChangePasswordRequest, ChangePasswordResponse, LoginRequest, Token
from app.services.audit import log_event
from app.services.rate_limit import SlidingWindowLimiter
from app.services.users import get_user_by_email, normalize_email, set_password

router = APIRouter(prefix="/auth", tags=["auth"])

LOGIN_LIMITER = SlidingWindowLimiter(max_events=10, window_seconds=60)


@router.post("/login", response_model=Token)
def login(payload: LoginRequest, request: Request, db: Session = Depends(get_db)):
    ip_address = client_ip(request)
    rate_key = f"{ip_address}:{normalize_email(payload.email)}"
    if not LOGIN_LIMITER.allow(rate_key):
        raise HTTPException(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            detail="Too many login attempts",
            headers={"Retry-After": str(LOGIN_LIMITER.retry_after(rate_key))},
        )

    user = get_user_by_email(db, payload.email)
    if not user or not verify_password(payload.password, user.hashed_password):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid credentials")
    if not user.is_active:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Account disabled")

    LOGIN_LIMITER.reset(rate_key)
    token = create_access_token(
        subject=str(user.id),
        secret=settings.secret_key,
        alg=settings.jwt_alg,
        expires_minutes=settings.access_token_expire_minutes,
        claims={"role": user.role.value},
    )
    log_event(
        db,
        actor=user,
        action="auth.login",
        entity_type="user",
        entity_id=str(user.id),
        after_data={"ip_address": ip_address},
        request_id=get_request_id(request),
    )
    db.commit()
    return Token(
        access_token=token,
        expires_in=settings.access_token_expire_minutes * 60,
        role=user.role,
        must_change_password=user.must_change_password,
    )


@router.post("/change-password", response_model=ChangePasswordResponse)
def change_password(
    payload: ChangePasswordRequest,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
    request_id: str | None = Depends(get_request_id),
):
    # A temporary password may be replaced without repeating it.
    needs_old = not user.must_change_password or payload.old_password is not None
    if needs_old and not verify_password(payload.old_password or "", user.hashed_password):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Current password is incorrect")

    set_password(db, user=user, new_password=payload.new_password)
    log_event(
        db,
        actor=user,
        action="user.password_changed",
        entity_type="user",
        entity_id=str(user.id),
        request_id=request_id,
    )
    db.commit()
    return ChangePasswordResponse(message="Password updated.")
