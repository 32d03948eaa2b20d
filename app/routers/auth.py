"""
auth.py

인증(Authentication) 및 계정 관리 API 모음.

이 파일은 로그인, 로그아웃, 로그인 상태 확인, 계정 등록,
비밀번호 변경/초기화와 같이 사용자 인증 흐름 전반을 담당한다.
서버 세션(서명된 쿠키) 기반 인증 방식을 사용한다.

주요 기능:
- 로그인 / 로그아웃
- 로그인 상태 확인 (세션 재검증)
- 계정 등록 (관리자 전용)
- 비밀번호 변경 (현재 비밀번호 확인) / 초기화 (관리자 전용)
- 내 정보 조회 및 프로필 수정

설계 원칙:
- 세션에는 최소 정보(id, username, role, full_name)만 저장
- 로그인 실패 사유는 외부에 구분하지 않음
- 모든 로그인 시도는 login_history 에 기록
- /api/auth 전체에 IP 기준 요청 제한 적용

관련 파일:
- app.core.security        : 비밀번호 해시 / 검증
- app.core.deps            : 세션 / 권한 의존성
- app.services.auth        : 사용자 조회 / 생성 공통 로직
- app.services.audit       : 로그인 이력 / 행위 로그
- app.schemas.auth         : 요청 스키마

"""

from fastapi import APIRouter, Depends, HTTPException, Request, status

from app.core.config import settings
from app.core.deps import (
    SessionUser,
    get_current_admin,
    get_current_user,
    get_helper,
    get_session_user,
    login_session,
)
from app.core.guards import rate_limit
from app.core.query import build_set_clause, sanitize_data
from app.core.responses import success
from app.db.helper import DatabaseHelper
from app.models.user import landing_page_for
from app.schemas.auth import (
    ChangePasswordRequest,
    LoginRequest,
    ProfileUpdate,
    RegisterRequest,
    ResetPasswordRequest,
)
from app.services import auth as auth_service
from app.services.audit import log_action, record_login

router = APIRouter(
    prefix="/api/auth",
    tags=["auth"],
    dependencies=[Depends(rate_limit(settings.AUTH_RATE_LIMIT_MAX, settings.AUTH_RATE_LIMIT_WINDOW_SECONDS))],
)

LOGIN_FAIL_REASON = "invalid_credentials"


"""
로그인 API

- username / password 검증
- 존재하지 않는 사용자와 비밀번호 불일치는 동일하게 401
- 성공 시 세션 저장 후 역할별 이동 경로(redirectUrl) 반환

"""

@router.post("/login")
def login(data: LoginRequest, request: Request, helper: DatabaseHelper = Depends(get_helper)):
    user = auth_service.authenticate(helper, data.username, data.password)

    if user is None:
        record_login(
            helper, request,
            username=data.username, user_id=None,
            success=False, fail_reason=LOGIN_FAIL_REASON,
        )
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid username or password",
        )

    login_session(request, user)
    record_login(helper, request, username=user["username"], user_id=user["id"], success=True)

    return success(
        {"user": sanitize_data(user), "redirectUrl": landing_page_for(user["role"])},
        "Login successful",
    )


# 로그아웃 (세션이 없어도 성공 응답)
@router.post("/logout")
def logout(request: Request, helper: DatabaseHelper = Depends(get_helper)):
    user = get_session_user(request)
    if user is not None:
        log_action(helper, request, "LOGOUT", f"User {user.username} logged out", module="auth", user_id=user.id)
    request.session.clear()
    return success(None, "Logout successful")


"""
로그인 상태 확인 API

- 세션이 없으면 authenticated=false
- 세션이 있으면 DB에서 사용자 상태를 다시 확인
- 삭제/비활성 사용자면 세션 정리 후 authenticated=false

"""

@router.get("/check")
def check(request: Request, helper: DatabaseHelper = Depends(get_helper)):
    session_user = get_session_user(request)
    if session_user is None:
        return success({"authenticated": False}, "Not logged in")

    user = auth_service.get_user(helper, session_user.id)
    if user is None or not user["is_active"]:
        request.session.clear()
        return success({"authenticated": False}, "Session is no longer valid")

    login_session(request, user)
    return success({"authenticated": True, "user": sanitize_data(user)}, "Logged in")


# 계정 등록 (관리자 전용, 기본 역할 user)
@router.post("/register", status_code=201)
def register(
    data: RegisterRequest,
    request: Request,
    helper: DatabaseHelper = Depends(get_helper),
    current_admin: SessionUser = Depends(get_current_admin),
):
    user = auth_service.create_user(
        helper,
        username=data.username,
        password=data.password,
        full_name=data.full_name,
        role=data.role.value,
        email=data.email,
        student_id=data.student_id,
    )
    log_action(
        helper, request, "USER_REGISTER",
        f"Registered user {user['username']}",
        data={"user_id": user["id"], "role": user["role"]},
        module="auth",
    )
    return success(sanitize_data(user), "User registered", status_code=201)


# 비밀번호 변경 (현재 비밀번호 확인 필요)
@router.post("/change-password")
def change_password(
    data: ChangePasswordRequest,
    request: Request,
    helper: DatabaseHelper = Depends(get_helper),
    current_user: SessionUser = Depends(get_current_user),
):
    if not auth_service.check_current_password(helper, current_user.id, data.current_password):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Current password is incorrect")

    if data.current_password == data.new_password:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="New password must be different from the current password",
        )

    auth_service.set_password(helper, current_user.id, data.new_password)
    log_action(helper, request, "PASSWORD_CHANGE", "Password changed", module="auth")
    return success(None, "Password changed")


# 비밀번호 초기화 (관리자 전용, 현재 비밀번호 확인 없음)
@router.post("/reset-password")
def reset_password(
    data: ResetPasswordRequest,
    request: Request,
    helper: DatabaseHelper = Depends(get_helper),
    current_admin: SessionUser = Depends(get_current_admin),
):
    if not auth_service.set_password(helper, data.user_id, data.new_password):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")

    log_action(
        helper, request, "PASSWORD_RESET",
        f"Password reset for user {data.user_id}",
        data={"target_user_id": data.user_id},
        module="auth",
    )
    return success(None, "Password reset")


@router.get("/me")
def me(
    helper: DatabaseHelper = Depends(get_helper),
    current_user: SessionUser = Depends(get_current_user),
):
    user = auth_service.get_user(helper, current_user.id)
    return success(sanitize_data(user))


# 프로필 수정 (이름 / 이메일)
@router.put("/profile")
def update_profile(
    data: ProfileUpdate,
    request: Request,
    helper: DatabaseHelper = Depends(get_helper),
    current_user: SessionUser = Depends(get_current_user),
):
    changes = data.model_dump(exclude_unset=True, exclude_none=True)
    if not changes:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="No fields to update")

    set_clause, params = build_set_clause(changes)
    helper.run(f"UPDATE users SET {set_clause} WHERE id = :id", {**params, "id": current_user.id})

    user = auth_service.get_user(helper, current_user.id)
    login_session(request, user)
    log_action(helper, request, "PROFILE_UPDATE", "Profile updated", data=changes, module="auth")
    return success(sanitize_data(user), "Profile updated")
