"""
pages.py

브라우저 페이지 라우트.

프론트엔드(정적 HTML/JS)는 이 저장소에 포함되지 않으므로
로그인 여부 / 역할 확인 후 간단한 HTML 셸만 반환한다.

- /              : 로그인 상태에 따라 /dashboard 또는 /login 으로 이동
- /login         : 이미 로그인했다면 역할별 페이지로 이동
- /dashboard     : 로그인한 모든 활성 사용자
- /<부서>        : 부서별 허용 역할만 (비로그인은 /login 으로 리다이렉트, 권한 없음은 403 페이지)

"""

import html

from fastapi import APIRouter, Depends, Request
from fastapi.responses import HTMLResponse, RedirectResponse

from app.core.config import settings
from app.core.deps import SessionUser, get_current_user, get_session_user, redirect_if_authenticated, require_role
from app.models.user import Role

router = APIRouter(tags=["pages"], include_in_schema=False)

DEPARTMENT_PAGES = {
    "admin": (Role.ADMIN,),
    "finance": (Role.ADMIN, Role.FINANCE, Role.SECRETARY, Role.USER),
    "secretary": (Role.ADMIN, Role.SECRETARY),
    "activity": tuple(Role),
    "design": (Role.ADMIN, Role.DESIGN, Role.SECRETARY),
    "pr": (Role.ADMIN, Role.PR),
    "history": (Role.ADMIN, Role.SECRETARY),
}


def _shell(title: str, user: SessionUser | None = None, page: str = "") -> HTMLResponse:
    who = ""
    if user is not None:
        who = f"<p>{html.escape(user.full_name or user.username)} ({html.escape(user.role)})</p>"
    body = (
        "<!DOCTYPE html><html><head><meta charset=\"utf-8\">"
        f"<title>{html.escape(title)} - {html.escape(settings.APP_NAME)}</title></head>"
        f"<body data-page=\"{html.escape(page)}\"><h1>{html.escape(title)}</h1>{who}</body></html>"
    )
    return HTMLResponse(body)


@router.get("/")
def index(request: Request):
    target = "/dashboard" if get_session_user(request) else "/login"
    return RedirectResponse(target, status_code=302)


@router.get("/login")
def login_page(request: Request):
    redirect = redirect_if_authenticated(request)
    if redirect is not None:
        return redirect
    return _shell("Login", page="login")


@router.get("/dashboard")
def dashboard_page(current_user: SessionUser = Depends(get_current_user)):
    return _shell("Dashboard", current_user, page="dashboard")


def _department_page(name: str, roles: tuple):
    def _page(current_user: SessionUser = Depends(require_role(*roles))):
        return _shell(name.capitalize(), current_user, page=name)

    _page.__name__ = f"{name}_page"
    return _page


for _name, _roles in DEPARTMENT_PAGES.items():
    router.add_api_route(f"/{_name}", _department_page(_name, _roles), methods=["GET"])
