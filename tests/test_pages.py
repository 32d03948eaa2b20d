"""

페이지 라우트 테스트.
- 비로그인 → /login 리다이렉트
- 로그인 후 /login 접근 → 역할별 페이지로 리다이렉트
- 부서 페이지 권한 (권한 없음은 403 HTML)

"""

from tests.helpers import client_as, login_admin


def test_anonymous_redirects_to_login(client):
    r = client.get("/", follow_redirects=False)
    assert r.status_code == 302
    assert r.headers["location"] == "/login"

    r = client.get("/dashboard", follow_redirects=False)
    assert r.status_code == 302
    assert r.headers["location"] == "/login"

    r = client.get("/login")
    assert r.status_code == 200
    assert "text/html" in r.headers["content-type"]


def test_logged_in_login_page_redirects_by_role(client):
    login_admin(client)
    r = client.get("/login", follow_redirects=False)
    assert r.status_code == 302
    assert r.headers["location"] == "/admin"

    finance, _ = client_as("finance")
    r = finance.get("/login", follow_redirects=False)
    assert r.headers["location"] == "/finance"

    r = finance.get("/", follow_redirects=False)
    assert r.headers["location"] == "/dashboard"


def test_department_pages_enforce_roles(client):
    finance, _ = client_as("finance")

    assert finance.get("/dashboard").status_code == 200
    assert finance.get("/finance").status_code == 200

    r = finance.get("/admin")
    assert r.status_code == 403
    assert "text/html" in r.headers["content-type"]

    login_admin(client)
    for page in ("admin", "finance", "secretary", "activity", "design", "pr", "history"):
        assert client.get(f"/{page}").status_code == 200, page
