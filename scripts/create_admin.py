"""

관리자(admin) 계정 생성 / 비밀번호 재설정 스크립트.

- 서버 최초 세팅 또는 관리자 비밀번호 분실 시 실행하는 용도
- .env에 정의된 ADMIN_* 환경 변수를 읽어
  admin 역할 계정을 생성한다.
- 같은 username 계정이 이미 있으면 비밀번호를 재설정하고
  역할을 admin으로, 상태를 활성으로 되돌린다.

사용 목적:
- 기본 시드 계정(admin/admin123)을 쓰지 않고
  운영용 관리자 계정을 안전하게 초기화하기 위함

사용 방법
- 가상환경 접속
- (.venv) ~\backend~$ python -m scripts.create_admin

"""

import os
from dotenv import load_dotenv
load_dotenv()

from sqlalchemy import select
from app.db.init_db import create_schema
from app.db.session import SessionLocal, engine
from app.models.user import User, Role
from app.core.security import get_password_hash



def main():
    create_schema(engine)
    db = SessionLocal()
    try:
        username = os.environ.get("ADMIN_USERNAME", "admin")
        password = os.environ["ADMIN_PASSWORD"]
        full_name = os.environ.get("ADMIN_FULL_NAME", "System Administrator")

        user = db.scalar(
            select(User).where(User.username == username)
        )
        if user:
            user.password_hash = get_password_hash(password)
            user.role = Role.ADMIN.value
            user.is_active = True
            user.is_deleted = False
            user.deleted_at = None
            db.commit()
            print(f"✅ Admin password reset: {username}")
            return

        user = User(
            username=username,
            password_hash=get_password_hash(password),
            full_name=full_name,
            role=Role.ADMIN.value,
            is_active=True,
            is_deleted=False,
        )

        db.add(user)
        db.commit()

        print(f"🚀 Admin created: {username}")

    finally:
        db.close()


if __name__ == "__main__":
    main()
