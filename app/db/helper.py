"""
helper.py

SQL 실행 헬퍼(DatabaseHelper).

요청 단위 SQLAlchemy Session을 생성자로 주입받아
get / all / run 세 가지 기본 동작과 편의 함수를 제공한다.
전역 DB 핸들을 두지 않고, 라우터는 get_helper 의존성으로 인스턴스를 받는다.

주요 기능:
- get      : 한 행(dict) 또는 None
- all      : 행(dict) 리스트
- run      : INSERT/UPDATE/DELETE 실행 후 RunResult(last_insert_id, rows_affected)
- exists / count
- transaction : BEGIN/COMMIT, 실패 시 ROLLBACK 후 예외 재발생 (중첩 불가)
- batch_insert / batch_delete / upsert

설계 원칙:
- SQL 파라미터는 항상 바인딩(:name)으로 전달
- 테이블/컬럼 이름은 SQL에 직접 들어가므로 식별자 형식을 검사하고,
  호출 측은 코드에 고정된 이름만 넘긴다
- 드라이버 오류는 로그를 남기고 DatabaseError로 변환

관련 파일:
- app.core.deps          : get_helper 의존성
- app.core.errors        : DatabaseError 정의 및 응답 변환

"""

import logging
import re
from dataclasses import dataclass
from typing import Any, Callable, Iterable, Mapping, Sequence, TypeVar

from sqlalchemy import text
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.errors import CONSTRAINT_CODE, DatabaseError

logger = logging.getLogger(__name__)

T = TypeVar("T")

_IDENTIFIER_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


@dataclass(frozen=True)
class RunResult:
    last_insert_id: int | None
    rows_affected: int


def check_identifier(name: str) -> str:
    if not isinstance(name, str) or not _IDENTIFIER_RE.match(name):
        raise ValueError(f"Invalid SQL identifier: {name!r}")
    return name


class DatabaseHelper:
    def __init__(self, session: Session):
        self.session = session
        self._in_transaction = False

    @property
    def in_transaction(self) -> bool:
        return self._in_transaction

    # ---- 기본 동작 -------------------------------------------------------

    def _execute(self, sql: str, params: Mapping[str, Any] | Sequence[Mapping[str, Any]] | None, op: str):
        try:
            return self.session.execute(text(sql), params or {})
        except SQLAlchemyError as e:
            logger.error("Database %s error: %s", op, e)
            if not self._in_transaction:
                self.session.rollback()
            code = CONSTRAINT_CODE if isinstance(e, IntegrityError) else "SQLITE_ERROR"
            raise DatabaseError(str(getattr(e, "orig", e)), code=code, original=e) from e

    def get(self, sql: str, params: Mapping[str, Any] | None = None) -> dict | None:
        row = self._execute(sql, params, "GET").mappings().first()
        return dict(row) if row is not None else None

    def all(self, sql: str, params: Mapping[str, Any] | None = None) -> list[dict]:
        return [dict(row) for row in self._execute(sql, params, "ALL").mappings().all()]

    def run(self, sql: str, params: Mapping[str, Any] | None = None) -> RunResult:
        result = self._execute(sql, params, "RUN")
        run_result = RunResult(last_insert_id=result.lastrowid, rows_affected=result.rowcount)
        if not self._in_transaction:
            self._commit()
        return run_result

    def _commit(self) -> None:
        try:
            self.session.commit()
        except SQLAlchemyError as e:
            self.session.rollback()
            code = CONSTRAINT_CODE if isinstance(e, IntegrityError) else "SQLITE_ERROR"
            raise DatabaseError(str(getattr(e, "orig", e)), code=code, original=e) from e

    # ---- 편의 함수 -------------------------------------------------------

    def exists(self, table: str, column: str, value: Any) -> bool:
        sql = f"SELECT 1 FROM {check_identifier(table)} WHERE {check_identifier(column)} = :value LIMIT 1"
        return self.get(sql, {"value": value}) is not None

    def count(self, table: str, where_clause: str = "", params: Mapping[str, Any] | None = None) -> int:
        sql = f"SELECT COUNT(*) AS count FROM {check_identifier(table)} {where_clause}"
        row = self.get(sql, params)
        return int(row["count"]) if row else 0

    def transaction(self, fn: Callable[["DatabaseHelper"], T]) -> T:
        if self._in_transaction:
            raise DatabaseError("Nested transactions are not supported", code="SQLITE_ERROR")

        # 앞선 조회로 열린 암묵적 트랜잭션은 여기서 정리
        if self.session.in_transaction():
            self._commit()

        self._in_transaction = True
        try:
            result = fn(self)
            self._commit()
            return result
        except Exception:
            self.session.rollback()
            logger.warning("Transaction rolled back")
            raise
        finally:
            self._in_transaction = False

    def batch_insert(self, table: str, columns: Sequence[str], rows: Iterable[Sequence[Any]]) -> list[RunResult]:
        rows = list(rows)
        if not rows:
            raise ValueError("No values provided for batch insert")

        cols = [check_identifier(c) for c in columns]
        placeholders = ", ".join(f":{c}" for c in cols)
        sql = f"INSERT INTO {check_identifier(table)} ({', '.join(cols)}) VALUES ({placeholders})"

        def _insert_all(helper: "DatabaseHelper") -> list[RunResult]:
            results = []
            for row in rows:
                if len(row) != len(cols):
                    raise ValueError("Row length does not match column count")
                results.append(helper.run(sql, dict(zip(cols, row))))
            return results

        return self.transaction(_insert_all)

    def batch_delete(self, table: str, column: str, values: Sequence[Any]) -> RunResult:
        if not values:
            return RunResult(last_insert_id=None, rows_affected=0)
        binds = {f"v{i}": v for i, v in enumerate(values)}
        placeholders = ", ".join(f":{k}" for k in binds)
        sql = f"DELETE FROM {check_identifier(table)} WHERE {check_identifier(column)} IN ({placeholders})"
        return self.run(sql, binds)

    def upsert(self, table: str, data: Mapping[str, Any], conflict_columns: Sequence[str]) -> RunResult:
        cols = [check_identifier(c) for c in data]
        conflict = [check_identifier(c) for c in conflict_columns]
        updates = [c for c in cols if c not in conflict]

        sql = (
            f"INSERT INTO {check_identifier(table)} ({', '.join(cols)}) "
            f"VALUES ({', '.join(f':{c}' for c in cols)}) "
            f"ON CONFLICT({', '.join(conflict)}) "
        )
        if updates:
            sql += "DO UPDATE SET " + ", ".join(f"{c} = excluded.{c}" for c in updates)
        else:
            sql += "DO NOTHING"
        return self.run(sql, dict(data))
