"""

DatabaseHelper 통합 테스트.
- get / all / run / exists / count 기본 동작
- transaction 커밋 / 롤백 / 중첩 금지
- batch_insert / batch_delete / upsert
- 제약 조건 위반 시 DatabaseError(SQLITE_CONSTRAINT) 변환

"""

import pytest

from app.core.errors import CONSTRAINT_CODE, DatabaseError
from app.db.helper import DatabaseHelper, RunResult, check_identifier
from app.db.session import SessionLocal


@pytest.fixture()
def helper():
    session = SessionLocal()
    try:
        yield DatabaseHelper(session)
    finally:
        session.close()


def insert_setting(helper: DatabaseHelper, key: str, value: str = '"v"') -> RunResult:
    return helper.run(
        "INSERT INTO system_settings (key, value) VALUES (:key, :value)",
        {"key": key, "value": value},
    )


def test_run_get_all(helper):
    result = insert_setting(helper, "site_name", '"DS"')
    assert result.rows_affected == 1

    row = helper.get("SELECT key, value FROM system_settings WHERE key = :key", {"key": "site_name"})
    assert row == {"key": "site_name", "value": '"DS"'}
    assert helper.get("SELECT * FROM system_settings WHERE key = :key", {"key": "missing"}) is None

    insert_setting(helper, "theme")
    rows = helper.all("SELECT key FROM system_settings ORDER BY key")
    assert [r["key"] for r in rows] == ["site_name", "theme"]


def test_insert_returns_last_insert_id(helper):
    result = helper.run(
        "INSERT INTO notifications (title, notification_type, created_by) "
        "VALUES (:title, 'general', (SELECT id FROM users WHERE username = 'admin'))",
        {"title": "hello"},
    )
    assert result.last_insert_id is not None
    assert helper.exists("notifications", "id", result.last_insert_id)


def test_exists_and_count(helper):
    assert helper.exists("users", "username", "admin")
    assert not helper.exists("users", "username", "ghost")
    assert helper.count("users") == 1
    assert helper.count("users", "WHERE role = :role", {"role": "finance"}) == 0


def test_transaction_commits(helper):
    def _work(tx):
        insert_setting(tx, "a")
        insert_setting(tx, "b")
        return "done"

    assert helper.transaction(_work) == "done"
    assert helper.count("system_settings") == 2


def test_transaction_rolls_back_on_error(helper):
    def _work(tx):
        insert_setting(tx, "a")
        raise RuntimeError("boom")

    with pytest.raises(RuntimeError):
        helper.transaction(_work)
    assert helper.count("system_settings") == 0
    assert not helper.in_transaction


def test_nested_transaction_rejected(helper):
    def _outer(tx):
        tx.transaction(lambda inner: None)

    with pytest.raises(DatabaseError):
        helper.transaction(_outer)


def test_constraint_violation_is_database_error(helper):
    with pytest.raises(DatabaseError) as exc:
        helper.run(
            "INSERT INTO users (username, password_hash, full_name) VALUES ('admin', 'x', 'dup')"
        )
    assert exc.value.code == CONSTRAINT_CODE
    assert exc.value.is_constraint

    # 실패 후에도 세션은 계속 사용 가능
    assert helper.count("users") == 1


def test_batch_insert_and_delete(helper):
    results = helper.batch_insert("system_settings", ["key", "value"], [("k1", "1"), ("k2", "2"), ("k3", "3")])
    assert len(results) == 3
    assert helper.count("system_settings") == 3

    deleted = helper.batch_delete("system_settings", "key", ["k1", "k3"])
    assert deleted.rows_affected == 2
    assert helper.count("system_settings") == 1


def test_batch_insert_rejects_empty_rows(helper):
    with pytest.raises(ValueError):
        helper.batch_insert("system_settings", ["key", "value"], [])


def test_batch_insert_rolls_back_on_failure(helper):
    with pytest.raises(DatabaseError):
        helper.batch_insert("system_settings", ["key", "value"], [("same", "1"), ("same", "2")])
    assert helper.count("system_settings") == 0


def test_batch_delete_empty_is_noop(helper):
    assert helper.batch_delete("system_settings", "key", []) == RunResult(last_insert_id=None, rows_affected=0)


def test_upsert_inserts_then_updates(helper):
    helper.upsert("system_settings", {"key": "max_upload", "value": "10"}, ["key"])
    helper.upsert("system_settings", {"key": "max_upload", "value": "20"}, ["key"])

    assert helper.count("system_settings") == 1
    row = helper.get("SELECT value FROM system_settings WHERE key = 'max_upload'")
    assert row["value"] == "20"


def test_check_identifier():
    assert check_identifier("finance_records") == "finance_records"
    for bad in ("users; DROP TABLE users", "1abc", "a-b", ""):
        with pytest.raises(ValueError):
            check_identifier(bad)
