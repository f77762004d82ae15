from __future__ import annotations

from unittest.mock import MagicMock

import mysql.connector
import pytest

from tests.fakes import utc

from src.shift_coverage.shift_coverage.core.exceptions import DuplicateRequestError, StoreUnavailableError
from src.shift_coverage.shift_coverage.coverage.mysql_coverage_repository import MySQLCoverageRequestRepository


def make_repo(cursor):
    conn = MagicMock()
    conn.cursor.return_value = cursor
    factory = MagicMock()
    factory.connect.return_value = conn
    return MySQLCoverageRequestRepository(factory), conn


def approve(repo):
    return repo.approve(
        request_id=1,
        shift_id=10,
        replacement_employee_id=3,
        approved_at=utc(2026, 3, 2, 12, 0),
        reviewed_by=9,
        sibling_note="Another replacement was approved",
    )


def test_approve_runs_all_writes_in_one_transaction():
    cursor = MagicMock()
    cursor.rowcount = 1
    repo, conn = make_repo(cursor)

    assert approve(repo) is True

    statements = [call.args[0] for call in cursor.execute.call_args_list]
    assert len(statements) == 3
    assert "UPDATE shifts" in statements[0] and "replacement_approved_at IS NULL" in statements[0]
    assert "status=%s" in statements[1] and "request_id=%s" in statements[1]
    assert "request_id<>%s" in statements[2]
    conn.commit.assert_called_once()
    conn.rollback.assert_not_called()
    conn.close.assert_called_once()


def test_approve_rolls_back_when_shift_already_reassigned():
    cursor = MagicMock()
    cursor.rowcount = 0
    repo, conn = make_repo(cursor)

    assert approve(repo) is False

    assert cursor.execute.call_count == 1
    conn.commit.assert_not_called()
    conn.rollback.assert_called_once()


def test_approve_failure_between_writes_leaves_nothing_committed():
    cursor = MagicMock()
    cursor.rowcount = 1
    cursor.execute.side_effect = [None, mysql.connector.errors.OperationalError(msg="Lost connection")]
    repo, conn = make_repo(cursor)

    with pytest.raises(StoreUnavailableError):
        approve(repo)

    conn.commit.assert_not_called()
    conn.rollback.assert_called_once()


def test_create_maps_pending_key_violation_to_duplicate_request():
    cursor = MagicMock()
    cursor.execute.side_effect = mysql.connector.IntegrityError(
        msg="Duplicate entry '10:3' for key 'coverage_requests.uq_coverage_requests_pending'",
        errno=1062,
    )
    repo, conn = make_repo(cursor)

    with pytest.raises(DuplicateRequestError):
        repo.create(
            shift_id=10,
            original_employee_id=2,
            replacement_employee_id=3,
            company_id=1,
            created_at=utc(2026, 3, 2, 12, 0),
        )
    conn.rollback.assert_called_once()


def test_deny_only_touches_pending_requests():
    cursor = MagicMock()
    cursor.rowcount = 0
    repo, _ = make_repo(cursor)

    assert repo.deny(request_id=1, reviewed_at=utc(2026, 3, 2), reviewed_by=9) is False
    sql, params = cursor.execute.call_args.args
    assert "status=%s" in sql.split("WHERE")[1]
    assert params[-1] == "pending"
