from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Any, Dict, List, Optional

import mysql.connector
from mysql.connector import errorcode

from ..core.exceptions import PermissionDeniedError, StoreUnavailableError
from .connection import DatabaseConnection

logger = logging.getLogger(__name__)

# Privilege failures surface as PermissionDeniedError so callers can tell
# "not allowed" apart from "store is down".
ACCESS_DENIED_ERRNOS = frozenset(
    {
        errorcode.ER_DBACCESS_DENIED_ERROR,
        errorcode.ER_TABLEACCESS_DENIED_ERROR,
        errorcode.ER_COLUMNACCESS_DENIED_ERROR,
        errorcode.ER_SPECIFIC_ACCESS_DENIED_ERROR,
    }
)


def _translate(exc: mysql.connector.Error) -> Exception:
    if getattr(exc, "errno", None) in ACCESS_DENIED_ERRNOS:
        return PermissionDeniedError(str(exc))
    return StoreUnavailableError(str(exc))


@contextmanager
def db_cursor(conn_factory: DatabaseConnection, *, dictionary: bool = True):
    """One connection, one transaction.

    Commits when the block exits cleanly and rolls back on any exception.
    IntegrityError propagates as-is so repositories can map unique-key
    violations to domain errors.
    """

    try:
        conn = conn_factory.connect()
    except mysql.connector.Error as e:
        raise _translate(e) from e

    try:
        cur = conn.cursor(dictionary=dictionary)
        try:
            yield conn, cur
            conn.commit()
        finally:
            cur.close()
    except mysql.connector.IntegrityError:
        conn.rollback()
        raise
    except mysql.connector.Error as e:
        conn.rollback()
        logger.warning("MySQL error, transaction rolled back: %s", e)
        raise _translate(e) from e
    except Exception:
        conn.rollback()
        raise
    finally:
        conn.close()


def fetchone(cur) -> Optional[Dict[str, Any]]:
    row = cur.fetchone()
    return row if row else None


def fetchall(cur) -> List[Dict[str, Any]]:
    rows = cur.fetchall()
    return list(rows or [])


def is_duplicate_key(exc: mysql.connector.IntegrityError, key_name: str) -> bool:
    """True when ``exc`` is a duplicate-entry violation on ``key_name``."""
    return getattr(exc, "errno", None) == errorcode.ER_DUP_ENTRY and key_name in str(exc)
