"""Database client.

Thread-local connection reuse for a MySQL-compatible server.
Each thread gets a persistent connection that reconnects on failure.
Statements autocommit unless they run inside `transaction()`.
"""

import logging
import threading
from contextlib import contextmanager
from typing import Any, Generator

import pymysql
from pymysql.cursors import DictCursor

from cso_assessment.config import get_db_config

logger = logging.getLogger(__name__)

_thread_local = threading.local()


def get_connection() -> pymysql.Connection:
    """Get a thread-local database connection, reusing if alive.

    Returns:
        PyMySQL connection (reused per thread, reconnects on failure)
    """
    conn = getattr(_thread_local, "conn", None)
    if conn is not None:
        try:
            conn.ping(reconnect=False)
            return conn
        except pymysql.Error:
            try:
                conn.close()
            except pymysql.Error:
                pass
    conn = pymysql.connect(cursorclass=DictCursor, **get_db_config())
    _thread_local.conn = conn
    return conn


def _in_transaction() -> bool:
    return getattr(_thread_local, "in_transaction", False)


@contextmanager
def get_cursor() -> Generator[Any, None, None]:
    """Context manager for a DictCursor on the thread-local connection.

    Example:
        with get_cursor() as cursor:
            cursor.execute("SELECT * FROM assessments WHERE id = %s", (assessment_id,))
            row = cursor.fetchone()
    """
    conn = get_connection()
    try:
        with conn.cursor() as cursor:
            yield cursor
    except pymysql.OperationalError:
        # Drop the connection so the next call reconnects; inside a transaction keep it for rollback
        if not _in_transaction():
            _thread_local.conn = None
        raise


@contextmanager
def transaction() -> Generator[pymysql.Connection, None, None]:
    """Run the enclosed statements as one transaction.

    Commits on normal exit, rolls back and re-raises on any exception.
    Nested use joins the outer transaction.

    Example:
        with transaction():
            execute_query("DELETE FROM report_suggestions WHERE report_id = %s", (rid,), fetch="none")
            execute_many("INSERT INTO report_suggestions ...", rows)
    """
    conn = get_connection()
    if _in_transaction():
        yield conn
        return

    conn.begin()
    _thread_local.in_transaction = True
    try:
        yield conn
        conn.commit()
    except Exception:
        logger.warning("Rolling back transaction")
        conn.rollback()
        raise
    finally:
        _thread_local.in_transaction = False


def execute_query(sql: str, params: tuple | None = None, fetch: str = "all") -> list[dict] | dict | None:
    """Execute a query and return results.

    Args:
        sql: SQL query with %s placeholders
        params: Query parameters
        fetch: 'all' for fetchall(), 'one' for fetchone(), 'none' for no fetch

    Returns:
        Query results as list of dicts, single dict, or None
    """
    with get_cursor() as cursor:
        cursor.execute(sql, params or ())

        if fetch == "all":
            return cursor.fetchall()
        elif fetch == "one":
            return cursor.fetchone()
        return None


def execute_many(sql: str, params_list: list[tuple]) -> int:
    """Execute a query with multiple parameter sets.

    Returns:
        Number of rows affected
    """
    if not params_list:
        return 0
    with get_cursor() as cursor:
        cursor.executemany(sql, params_list)
        return cursor.rowcount


def check_connection() -> bool:
    """Test database connectivity."""
    try:
        with get_cursor() as cursor:
            cursor.execute("SELECT 1")
            return True
    except pymysql.Error:
        return False
