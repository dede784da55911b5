import os
from contextlib import contextmanager

import pymysql
from dotenv import load_dotenv

from ecoflow_worker.errors import PersistenceError


load_dotenv()


def get_db_config() -> dict:
    return {
        "host": os.getenv("DB_HOST"),
        "port": int(os.getenv("DB_PORT", "3306")),
        "user": os.getenv("DB_USER"),
        "password": os.getenv("DB_PASS"),
        "database": os.getenv("DB_NAME"),
        "charset": "utf8mb4",
        "cursorclass": pymysql.cursors.DictCursor,
        "autocommit": False,
    }


@contextmanager
def get_connection(config: dict | None = None):
    try:
        conn = pymysql.connect(**(config or get_db_config()))
    except pymysql.MySQLError as exc:
        raise PersistenceError(f"database connection failed: {exc}") from exc
    try:
        yield conn
        conn.commit()
    except pymysql.MySQLError as exc:
        conn.rollback()
        raise PersistenceError(str(exc)) from exc
    except Exception:
        conn.rollback()
        raise
    finally:
        conn.close()
