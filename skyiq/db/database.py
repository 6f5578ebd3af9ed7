import sqlite3
from contextlib import contextmanager
from skyiq.config import settings

@contextmanager
def get_db():
    conn = sqlite3.connect(settings.DATABASE_PATH, check_same_thread=False, timeout=10)
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA foreign_keys = ON")
    try:
        yield conn
    finally:
        conn.close()
