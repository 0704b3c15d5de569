"""
Read-only interface to the AI configuration tables.
The admin console writes ai_models, ai_prompts and ai_settings; this service only reads them.
"""

import threading

import psycopg
from psycopg.rows import dict_row

from common.logging import get_logger
from config.config import Config_Table
from config.settings import DB_HOST, DB_PORT, DB_USER, DB_PASSWORD, DB_NAME, DB_SSLMODE

logger = get_logger(__name__)


class Database:
    """
    Handles the connection to the configuration database (Supabase Postgres).
    Each read opens its own cursor so reads may run from parallel threads.
    A connection dropped by the server or the pooler is replaced on the next read.
    """

    def __init__(self):
        """
        Establish connection to the PostgreSQL database.
        """
        self._lock = threading.Lock()
        self.conn = self._connect()

    def _connect(self) -> psycopg.Connection:
        conn = psycopg.connect(
            dbname=DB_NAME,
            user=DB_USER,
            password=DB_PASSWORD,
            host=DB_HOST,
            port=DB_PORT,
            sslmode=DB_SSLMODE,
            row_factory=dict_row,
        )
        conn.autocommit = True
        logger.debug("Database connection established", extra={"host": DB_HOST})
        return conn

    def close(self):
        """
        Close the database connection.
        """
        if not self.conn.closed:
            self.conn.close()
            logger.debug("Database connection closed")

    def _connection(self) -> psycopg.Connection:
        with self._lock:
            if self.conn.closed:
                logger.warning("Database connection closed, reconnecting")
                self.conn = self._connect()
            return self.conn

    def _discard(self, conn: psycopg.Connection) -> None:
        # Another reader may already have replaced the broken connection.
        with self._lock:
            if self.conn is conn and not conn.closed:
                conn.close()

    def _execute(self, conn: psycopg.Connection, query: str) -> list[dict]:
        with conn.cursor() as cursor:
            cursor.execute(query)
            return cursor.fetchall()

    def _fetch_all(self, query: str) -> list[dict]:
        conn = self._connection()
        try:
            return self._execute(conn, query)
        except psycopg.OperationalError as e:
            logger.warning("Database read failed, reconnecting", extra={"error": str(e)})
            self._discard(conn)
            return self._execute(self._connection(), query)

    def fetch_models(self) -> list[dict]:
        """
        Read enabled models, best rank first.

        Returns:
            list[dict]: Rows of the ai_models table.
        """
        rows = self._fetch_all(
            f"SELECT * FROM {Config_Table.MODELS} WHERE enabled = TRUE ORDER BY rank DESC;"
        )
        logger.debug("Models read", extra={"count": len(rows)})
        return rows

    def fetch_prompts(self) -> list[dict]:
        """
        Read enabled prompt templates.

        Returns:
            list[dict]: Rows of the ai_prompts table.
        """
        rows = self._fetch_all(f"SELECT * FROM {Config_Table.PROMPTS} WHERE enabled = TRUE;")
        logger.debug("Prompts read", extra={"count": len(rows)})
        return rows

    def fetch_settings(self) -> list[dict]:
        """
        Read all general settings.

        Returns:
            list[dict]: Rows of the ai_settings table (key, value, description).
        """
        rows = self._fetch_all(f"SELECT * FROM {Config_Table.SETTINGS};")
        logger.debug("Settings read", extra={"count": len(rows)})
        return rows
