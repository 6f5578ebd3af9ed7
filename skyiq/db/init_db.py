from skyiq.db.database import get_db
from skyiq.config import settings
from skyiq.logging_config import get_logger

logger = get_logger(__name__)


def init_db():
    """Create tables if they do not exist yet"""
    with get_db() as conn:
        cursor = conn.cursor()

        cursor.execute("PRAGMA journal_mode = WAL")

        # Batches (outbound campaigns)
        cursor.execute('''
            CREATE TABLE IF NOT EXISTS batches (
                id TEXT PRIMARY KEY,
                name TEXT NOT NULL,
                created_at TEXT NOT NULL,
                status TEXT NOT NULL DEFAULT 'pending',
                total_calls INTEGER NOT NULL DEFAULT 0,
                completed_calls INTEGER NOT NULL DEFAULT 0,
                successful_calls INTEGER NOT NULL DEFAULT 0,
                failed_calls INTEGER NOT NULL DEFAULT 0
            )
        ''')

        # One row per destination number; seq is the creation order
        cursor.execute('''
            CREATE TABLE IF NOT EXISTS batch_calls (
                seq INTEGER PRIMARY KEY AUTOINCREMENT,
                id TEXT NOT NULL UNIQUE,
                batch_id TEXT NOT NULL,
                phone_number TEXT NOT NULL,
                first_name TEXT DEFAULT '',
                last_name TEXT DEFAULT '',
                company TEXT DEFAULT '',
                status TEXT NOT NULL DEFAULT 'pending',
                call_id TEXT,
                error_message TEXT,
                created_at TEXT NOT NULL,
                completed_at TEXT,
                FOREIGN KEY (batch_id) REFERENCES batches(id)
            )
        ''')

        cursor.execute('''
            CREATE INDEX IF NOT EXISTS idx_batch_calls_batch_status
            ON batch_calls (batch_id, status)
        ''')

        # Inbound and outbound call history
        cursor.execute('''
            CREATE TABLE IF NOT EXISTS calls (
                id TEXT PRIMARY KEY,
                timestamp TEXT NOT NULL,
                caller_number TEXT,
                called_number TEXT,
                duration INTEGER DEFAULT 0,
                status TEXT,
                call_type TEXT,
                transcript TEXT DEFAULT '',
                conversation_id TEXT
            )
        ''')

        cursor.execute('''
            CREATE INDEX IF NOT EXISTS idx_calls_conversation
            ON calls (conversation_id)
        ''')

        # Agent prompt; only the latest row is meaningful
        cursor.execute('''
            CREATE TABLE IF NOT EXISTS prompts (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                system_prompt TEXT NOT NULL,
                first_message TEXT NOT NULL,
                created_at TEXT NOT NULL,
                updated_at TEXT NOT NULL
            )
        ''')

        conn.commit()
        logger.info("database_initialized", path=settings.DATABASE_PATH)
