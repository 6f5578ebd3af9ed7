class CallRepository:

    def __init__(self, conn):
        self.conn = conn
        self.cursor = conn.cursor()

    def create_call(self, call: dict):
        self.cursor.execute("""
            INSERT INTO calls
            (id, timestamp, caller_number, called_number, duration, status, call_type, transcript, conversation_id)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
        """, (
            call["id"],
            call["timestamp"],
            call["caller_number"],
            call["called_number"],
            call["duration"],
            call["status"],
            call["call_type"],
            call["transcript"],
            call["conversation_id"]
        ))

    def list_recent(self, limit: int = 50):
        self.cursor.execute("""
            SELECT * FROM calls
            ORDER BY timestamp DESC
            LIMIT ?
        """, (limit,))
        return [dict(row) for row in self.cursor.fetchall()]

    def count(self):
        self.cursor.execute("SELECT COUNT(*) AS count FROM calls")
        return self.cursor.fetchone()["count"]

    def get_by_id(self, call_id: str):
        self.cursor.execute(
            "SELECT * FROM calls WHERE id = ?",
            (call_id,)
        )
        row = self.cursor.fetchone()
        return dict(row) if row else None

    def exists_by_conversation(self, conversation_id: str):
        self.cursor.execute(
            "SELECT id FROM calls WHERE conversation_id = ?",
            (conversation_id,)
        )
        return self.cursor.fetchone() is not None

    def update_status_by_conversation(self, conversation_id: str, status: str):
        self.cursor.execute("""
            UPDATE calls
            SET status = ?
            WHERE conversation_id = ?
        """, (status, conversation_id))

    def mark_ended(self, conversation_id: str, duration: int):
        self.cursor.execute("""
            UPDATE calls
            SET status = 'completed',
                duration = ?
            WHERE conversation_id = ?
        """, (duration, conversation_id))

    def append_transcript(self, conversation_id: str, text: str):
        self.cursor.execute("""
            UPDATE calls
            SET transcript = COALESCE(transcript, '') || ?
            WHERE conversation_id = ?
        """, (text, conversation_id))
