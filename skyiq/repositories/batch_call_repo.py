import uuid


class BatchCallRepository:

    def __init__(self, conn):
        self.conn = conn
        self.cursor = conn.cursor()

    def insert_calls_bulk(self, batch_id, contacts, created_at):
        for contact in contacts:
            self.cursor.execute("""
                INSERT INTO batch_calls
                (id, batch_id, phone_number, first_name, last_name, company, status, created_at)
                VALUES (?, ?, ?, ?, ?, ?, 'pending', ?)
            """, (
                str(uuid.uuid4()),
                batch_id,
                contact.phone_number,
                contact.first_name or '',
                contact.last_name or '',
                contact.company or '',
                created_at
            ))

    def get_pending(self, batch_id: str):
        self.cursor.execute("""
            SELECT * FROM batch_calls
            WHERE batch_id = ? AND status = 'pending'
            ORDER BY seq ASC
        """, (batch_id,))
        return [dict(row) for row in self.cursor.fetchall()]

    def get_by_batch(self, batch_id: str):
        self.cursor.execute("""
            SELECT * FROM batch_calls
            WHERE batch_id = ?
            ORDER BY seq ASC
        """, (batch_id,))
        return [dict(row) for row in self.cursor.fetchall()]

    def get_by_id(self, batch_call_id: str):
        self.cursor.execute(
            "SELECT * FROM batch_calls WHERE id = ?",
            (batch_call_id,)
        )
        row = self.cursor.fetchone()
        return dict(row) if row else None

    def mark_processing(self, batch_call_id: str):
        self.cursor.execute("""
            UPDATE batch_calls
            SET status = 'processing'
            WHERE id = ? AND status = 'pending'
        """, (batch_call_id,))

    def mark_completed(self, batch_call_id: str, call_id: str, timestamp: str):
        self.cursor.execute("""
            UPDATE batch_calls
            SET status = 'completed',
                call_id = ?,
                error_message = NULL,
                completed_at = ?
            WHERE id = ?
        """, (call_id, timestamp, batch_call_id))

    def mark_failed(self, batch_call_id: str, error_msg: str, timestamp: str):
        self.cursor.execute("""
            UPDATE batch_calls
            SET status = 'failed',
                error_message = ?,
                completed_at = ?
            WHERE id = ?
        """, (error_msg, timestamp, batch_call_id))

    def fail_interrupted(self, error_msg: str, timestamp: str):
        """Fail every call left in 'processing'; returns {batch_id: count}."""
        self.cursor.execute("""
            SELECT batch_id, COUNT(*) AS count
            FROM batch_calls
            WHERE status = 'processing'
            GROUP BY batch_id
        """)
        counts = {row["batch_id"]: row["count"] for row in self.cursor.fetchall()}

        self.cursor.execute("""
            UPDATE batch_calls
            SET status = 'failed',
                error_message = ?,
                completed_at = ?
            WHERE status = 'processing'
        """, (error_msg, timestamp))
        return counts
