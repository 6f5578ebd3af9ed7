class BatchRepository:

    def __init__(self, conn):
        self.conn = conn
        self.cursor = conn.cursor()

    def create_batch(self, batch_id, name, created_at, total_calls):
        self.cursor.execute("""
                INSERT INTO batches (id, name, created_at, total_calls, status)
                VALUES (?, ?, ?, ?, 'pending')
            """, (batch_id, name, created_at, total_calls))

    def get_by_id(self, batch_id: str):
        self.cursor.execute(
                "SELECT * FROM batches WHERE id = ?",
                (batch_id,)
            )
        row = self.cursor.fetchone()
        return dict(row) if row else None

    def list_recent(self, limit: int = 20):
        self.cursor.execute("""
                SELECT * FROM batches
                ORDER BY created_at DESC
                LIMIT ?
            """, (limit,))
        return [dict(row) for row in self.cursor.fetchall()]

    def count(self):
        self.cursor.execute("SELECT COUNT(*) AS count FROM batches")
        return self.cursor.fetchone()["count"]

    def list_by_status(self, status: str):
        self.cursor.execute("""
                SELECT * FROM batches
                WHERE status = ?
                ORDER BY created_at ASC
            """, (status,))
        return [dict(row) for row in self.cursor.fetchall()]

    def mark_processing(self, batch_id: str) -> bool:
        """pending -> processing; False when the batch is no longer pending."""
        self.cursor.execute("""
                UPDATE batches
                SET status = 'processing'
                WHERE id = ? AND status = 'pending'
            """, (batch_id,))
        return self.cursor.rowcount == 1

    def cancel_if_pending(self, batch_id: str) -> bool:
        self.cursor.execute("""
                UPDATE batches
                SET status = 'cancelled'
                WHERE id = ? AND status = 'pending'
            """, (batch_id,))
        return self.cursor.rowcount == 1

    def update_status(self, batch_id, status):
        self.cursor.execute("""
                UPDATE batches
                SET status = ?
                WHERE id = ?
            """, (status, batch_id))

    def increment_successful(self, batch_id: str):
        self.cursor.execute("""
                UPDATE batches
                SET completed_calls = completed_calls + 1,
                    successful_calls = successful_calls + 1
                WHERE id = ?
            """, (batch_id,))

    def increment_failed(self, batch_id: str, count: int = 1):
        self.cursor.execute("""
                UPDATE batches
                SET completed_calls = completed_calls + ?,
                    failed_calls = failed_calls + ?
                WHERE id = ?
            """, (count, count, batch_id))

    def reset_processing_to_pending(self):
        self.cursor.execute("""
                UPDATE batches
                SET status = 'pending'
                WHERE status = 'processing'
            """)
        return self.cursor.rowcount
