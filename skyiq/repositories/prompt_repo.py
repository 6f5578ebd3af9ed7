class PromptRepository:

    def __init__(self, conn):
        self.conn = conn
        self.cursor = conn.cursor()

    def get_latest(self):
        self.cursor.execute("""
            SELECT * FROM prompts
            ORDER BY updated_at DESC, id DESC
            LIMIT 1
        """)
        row = self.cursor.fetchone()
        return dict(row) if row else None

    def count(self):
        self.cursor.execute("SELECT COUNT(*) AS count FROM prompts")
        return self.cursor.fetchone()["count"]

    def replace(self, system_prompt: str, first_message: str, timestamp: str):
        """Drop the previous prompt and store the new one."""
        self.cursor.execute("DELETE FROM prompts")
        self.cursor.execute("""
            INSERT INTO prompts (system_prompt, first_message, created_at, updated_at)
            VALUES (?, ?, ?, ?)
        """, (system_prompt, first_message, timestamp, timestamp))
        return self.get_latest()
