from skyiq.db.database import get_db
from skyiq.repositories.batch_repo import BatchRepository
from skyiq.repositories.batch_call_repo import BatchCallRepository
from skyiq.repositories.call_repo import CallRepository
from skyiq.repositories.prompt_repo import PromptRepository

class UnitOfWork:

    def __enter__(self):
        self.conn_ctx = get_db()
        self.conn = self.conn_ctx.__enter__()

        # Pass SAME connection to repos
        self.batches = BatchRepository(self.conn)
        self.batch_calls = BatchCallRepository(self.conn)
        self.calls = CallRepository(self.conn)
        self.prompts = PromptRepository(self.conn)

        return self

    def __exit__(self, exc_type, exc, tb):
        try:
            if exc_type:
                self.conn.rollback()
            else:
                self.conn.commit()
        finally:
            self.conn_ctx.__exit__(exc_type, exc, tb)
