# skyiq/config.py
import os
from dotenv import load_dotenv
load_dotenv()


def _as_bool(value, default=False):
    if value is None or value == "":
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


class Settings:

    def __init__(self):
        self.ELEVENLABS_API_KEY = os.getenv('ELEVENLABS_API_KEY')
        self.ELEVENLABS_AGENT_ID = os.getenv('ELEVENLABS_AGENT_ID')
        self.ELEVENLABS_PHONE_NUMBER_ID = os.getenv('ELEVENLABS_PHONE_NUMBER_ID')
        self.ELEVENLABS_API_URL = os.getenv(
            'ELEVENLABS_API_URL',
            'https://api.elevenlabs.io/v1/convai/twilio/outbound-call'
        )
        self.ELEVENLABS_AGENTS_URL = os.getenv(
            'ELEVENLABS_AGENTS_URL',
            'https://api.elevenlabs.io/v1/convai/agents'
        )
        self.ELEVENLABS_TIMEOUT_SECONDS = float(os.getenv('ELEVENLABS_TIMEOUT_SECONDS', '15'))

        self.BACKEND_HOST = os.getenv('BACKEND_HOST', '0.0.0.0')
        self.BACKEND_PORT = int(os.getenv('BACKEND_PORT', '8000'))
        self.DASHBOARD_URL = os.getenv('DASHBOARD_URL', 'http://localhost:8000')

        self.DATABASE_PATH = os.getenv('DATABASE_PATH', 'skyiq.db')
        self.BATCH_CALL_INTERVAL_SECONDS = float(os.getenv('BATCH_CALL_INTERVAL_SECONDS', '2'))
        self.MAX_BATCH_SIZE = int(os.getenv('MAX_BATCH_SIZE', '1000'))

        self.EMAIL_ENABLED = _as_bool(os.getenv('EMAIL_ENABLED'))
        self.SMTP_HOST = os.getenv('SMTP_HOST')
        self.SMTP_PORT = int(os.getenv('SMTP_PORT', '587'))
        self.SMTP_USERNAME = os.getenv('SMTP_USERNAME')
        self.SMTP_PASSWORD = os.getenv('SMTP_PASSWORD')
        self.SMTP_USE_TLS = _as_bool(os.getenv('SMTP_USE_TLS'), default=True)
        self.EMAIL_FROM = os.getenv('EMAIL_FROM')
        self.EMAIL_FROM_NAME = os.getenv('EMAIL_FROM_NAME', 'SkyIQ Dashboard')
        self.EMAIL_TO = os.getenv('EMAIL_TO')
        self.EMAIL_TO_NAME = os.getenv('EMAIL_TO_NAME', '')

        self.ENVIRONMENT = os.getenv('ENVIRONMENT', 'development')
        self.LOG_LEVEL = os.getenv('LOG_LEVEL', 'INFO')

    @property
    def elevenlabs_configured(self) -> bool:
        """Whether outbound calls can be placed at all."""
        return all([
            self.ELEVENLABS_API_KEY,
            self.ELEVENLABS_AGENT_ID,
            self.ELEVENLABS_PHONE_NUMBER_ID,
        ])

    @property
    def email_configured(self) -> bool:
        return bool(self.EMAIL_ENABLED and self.SMTP_HOST and self.EMAIL_FROM and self.EMAIL_TO)

    @property
    def is_production(self) -> bool:
        return self.ENVIRONMENT.lower() == 'production'


settings = Settings()
