import requests
from skyiq.config import settings
from skyiq.logging_config import get_logger

logger = get_logger(__name__)


class ElevenLabsError(Exception):
    pass


def _headers():
    return {
        'Content-Type': 'application/json',
        'xi-api-key': settings.ELEVENLABS_API_KEY or ''
    }


def _raise_for_response(response):
    if not response.ok:
        raise ElevenLabsError(f"ElevenLabs API error: {response.status_code} - {response.text}")


def initiate_outbound_call(phone_number: str) -> dict:
    """
    Ask ElevenLabs to dial phone_number with the configured agent and line.

    Blocking; callers on the event loop run it in a worker thread.
    """
    if not settings.elevenlabs_configured:
        raise ElevenLabsError(
            "ElevenLabs configuration incomplete. Please set ELEVENLABS_API_KEY, "
            "ELEVENLABS_AGENT_ID, and ELEVENLABS_PHONE_NUMBER_ID environment variables."
        )

    payload = {
        'agent_id': settings.ELEVENLABS_AGENT_ID,
        'agent_phone_number_id': settings.ELEVENLABS_PHONE_NUMBER_ID,
        'to_number': phone_number,
        'conversation_initiation_client_data': {}
    }

    try:
        response = requests.post(
            settings.ELEVENLABS_API_URL,
            json=payload,
            headers=_headers(),
            timeout=settings.ELEVENLABS_TIMEOUT_SECONDS
        )
    except requests.RequestException as e:
        raise ElevenLabsError(f"ElevenLabs request failed: {e}") from e

    _raise_for_response(response)
    data = response.json()

    conversation_id = data.get('conversation_id') or data.get('id')
    logger.info("outbound_call_accepted", phone_number=phone_number, conversation_id=conversation_id)

    return {
        'conversation_id': conversation_id,
        'call_sid': data.get('callSid') or data.get('call_sid'),
        'status': 'initiated',
        'message': data.get('message') or 'Call initiated successfully'
    }


def update_agent_prompt(system_prompt: str, first_message: str) -> dict:
    """PATCH the agent's prompt and greeting."""
    if not settings.ELEVENLABS_API_KEY or not settings.ELEVENLABS_AGENT_ID:
        raise ElevenLabsError("ElevenLabs configuration missing")

    payload = {
        'conversation_config': {
            'agent': {
                'first_message': first_message,
                'prompt': {
                    'prompt': system_prompt
                }
            }
        }
    }

    try:
        response = requests.patch(
            f"{settings.ELEVENLABS_AGENTS_URL}/{settings.ELEVENLABS_AGENT_ID}",
            json=payload,
            headers=_headers(),
            timeout=settings.ELEVENLABS_TIMEOUT_SECONDS
        )
    except requests.RequestException as e:
        raise ElevenLabsError(f"ElevenLabs request failed: {e}") from e

    _raise_for_response(response)
    return response.json()


def list_agents() -> dict:
    if not settings.ELEVENLABS_API_KEY:
        raise ElevenLabsError("ElevenLabs API key not configured")

    try:
        response = requests.get(
            settings.ELEVENLABS_AGENTS_URL,
            headers={'xi-api-key': settings.ELEVENLABS_API_KEY},
            timeout=settings.ELEVENLABS_TIMEOUT_SECONDS
        )
    except requests.RequestException as e:
        raise ElevenLabsError(f"ElevenLabs request failed: {e}") from e

    if not response.ok:
        raise ElevenLabsError(f"API test failed: {response.status_code} {response.reason}")
    return response.json()
