from fastapi import APIRouter, Depends, Request
from fastapi.responses import PlainTextResponse
import uuid
from skyiq.db.unit_of_work import UnitOfWork
from skyiq.dependencies import get_broadcaster
from skyiq.logging_config import get_logger
from skyiq.services.notification_service import send_call_notification
from skyiq.utils.helper import utcnow_iso

logger = get_logger(__name__)

router = APIRouter()


async def handle_call_started(data: dict, broadcaster):
    conversation_id = data.get("conversation_id")

    with UnitOfWork() as uow:

        if uow.calls.exists_by_conversation(conversation_id):
            uow.calls.update_status_by_conversation(conversation_id, "in-progress")
            return None

        call = {
            "id": data.get("call_id") or str(uuid.uuid4()),
            "timestamp": utcnow_iso(),
            "caller_number": data.get("from_number"),
            "called_number": data.get("to_number"),
            "duration": 0,
            "status": "in-progress",
            "call_type": "inbound",
            "transcript": "",
            "conversation_id": conversation_id
        }
        uow.calls.create_call(call)

    await send_call_notification(call)
    broadcaster.publish("new_call", call)
    return call


async def handle_call_ended(data: dict, broadcaster):
    conversation_id = data.get("conversation_id")
    duration = data.get("duration_seconds") or 0

    with UnitOfWork() as uow:
        uow.calls.mark_ended(conversation_id, duration)

    broadcaster.publish("call_ended", {"conversation_id": conversation_id, "duration": duration})


async def handle_transcript(data: dict, broadcaster):
    conversation_id = data.get("conversation_id")
    transcript = data.get("transcript") or ""

    with UnitOfWork() as uow:
        uow.calls.append_transcript(conversation_id, transcript + " ")

    broadcaster.publish("transcript_update", {"conversation_id": conversation_id, "transcript": transcript})


HANDLERS = {
    "call_started": handle_call_started,
    "call_ended": handle_call_ended,
    "transcript": handle_transcript,
}


@router.post("/webhook")
async def elevenlabs_webhook(request: Request, broadcaster=Depends(get_broadcaster)):

    try:
        data = await request.json()
    except ValueError as e:
        logger.error("webhook_payload_invalid", error=str(e))
        return PlainTextResponse("Error processing webhook", status_code=500)

    event = data.get("event") if isinstance(data, dict) else None
    handler = HANDLERS.get(event)

    if handler is None:
        logger.info("webhook_event_unhandled", event_name=event)
        return PlainTextResponse("Webhook processed successfully")

    try:
        await handler(data, broadcaster)
        logger.info("webhook_event_processed", event_name=event, conversation_id=data.get("conversation_id"))
    except Exception as e:
        logger.exception("webhook_event_error", event_name=event, error=str(e))

    return PlainTextResponse("Webhook processed successfully")
