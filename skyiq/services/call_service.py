import asyncio
import uuid
from fastapi import HTTPException

from skyiq.db.unit_of_work import UnitOfWork
from skyiq.logging_config import get_logger
from skyiq.services.elevenlabs_service import initiate_outbound_call
from skyiq.utils.helper import utcnow_iso
from skyiq.utils.phone import PHONE_FORMAT_RE, PhoneNumberError, normalize_phone_number, strip_formatting

logger = get_logger(__name__)


def new_outbound_call(phone_number: str, conversation_id) -> dict:
    """Call record for a freshly initiated outbound call."""
    return {
        "id": str(uuid.uuid4()),
        "timestamp": utcnow_iso(),
        "caller_number": phone_number,
        "called_number": "Agent",
        "duration": 0,
        "status": "initiated",
        "call_type": "outbound",
        "transcript": "",
        "conversation_id": conversation_id
    }


async def list_calls():
    with UnitOfWork() as uow:
        calls = uow.calls.list_recent(50)
    return {"calls": calls}


async def get_call(call_id: str):
    with UnitOfWork() as uow:
        call = uow.calls.get_by_id(call_id)

    if not call:
        raise HTTPException(status_code=404, detail="Call not found")

    return {"call": call}


async def initiate_call(phone_number, broadcaster):
    """Place a single manual outbound call."""
    if not phone_number:
        raise HTTPException(status_code=400, detail="Phone number is required")

    if not PHONE_FORMAT_RE.match(strip_formatting(phone_number)):
        raise HTTPException(status_code=400, detail="Invalid phone number format")

    try:
        formatted_phone = normalize_phone_number(phone_number)
    except PhoneNumberError as e:
        raise HTTPException(status_code=400, detail=str(e))

    try:
        result = await asyncio.to_thread(initiate_outbound_call, formatted_phone)
    except Exception as e:
        logger.error("manual_call_failed", phone_number=formatted_phone, error=str(e))
        raise HTTPException(
            status_code=500,
            detail={"error": "Failed to initiate call", "details": str(e)}
        )

    call = new_outbound_call(formatted_phone, result.get("conversation_id"))

    with UnitOfWork() as uow:
        uow.calls.create_call(call)

    broadcaster.publish("new_call", call)
    logger.info("manual_call_initiated", call_id=call["id"], conversation_id=call["conversation_id"])

    return {
        "success": True,
        "message": "Call initiated successfully",
        "call_id": call["id"],
        "conversation_id": call["conversation_id"]
    }
