import asyncio
import sqlite3
import time
from fastapi import APIRouter, Depends, HTTPException
from skyiq.config import settings
from skyiq.db.unit_of_work import UnitOfWork
from skyiq.dependencies import get_broadcaster
from skyiq.logging_config import get_logger
from skyiq.models.schemas import EmailCheckRequest, WebhookSimulation
from skyiq.services.elevenlabs_service import list_agents
from skyiq.services.notification_service import send_call_notification
from skyiq.utils.helper import utcnow_iso

logger = get_logger(__name__)

router = APIRouter(prefix="/api/tests", tags=["Diagnostics"])


@router.post("/webhook")
async def simulate_webhook(body: WebhookSimulation, broadcaster=Depends(get_broadcaster)):
    """Apply a fake call_ended + transcript to a conversation"""
    data = {
        "event": body.event or "call_ended",
        "conversation_id": body.conversation_id or f"test-conv-{int(time.time() * 1000)}",
        "from_number": body.from_number or "+15551234567",
        "to_number": body.to_number or "+15557654321",
        "duration_seconds": body.duration_seconds or 120,
        "transcript": body.transcript or "This is a test transcript from a simulated call."
    }

    with UnitOfWork() as uow:
        uow.calls.mark_ended(data["conversation_id"], data["duration_seconds"])
        uow.calls.append_transcript(data["conversation_id"], data["transcript"] + " ")

    broadcaster.publish("test_webhook", data)
    logger.info("webhook_simulated", conversation_id=data["conversation_id"])

    return {"success": True, "message": "Webhook test completed", "data": data}


@router.post("/email")
async def send_test_email(body: EmailCheckRequest):
    if not settings.email_configured:
        return {"success": False, "message": "Email notifications are disabled"}

    call = {
        "id": f"test-{int(time.time() * 1000)}",
        "timestamp": utcnow_iso(),
        "caller_number": "+15551234567",
        "called_number": "Agent",
        "duration": 145,
        "status": "completed",
        "call_type": "inbound",
    }

    if not await send_call_notification(call, to_email=body.to_email):
        raise HTTPException(status_code=500, detail="Email test failed")

    return {"success": True, "message": "Test email sent successfully"}


@router.get("/elevenlabs")
async def check_elevenlabs():
    if not settings.ELEVENLABS_API_KEY:
        raise HTTPException(status_code=400, detail="ElevenLabs API key not configured")

    try:
        agents = await asyncio.to_thread(list_agents)
    except Exception as e:
        logger.error("elevenlabs_check_failed", error=str(e))
        raise HTTPException(
            status_code=500,
            detail={"error": "ElevenLabs API test failed", "details": str(e)}
        )

    return {
        "success": True,
        "message": "ElevenLabs API connectivity test passed",
        "agents_count": len(agents.get("agents", [])) if isinstance(agents, dict) else "Unknown",
        "configured_agent": settings.ELEVENLABS_AGENT_ID
    }


@router.get("/database")
async def check_database():
    try:
        with UnitOfWork() as uow:
            stats = {
                "calls": uow.calls.count(),
                "batches": uow.batches.count(),
                "prompts": uow.prompts.count(),
            }
    except sqlite3.Error as e:
        logger.error("database_check_failed", error=str(e))
        raise HTTPException(status_code=500, detail="Database test failed")

    return {"success": True, "message": "Database connectivity test passed", "stats": stats}


@router.get("/socket")
async def check_socket(broadcaster=Depends(get_broadcaster)):
    broadcaster.publish("test_event", {"message": "Test event from API", "timestamp": utcnow_iso()})

    return {
        "success": True,
        "message": "Test event emitted to all connected viewers",
        "viewers": broadcaster.connection_count
    }
