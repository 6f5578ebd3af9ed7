import asyncio
import re
from fastapi import HTTPException

from skyiq.db.unit_of_work import UnitOfWork
from skyiq.logging_config import get_logger
from skyiq.services.elevenlabs_service import update_agent_prompt
from skyiq.utils.helper import utcnow_iso

logger = get_logger(__name__)

DEFAULT_FIRST_MESSAGE = "Hello! How can I help you today?"

_GREETING_RE = re.compile(r"^(hello|hi|good\s+(morning|afternoon|evening)|thank\s+you\s+for\s+calling)", re.IGNORECASE)
_INTRODUCTION_RE = re.compile(r"^this\s+is\s+\w+", re.IGNORECASE)
_NAME_COMPANY_RE = re.compile(r"you\s+are\s+(\w+).*?(?:from|at|for|work\s+for)\s+([^.!?\n]+)", re.IGNORECASE)
_NAME_RE = re.compile(r"you\s+are\s+(\w+)", re.IGNORECASE)
_LEADING_MARK_RE = re.compile(r"^[-*•\"']\s*")
_TRAILING_QUOTE_RE = re.compile(r"[\"']$")


def extract_first_message(system_prompt: str) -> str:
    """Derive the agent's opening line from a free-form system prompt."""
    lines = [line.strip() for line in system_prompt.split("\n") if line.strip()]

    for line in lines:
        cleaned = _TRAILING_QUOTE_RE.sub("", _LEADING_MARK_RE.sub("", line)).strip()

        if _GREETING_RE.match(cleaned) and len(cleaned) < 200:
            return cleaned

        if _INTRODUCTION_RE.match(cleaned) and len(cleaned) < 150:
            return cleaned if cleaned.startswith("Hello") else f"Hello! {cleaned}"

    match = _NAME_COMPANY_RE.search(system_prompt)
    if match:
        name = match.group(1)
        company = re.sub(r"[,.].*", "", match.group(2)).strip()
        return f"Hello! This is {name} from {company}. How can I help you today?"

    match = _NAME_RE.search(system_prompt)
    if match:
        return f"Hello! This is {match.group(1)}. How can I help you today?"

    return DEFAULT_FIRST_MESSAGE


async def get_prompt():
    with UnitOfWork() as uow:
        prompt = uow.prompts.get_latest()

    if not prompt:
        raise HTTPException(status_code=404, detail="No prompts found")

    return {"prompt": prompt}


async def update_prompt(system_prompt, broadcaster):
    if not system_prompt:
        raise HTTPException(status_code=400, detail="system_prompt is required")

    first_message = extract_first_message(system_prompt)

    with UnitOfWork() as uow:
        prompt = uow.prompts.replace(system_prompt, first_message, utcnow_iso())

    # The stored prompt wins even if the agent could not be updated
    try:
        await asyncio.to_thread(update_agent_prompt, system_prompt, first_message)
        logger.info("agent_prompt_updated", first_message=first_message)
    except Exception as e:
        logger.error("agent_prompt_update_failed", error=str(e))

    broadcaster.publish("prompt_updated", prompt)

    return {
        "success": True,
        "message": "Prompt updated successfully",
        "prompt": prompt,
        "extracted_first_message": first_message
    }
