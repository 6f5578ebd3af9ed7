from __future__ import annotations

import pytest
from fastapi import HTTPException

from skyiq.services import prompt_service
from skyiq.services.elevenlabs_service import ElevenLabsError
from skyiq.services.prompt_service import DEFAULT_FIRST_MESSAGE, extract_first_message


def test_explicit_greeting_line_is_used_verbatim() -> None:
    prompt = "You are Sarah, a receptionist.\nHello! Thanks for calling Acme Plumbing.\nBe brief."
    assert extract_first_message(prompt) == "Hello! Thanks for calling Acme Plumbing."


def test_quoted_bullet_greeting_is_unwrapped() -> None:
    prompt = "Opening line:\n\"Good afternoon, this is the front desk.\""
    assert extract_first_message(prompt) == "Good afternoon, this is the front desk."


def test_introduction_gets_hello_prefix() -> None:
    assert extract_first_message("This is Max from Acme support.") == "Hello! This is Max from Acme support."


def test_name_and_company_build_a_greeting() -> None:
    prompt = "You are Emma and you work for Bright Dental, a family clinic."
    assert extract_first_message(prompt) == "Hello! This is Emma from Bright Dental. How can I help you today?"


def test_name_only_greeting() -> None:
    assert extract_first_message("You are Leo.") == "Hello! This is Leo. How can I help you today?"


def test_fallback_greeting() -> None:
    assert extract_first_message("Answer questions about opening hours.") == DEFAULT_FIRST_MESSAGE


@pytest.mark.asyncio
async def test_update_prompt_survives_agent_failure(db_path, broadcaster, monkeypatch) -> None:
    pushed: list[tuple[str, str]] = []

    def failing_update(system_prompt: str, first_message: str) -> dict:
        pushed.append((system_prompt, first_message))
        raise ElevenLabsError("ElevenLabs configuration missing")

    monkeypatch.setattr(prompt_service, "update_agent_prompt", failing_update)

    result = await prompt_service.update_prompt("You are Leo.", broadcaster)

    assert result["success"] is True
    assert result["extracted_first_message"] == "Hello! This is Leo. How can I help you today?"
    assert pushed == [("You are Leo.", "Hello! This is Leo. How can I help you today?")]

    stored = (await prompt_service.get_prompt())["prompt"]
    assert stored["system_prompt"] == "You are Leo."
    assert broadcaster.named("prompt_updated")[0]["first_message"] == stored["first_message"]


@pytest.mark.asyncio
async def test_update_prompt_replaces_previous(db_path, broadcaster, monkeypatch) -> None:
    monkeypatch.setattr(prompt_service, "update_agent_prompt", lambda prompt, greeting: {})

    await prompt_service.update_prompt("You are Leo.", broadcaster)
    await prompt_service.update_prompt("You are Mia.", broadcaster)

    stored = (await prompt_service.get_prompt())["prompt"]
    assert stored["system_prompt"] == "You are Mia."


@pytest.mark.asyncio
async def test_missing_prompt_errors(db_path, broadcaster) -> None:
    with pytest.raises(HTTPException) as exc:
        await prompt_service.get_prompt()
    assert exc.value.status_code == 404

    with pytest.raises(HTTPException) as exc:
        await prompt_service.update_prompt("", broadcaster)
    assert exc.value.status_code == 400
