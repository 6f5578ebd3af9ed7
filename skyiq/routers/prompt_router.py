from fastapi import APIRouter, Depends
from skyiq.models.schemas import PromptUpdate
from skyiq.services import prompt_service
from skyiq.dependencies import get_broadcaster

router = APIRouter(prefix="/api/prompts", tags=["Prompts"])


@router.get("")
async def get_prompt():
    return await prompt_service.get_prompt()


@router.put("")
async def update_prompt(body: PromptUpdate, broadcaster=Depends(get_broadcaster)):
    return await prompt_service.update_prompt(body.system_prompt, broadcaster)
