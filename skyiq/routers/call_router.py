from fastapi import APIRouter, Depends
from skyiq.models.schemas import InitiateCallRequest
from skyiq.services import call_service
from skyiq.dependencies import get_broadcaster

router = APIRouter(prefix="/api/calls", tags=["Calls"])


@router.get("")
async def list_calls():
    return await call_service.list_calls()


@router.post("/initiate")
async def initiate_call(body: InitiateCallRequest, broadcaster=Depends(get_broadcaster)):
    return await call_service.initiate_call(body.phone_number, broadcaster)


@router.get("/{call_id}")
async def get_call(call_id: str):
    return await call_service.get_call(call_id)
