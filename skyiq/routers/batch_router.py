from fastapi import APIRouter, Depends, File, Form, UploadFile, HTTPException
from skyiq.models.schemas import BatchCreate, BatchCreated, BatchList
from skyiq.services import batch_service
from skyiq.dependencies import get_dispatcher

router = APIRouter(prefix="/api/batches", tags=["Batches"])


@router.post("", response_model=BatchCreated)
async def create_batch(batch: BatchCreate, dispatcher=Depends(get_dispatcher)):
    return await batch_service.create_batch(batch, dispatcher)


@router.post("/upload", response_model=BatchCreated)
async def upload_batch(
    name: str = Form(...),
    file: UploadFile = File(...),
    dispatcher=Depends(get_dispatcher)
):
    raw = await file.read()
    try:
        content = raw.decode("utf-8-sig")
    except UnicodeDecodeError:
        raise HTTPException(status_code=400, detail="File must be UTF-8 encoded text")
    return await batch_service.create_batch_from_csv(name, content, dispatcher)


@router.get("", response_model=BatchList)
async def list_batches():
    return await batch_service.list_batches()


@router.get("/queue")
async def get_queue(dispatcher=Depends(get_dispatcher)):
    return dispatcher.status()


@router.get("/{batch_id}")
async def get_batch(batch_id: str):
    return await batch_service.get_batch(batch_id)


@router.post("/{batch_id}/cancel")
async def cancel_batch(batch_id: str, dispatcher=Depends(get_dispatcher)):
    return await batch_service.cancel_batch(batch_id, dispatcher)
