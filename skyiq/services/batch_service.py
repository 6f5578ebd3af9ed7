from skyiq.config import settings
from skyiq.models.schemas import BatchCreate, Contact
import uuid
from typing import List
from fastapi import HTTPException
from skyiq.db.unit_of_work import UnitOfWork
from skyiq.logging_config import get_logger
from skyiq.utils.csv_parser import parse_contacts_csv
from skyiq.utils.helper import utcnow_iso
from skyiq.utils.phone import PhoneNumberError, normalize_phone_number

logger = get_logger(__name__)


def _validate_contacts(name: str, contacts: List[Contact]):
    if not name or not name.strip() or not contacts:
        raise HTTPException(status_code=400, detail="Batch name and calls array are required")

    if len(contacts) > settings.MAX_BATCH_SIZE:
        raise HTTPException(
            status_code=400,
            detail=f"Batch size cannot exceed {settings.MAX_BATCH_SIZE} calls"
        )

    for contact in contacts:
        try:
            normalize_phone_number(contact.phone_number)
        except PhoneNumberError as e:
            raise HTTPException(
                status_code=400,
                detail=f"Invalid phone number '{contact.phone_number}': {e}"
            )


async def create_batch(batch: BatchCreate, dispatcher):
    """Persist a batch with all its calls in one transaction, then schedule it"""
    _validate_contacts(batch.name, batch.calls)

    batch_id = str(uuid.uuid4())
    created_at = utcnow_iso()

    with UnitOfWork() as uow:

        uow.batches.create_batch(
            batch_id,
            batch.name.strip(),
            created_at,
            len(batch.calls)
        )

        uow.batch_calls.insert_calls_bulk(
            batch_id,
            batch.calls,
            created_at
        )

    logger.info("batch_created", batch_id=batch_id, name=batch.name, total_calls=len(batch.calls))

    queue_position = await dispatcher.submit(batch_id)

    return {
        "success": True,
        "message": "Batch created successfully",
        "batch_id": batch_id,
        "total_calls": len(batch.calls),
        "queue_position": queue_position
    }


async def create_batch_from_csv(name: str, content: str, dispatcher):
    contacts = parse_contacts_csv(content)

    if not contacts:
        raise HTTPException(status_code=400, detail="No valid phone numbers found in file")

    return await create_batch(BatchCreate(name=name, calls=contacts), dispatcher)


async def list_batches():
    with UnitOfWork() as uow:
        batches = uow.batches.list_recent(20)
    return {"batches": batches}


async def get_batch(batch_id: str):

    with UnitOfWork() as uow:
        batch = uow.batches.get_by_id(batch_id)

        if not batch:
            raise HTTPException(status_code=404, detail="Batch not found")

        calls = uow.batch_calls.get_by_batch(batch_id)

    return {
        "batch": batch,
        "calls": calls
    }


async def cancel_batch(batch_id: str, dispatcher):

    with UnitOfWork() as uow:
        batch = uow.batches.get_by_id(batch_id)

    if not batch:
        raise HTTPException(status_code=404, detail="Batch not found")

    if not await dispatcher.cancel(batch_id):
        raise HTTPException(
            status_code=409,
            detail=f"Only pending batches can be cancelled (status: {batch['status']})"
        )

    return {"success": True, "message": "Batch cancelled successfully"}
