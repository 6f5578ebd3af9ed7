from enum import Enum
from pydantic import BaseModel
from typing import Optional, List


class BatchStatus(str, Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    PARTIALLY_COMPLETED = "partially_completed"
    FAILED = "failed"
    CANCELLED = "cancelled"


class Contact(BaseModel):
    phone_number: str
    first_name: Optional[str] = ''
    last_name: Optional[str] = ''
    company: Optional[str] = ''


class BatchCreate(BaseModel):
    name: str
    calls: List[Contact]


class BatchCreated(BaseModel):
    success: bool = True
    message: str = "Batch created successfully"
    batch_id: str
    total_calls: int
    queue_position: int


class BatchResponse(BaseModel):
    id: str
    name: str
    status: str
    created_at: str
    total_calls: int
    completed_calls: int
    successful_calls: int
    failed_calls: int


class BatchList(BaseModel):
    batches: List[BatchResponse]


class InitiateCallRequest(BaseModel):
    phone_number: Optional[str] = None


class PromptUpdate(BaseModel):
    system_prompt: Optional[str] = None


class WebhookSimulation(BaseModel):
    event: Optional[str] = None
    conversation_id: Optional[str] = None
    from_number: Optional[str] = None
    to_number: Optional[str] = None
    duration_seconds: Optional[int] = None
    transcript: Optional[str] = None


class EmailCheckRequest(BaseModel):
    to_email: Optional[str] = None
