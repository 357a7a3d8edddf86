"""
Task endpoints.

Called by the task queue and the cron scheduler, never by clients. Each
endpoint checks the header the scheduler sets and otherwise pretends not
to exist.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Header

from api.dependencies import get_digest_service, get_email_worker
from shared.config import get_settings
from shared.models import MessageResponse
from modules.digest.service import DigestService
from modules.email_queue.models import CRON_HEADER, QUEUE_HEADER, EmailPayload

from .exceptions import TaskSourceError
from .service import EmailWorker

router = APIRouter()


@router.post("/emails", response_model=MessageResponse)
async def send_emails(
    payload: EmailPayload,
    queue_name: Optional[str] = Header(default=None, alias=QUEUE_HEADER),
    worker: EmailWorker = Depends(get_email_worker),
) -> MessageResponse:
    if queue_name != get_settings().task_queue_name:
        raise TaskSourceError(QUEUE_HEADER)
    await worker.handle(payload)
    return MessageResponse(message="pass")


@router.api_route("/digest", methods=["GET", "POST"], response_model=MessageResponse)
async def send_digests(
    cron: Optional[str] = Header(default=None, alias=CRON_HEADER),
    digest: DigestService = Depends(get_digest_service),
) -> MessageResponse:
    if cron != "true":
        raise TaskSourceError(CRON_HEADER)
    await digest.run()
    return MessageResponse(message="pass")
