"""
Inbound email webhook.
"""

from fastapi import APIRouter, Depends, Form
from fastapi.responses import PlainTextResponse

from api.dependencies import get_inbound_service
from shared.log import alarm

from .exceptions import InboundRejectedError
from .service import InboundService

router = APIRouter()


@router.post("", response_class=PlainTextResponse)
async def inbound(
    envelope: str = Form(default=""),
    text: str = Form(default=""),
    html: str = Form(default=""),
    service: InboundService = Depends(get_inbound_service),
) -> PlainTextResponse:
    """
    Receive an email from the mail provider.

    Rejected emails still answer 200 so the provider does not retry them.
    """
    try:
        message = await service.ingest(envelope, text, html)
    except InboundRejectedError as e:
        alarm(e.with_op("inbound"))
        return PlainTextResponse("", status_code=200)
    return PlainTextResponse(f"PASS: message {message.id} created")
