"""
Email queue implementations.

HttpTaskQueue pushes each job to the worker endpoint with the queue header
the worker checks; the worker runs wherever the URL points (the API itself
or a dedicated worker process behind a task-queue service).
"""

import logging

import httpx

from .interfaces import IEmailQueue
from .models import EmailPayload, QUEUE_HEADER
from .exceptions import EnqueueError, InvalidEmailJobError

logger = logging.getLogger(__name__)

WORKER_PATH = "/tasks/emails"


def validate_payload(payload: EmailPayload) -> None:
    if not payload.is_valid():
        raise InvalidEmailJobError(payload.type.value, payload.action.value)


class HttpTaskQueue(IEmailQueue):
    """Queue that delivers jobs to the worker endpoint over HTTP."""

    def __init__(self, base_url: str, queue_name: str, timeout: float = 10.0):
        self._url = base_url.rstrip("/") + WORKER_PATH
        self._queue_name = queue_name
        self._timeout = timeout

    async def put_email(self, payload: EmailPayload) -> None:
        validate_payload(payload)
        try:
            async with httpx.AsyncClient(timeout=self._timeout) as client:
                response = await client.post(
                    self._url,
                    json=payload.model_dump(mode="json"),
                    headers={QUEUE_HEADER: self._queue_name},
                )
                response.raise_for_status()
        except httpx.HTTPError as e:
            raise EnqueueError(str(e))


class LoggingEmailQueue(IEmailQueue):
    """
    Queue for local development and tests.

    Validates and logs each job and keeps it in ``jobs``.
    """

    def __init__(self) -> None:
        self.jobs: list[EmailPayload] = []

    async def put_email(self, payload: EmailPayload) -> None:
        validate_payload(payload)
        logger.info(
            "queue.put_email(ids=[%s], type=%s, action=%s)",
            ", ".join(payload.ids),
            payload.type.value,
            payload.action.value,
        )
        self.jobs.append(payload)


def build_email_queue(base_url: str, queue_name: str) -> IEmailQueue:
    if not base_url:
        logger.warning("TASK_QUEUE_URL not set, using logging email queue")
        return LoggingEmailQueue()
    return HttpTaskQueue(base_url, queue_name)
