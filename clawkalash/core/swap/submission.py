"""Submission of signed Permit2 authorizations to the settlement service."""

import logging
from typing import Any, Dict, Optional

from ...config import settings
from ...providers.bungee import BungeeProvider
from ..recovery import SubmissionError, with_retry

logger = logging.getLogger(__name__)


def _remote_message(data: Dict[str, Any]) -> str:
    error = data.get("error")
    if isinstance(error, dict) and error.get("message"):
        return str(error["message"])
    if isinstance(error, str) and error:
        return error
    if data.get("message"):
        return str(data["message"])
    return str(data)


class SubmissionClient:
    """Posts ``{requestType, request, userSignature, quoteId}`` and returns the request hash.

    Used only by the signed-transfer flow; native transfers take their
    settlement id straight from the quote.
    """

    def __init__(
        self,
        provider: BungeeProvider,
        attempts: Optional[int] = None,
        delay_seconds: Optional[float] = None,
    ):
        self.provider = provider
        self.attempts = attempts or settings.retry_attempts
        self.delay_seconds = settings.retry_delay_seconds if delay_seconds is None else delay_seconds

    async def submit(
        self,
        request_type: str,
        witness: Dict[str, Any],
        signature: str,
        quote_id: str,
    ) -> str:
        payload = {
            "requestType": request_type,
            "request": witness,
            "userSignature": signature,
            "quoteId": quote_id,
        }

        data = await with_retry(
            lambda: self.provider.submit(payload),
            attempts=self.attempts,
            delay_seconds=self.delay_seconds,
            operation_name="bungee submit",
        )

        if not data.get("success"):
            raise SubmissionError(_remote_message(data))

        request_hash = (data.get("result") or {}).get("requestHash")
        if not request_hash:
            raise SubmissionError(f"no requestHash in response: {data}")

        logger.info(f"Request hash: {request_hash}")
        return str(request_hash)
