"""
Push notifications: deliver non-blocking A2A results to the caller's webhook.
"""

import logging
from typing import Any

import httpx

from pottery_agent.core.config import WEBHOOK_TIMEOUT

logger = logging.getLogger(__name__)


def send_push_notification(url: str, token: str | None, payload: dict[str, Any]) -> int:
    """
    POST the JSON-RPC payload to the webhook. Returns the HTTP status code.
    Raises httpx.HTTPError on transport failures and non-2xx responses.
    """
    headers = {"Content-Type": "application/json"}
    if token:
        headers["Authorization"] = f"Bearer {token}"
    logger.info("[push:send] IN  url=%s has_token=%s", url, bool(token))
    with httpx.Client(timeout=WEBHOOK_TIMEOUT) as client:
        response = client.post(url, json=payload, headers=headers)
    response.raise_for_status()
    logger.info("[push:send] OUT status=%d", response.status_code)
    return response.status_code
