"""
Chat relay: forwards a user's message to the automation webhook and flattens the reply to text.
The webhook is opaque; it may answer with [{"output": ...}], {"output": ...}, a bare string, or anything else JSON.
"""

import json
import logging
from typing import Any

import requests

from .errors import UpstreamError, ValidationError

logger = logging.getLogger(__name__)


def format_reply(data: Any) -> str:
    if isinstance(data, list) and data and isinstance(data[0], dict) and data[0].get("output"):
        return str(data[0]["output"])
    if isinstance(data, dict) and data.get("output"):
        return str(data["output"])
    if isinstance(data, str):
        return data
    return json.dumps(data)


class ChatRelay:
    def __init__(self, webhook_url: str, timeout: float = 30.0, session: requests.Session | None = None):
        self.webhook_url = webhook_url
        self.timeout = timeout
        self.session = session or requests.Session()

    def send(self, message: str | None, user_id: str) -> str:
        if not message or not message.strip():
            raise ValidationError("Message must not be empty")
        try:
            response = self.session.post(
                self.webhook_url,
                json={"message": message, "userId": user_id},
                timeout=self.timeout,
            )
            response.raise_for_status()
        except requests.RequestException as e:
            logger.warning("Chat webhook call failed for user %s: %s", user_id, e)
            raise UpstreamError()
        try:
            data = response.json()
        except ValueError:
            # Plain-text replies are fine; only an empty body is an error
            data = response.text
            if not data:
                logger.warning("Chat webhook returned an empty body for user %s", user_id)
                raise UpstreamError()
        return format_reply(data)
