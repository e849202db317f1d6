"""
LINE Messaging Service
Thin push-message primitive over the LINE Messaging API
"""

import logging
from typing import Optional, Union

import httpx

from ..config import LINE_API_TIMEOUT, LINE_CHANNEL_ACCESS_TOKEN
from ..exceptions import LineAPIError

logger = logging.getLogger(__name__)

LINE_API_BASE = "https://api.line.me/v2/bot"
MAX_MESSAGES_PER_PUSH = 5


def text_message(text: str) -> dict:
    return {"type": "text", "text": text}


def normalize_messages(payload: Union[str, dict, list]) -> list[dict]:
    """Accept plain text, one message object, or a list of message objects"""
    if isinstance(payload, str):
        messages = [text_message(payload)]
    elif isinstance(payload, dict):
        messages = [payload]
    else:
        messages = [text_message(m) if isinstance(m, str) else m for m in payload]

    if not messages:
        raise ValueError("Message payload is empty")
    if len(messages) > MAX_MESSAGES_PER_PUSH:
        raise ValueError(f"LINE accepts at most {MAX_MESSAGES_PER_PUSH} messages per push")
    return messages


class LineMessagingClient:
    def __init__(
        self,
        channel_access_token: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        timeout: float = LINE_API_TIMEOUT,
    ):
        self.channel_access_token = channel_access_token or LINE_CHANNEL_ACCESS_TOKEN
        self.transport = transport
        self.timeout = timeout

    async def push_message(self, to: str, payload: Union[str, dict, list]) -> None:
        """
        Send messages to a single LINE user.

        Raises:
            LineAPIError: Missing token, transport failure, or non-2xx response
        """
        if not self.channel_access_token:
            raise LineAPIError("LINE channel access token not configured")

        messages = normalize_messages(payload)
        logger.info(f"📱 Pushing {len(messages)} LINE message(s) to {to}")

        try:
            async with httpx.AsyncClient(transport=self.transport, timeout=self.timeout) as client:
                response = await client.post(
                    f"{LINE_API_BASE}/message/push",
                    headers={"Authorization": f"Bearer {self.channel_access_token}"},
                    json={"to": to, "messages": messages},
                )
        except httpx.HTTPError as e:
            logger.error(f"❌ LINE API request failed for {to}: {e}")
            raise LineAPIError(f"LINE API request failed: {e}") from e

        if response.status_code != 200:
            try:
                error_message = response.json().get("message", "Unknown error")
            except ValueError:
                error_message = response.text[:200] or "Unknown error"
            logger.error(f"❌ LINE API error [{response.status_code}]: {error_message}")
            raise LineAPIError(error_message, status_code=response.status_code)

        logger.info(f"✅ LINE message sent to {to}")


line_client = LineMessagingClient()


def get_messaging_client() -> LineMessagingClient:
    return line_client
