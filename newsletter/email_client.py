"""HTTP client for the transactional email provider."""

import logging

import httpx
from pydantic import SecretStr

from newsletter.domain import Email

logger = logging.getLogger(__name__)


class EmailDispatchError(Exception):
    """The provider rejected the message or could not be reached in time."""


class EmailClient:
    """
    Sends one email per call through a Postmark-compatible ``/email`` endpoint.

    Stateless apart from the pooled HTTP connection; there is no internal
    retry, a failed send is reported to the caller.
    """

    def __init__(
        self,
        base_url: str,
        sender: Email,
        authorization_token: SecretStr,
        timeout: float,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.sender = sender
        self._authorization_token = authorization_token
        self._http_client = httpx.AsyncClient(
            base_url=base_url,
            timeout=timeout,
            transport=transport,
        )

    async def send_email(
        self,
        recipient: Email,
        subject: str,
        html_body: str,
        text_body: str,
    ) -> None:
        payload = {
            "From": self.sender.value,
            "To": recipient.value,
            "Subject": subject,
            "HtmlBody": html_body,
            "TextBody": text_body,
        }
        headers = {
            "X-Postmark-Server-Token": self._authorization_token.get_secret_value(),
            "Content-Type": "application/json",
            "Accept": "application/json",
        }

        try:
            response = await self._http_client.post("/email", json=payload, headers=headers)
            response.raise_for_status()
        except httpx.HTTPError as exc:
            raise EmailDispatchError(f"Failed to send email to {recipient}") from exc

        logger.debug("Email %r sent to %s", subject, recipient)

    async def aclose(self) -> None:
        await self._http_client.aclose()
