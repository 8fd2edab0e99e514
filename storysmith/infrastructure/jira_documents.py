"""
Jira-backed document store for epic descriptions.
Uses httpx (async HTTP client) and tenacity (retry library).
"""

from typing import Any, Optional

import httpx
from loguru import logger
from tenacity import (
    AsyncRetrying,
    RetryCallState,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from storysmith.config.settings import settings
from storysmith.core.errors import DocumentAccessError, DocumentNotFoundError, InvalidDocumentError
from storysmith.models.adf import Document, validate_adf

ISSUE_PATH = "/rest/api/3/issue/{key}"


def _log_retry(retry_state: RetryCallState) -> None:
    exc = retry_state.outcome.exception() if retry_state.outcome else None
    logger.warning(
        f"Jira request failed (attempt {retry_state.attempt_number}), retrying: {exc!r}"
    )


class JiraDocumentStore:
    """
    Reads and writes the description field of Jira issues as ADF.
    Features:
    - Automatic retry with exponential backoff on timeouts and network errors
    - 404/401/403 mapped to DocumentNotFoundError / DocumentAccessError
    - Envelope validation before every write
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        email: Optional[str] = None,
        api_token: Optional[str] = None,
        timeout: Optional[float] = None,
        max_retries: Optional[int] = None,
        retry_wait: Any = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Initialize Jira document store.

        Args:
            base_url: Jira base URL (defaults to settings)
            email: Jira user email (defaults to settings)
            api_token: Jira API token (defaults to settings)
            timeout: Request timeout in seconds (defaults to settings)
            max_retries: Attempts for timeouts and network errors (defaults to settings)
            retry_wait: tenacity wait strategy (defaults to exponential backoff)
            transport: Optional httpx transport (used by tests)
        """
        self.base_url = (base_url or settings.atlassian_base_url).rstrip("/")
        self.email = email or settings.atlassian_email
        self.api_token = api_token if api_token is not None else settings.atlassian_api_token
        self.timeout = timeout or settings.http_timeout
        self.max_retries = max_retries or settings.http_max_retries
        self.retry_wait = retry_wait or wait_exponential(multiplier=1, min=1, max=10)

        self.client = httpx.AsyncClient(
            base_url=self.base_url,
            timeout=self.timeout,
            auth=(self.email, self.api_token),
            headers={"Accept": "application/json", "User-Agent": "StorySmith/0.4"},
            transport=transport,
        )

    def browse_url(self, issue_key: str) -> str:
        """Human-facing URL of an issue, used as the completion link."""
        return f"{self.base_url}/browse/{issue_key}"

    async def fetch_document(self, document_key: str) -> Document:
        """
        Fetch an issue's description as a Document.

        Args:
            document_key: Issue key (e.g., 'PROJ-123')

        Returns:
            Document (empty if the description is unset)
        """
        response = await self._request(
            "GET", ISSUE_PATH.format(key=document_key), params={"fields": "description"}
        )
        self._raise_for_status(document_key, response)

        description = (response.json().get("fields") or {}).get("description")
        document = Document.from_adf(description)
        logger.info(f"Fetched {document_key} description ({len(document.content)} top-level nodes)")
        return document

    async def persist_document(self, document_key: str, document: Document) -> None:
        """
        Replace an issue's description.

        Raises:
            InvalidDocumentError: If the document envelope is invalid
        """
        if not validate_adf(document):
            raise InvalidDocumentError(f"Refusing to write invalid ADF to {document_key}")

        response = await self._request(
            "PUT",
            ISSUE_PATH.format(key=document_key),
            json={"fields": {"description": document.to_dict()}},
        )
        self._raise_for_status(document_key, response)
        logger.info(f"Updated {document_key} description")

    async def _request(self, method: str, url: str, **kwargs) -> httpx.Response:
        logger.debug(f"{method} {url}")
        async for attempt in AsyncRetrying(
            stop=stop_after_attempt(self.max_retries),
            wait=self.retry_wait,
            retry=retry_if_exception_type((httpx.TimeoutException, httpx.NetworkError)),
            before_sleep=_log_retry,
            reraise=True,
        ):
            with attempt:
                return await self.client.request(method, url, **kwargs)
        raise AssertionError("unreachable")  # pragma: no cover

    def _raise_for_status(self, document_key: str, response: httpx.Response) -> None:
        if response.status_code == 404:
            raise DocumentNotFoundError(document_key)
        if response.status_code in (401, 403):
            raise DocumentAccessError(document_key, response.status_code)
        try:
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            logger.warning(f"HTTP {e.response.status_code} error for {document_key}: {e}")
            raise

    async def close(self):
        """Close the HTTP client and release resources."""
        await self.client.aclose()

    async def __aenter__(self):
        """Async context manager entry."""
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Async context manager exit - close client."""
        await self.close()
