"""View counter client with a once-per-session increment policy.

The counter service only knows ``POST`` (increment) and ``GET`` (read).  A
:class:`ViewSession` remembers which pages this visitor has already counted,
so the first observation of a page increments and every later one only
reads.  The session marker stays on the client and is never sent.
"""

import logging
from typing import Optional, Set
from urllib.parse import quote

import httpx

from blogcore.config import settings

logger = logging.getLogger(__name__)


class ViewSession:
    """Pages counted during one browsing session."""

    def __init__(self) -> None:
        self._counted: Set[str] = set()

    def has_counted(self, page_id: str) -> bool:
        return page_id in self._counted

    def mark_counted(self, page_id: str) -> None:
        self._counted.add(page_id)


class ViewsClient:
    """Async client for ``/views/{page_id}``.

    Failures never propagate: :meth:`record_view` returns ``None`` so the
    caller can show an "unknown views" state instead of blocking the page.
    Cancelling the awaiting task abandons the request.
    """

    def __init__(
        self,
        base_url: str,
        session: Optional[ViewSession] = None,
        timeout: float = settings.client_timeout,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.session = session or ViewSession()
        self.timeout = timeout
        self._transport = transport

    async def record_view(self, page_id: str) -> Optional[int]:
        """Count *page_id* once per session and return its view count.

        Returns ``None`` when the counter could not be reached or answered
        with an error.
        """
        method = "GET" if self.session.has_counted(page_id) else "POST"
        path = f"/views/{quote(page_id, safe='')}"

        try:
            async with httpx.AsyncClient(
                base_url=self.base_url, timeout=self.timeout, transport=self._transport
            ) as client:
                resp = await client.request(method, path)
                resp.raise_for_status()
                views = int(resp.json()["views"])
        except httpx.TimeoutException:
            logger.warning("Timeout %s %s", method, path)
            return None
        except httpx.HTTPStatusError as exc:
            logger.error(
                "View counter returned HTTP %d for %s %s: %s",
                exc.response.status_code,
                method,
                path,
                exc.response.text,
            )
            return None
        except (httpx.HTTPError, ValueError, KeyError, TypeError) as exc:
            logger.error("Error calling view counter %s %s: %s", method, path, exc)
            return None

        if method == "POST":
            self.session.mark_counted(page_id)
        return views
