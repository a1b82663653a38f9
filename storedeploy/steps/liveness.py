"""Liveness checker.

Checks whether a domain (or deployment URL) answers an HTTP HEAD request
with a 2xx status, retrying a bounded number of times.
"""

import asyncio

import httpx

from storedeploy import __version__
from storedeploy.config import settings
from storedeploy.utils.logging import get_logger

USER_AGENT = f"Store-Deployment-Verifier/{__version__}"


def target_url(target: str) -> str:
    """Turn a bare domain into the URL that is checked."""
    if target.startswith(("http://", "https://")):
        return target
    return f"https://{target}/"


class LivenessChecker:
    """Bounded-retry existence check against a domain.

    ``check`` never raises: any failure, including an exhausted retry
    budget, is reported as ``False``.
    """

    def __init__(
        self,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.timeout = settings.liveness_timeout if timeout is None else timeout
        self._transport = transport
        self.logger = get_logger("liveness")

    def _client(self, timeout: float) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            timeout=timeout,
            follow_redirects=True,
            transport=self._transport,
            headers={
                "User-Agent": USER_AGENT,
                "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
            },
        )

    async def check(
        self,
        domain: str,
        max_attempts: int | None = None,
        delay: float | None = None,
        timeout: float | None = None,
    ) -> bool:
        """Return True as soon as the target answers with a 2xx status."""
        attempts = max_attempts if max_attempts is not None else settings.liveness_attempts
        delay = settings.liveness_delay if delay is None else delay
        url = target_url(domain)

        self.logger.info("liveness.started", url=url, max_attempts=attempts)

        async with self._client(self.timeout if timeout is None else timeout) as client:
            for attempt in range(1, attempts + 1):
                if await self._attempt(client, url, attempt, attempts):
                    return True

                if attempt < attempts and delay > 0:
                    await asyncio.sleep(delay)

        self.logger.warning(
            "liveness.not_live",
            url=url,
            attempts=attempts,
            hint="domain may still be propagating",
        )
        return False

    async def _attempt(
        self,
        client: httpx.AsyncClient,
        url: str,
        attempt: int,
        attempts: int,
    ) -> bool:
        try:
            response = await client.head(url)
        except httpx.TimeoutException as e:
            self.logger.info(
                "liveness.timeout",
                url=url,
                attempt=attempt,
                of=attempts,
                error=str(e) or type(e).__name__,
            )
            return False
        except httpx.HTTPError as e:
            # DNS and connection errors mean the domain has not propagated yet
            self.logger.info(
                "liveness.unreachable",
                url=url,
                attempt=attempt,
                of=attempts,
                error=str(e) or type(e).__name__,
            )
            return False
        except httpx.InvalidURL as e:
            self.logger.warning("liveness.invalid_url", url=url, error=str(e))
            return False

        if response.is_success:
            self.logger.info("liveness.live", url=url, status_code=response.status_code)
            return True

        self.logger.warning(
            "liveness.bad_status",
            url=url,
            attempt=attempt,
            of=attempts,
            status_code=response.status_code,
        )
        return False
