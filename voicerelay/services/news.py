"""NewsData.io latest-headlines adapter."""

from __future__ import annotations

import asyncio
from typing import List, Optional

import aiohttp

from ..config import NewsProviderConfig
from ..logging_config import get_logger
from .base import HttpComponent, NewsService, SessionFactory, USER_AGENT

logger = get_logger(__name__)


class NewsDataAdapter(HttpComponent, NewsService):
    name = "news"

    def __init__(self, provider_config: NewsProviderConfig, *, session_factory: Optional[SessionFactory] = None):
        super().__init__(session_factory=session_factory)
        self._config = provider_config

    async def headlines(self, topic: str = "", limit: int = 5) -> List[str]:
        if not self._config.api_key:
            raise self._failure("API key not configured")
        await self._ensure_session()

        params = {
            "country": self._config.country,
            "language": self._config.language,
            "apikey": self._config.api_key,
        }
        if topic:
            params["q"] = topic

        try:
            async with self._session.get(
                self._config.base_url,
                params=params,
                headers={"User-Agent": USER_AGENT},
                timeout=aiohttp.ClientTimeout(total=self._config.timeout_sec),
            ) as resp:
                status = resp.status
                try:
                    data = await resp.json(content_type=None)
                except ValueError as exc:
                    raise self._failure(f"invalid JSON (status {status})", status=status) from exc
        except (aiohttp.ClientError, asyncio.TimeoutError) as exc:
            logger.warning("News lookup error", topic=topic or None, error=str(exc) or type(exc).__name__)
            raise self._failure(str(exc) or type(exc).__name__) from exc

        if status >= 400 or not isinstance(data, dict) or data.get("status") != "success":
            message = data.get("results") if isinstance(data, dict) else None
            logger.error("News lookup failed", topic=topic or None, status=status, detail=str(message)[:200])
            raise self._failure(f"status {status}", status=status)

        results = data.get("results") or []
        titles = []
        for article in results:
            title = article.get("title") if isinstance(article, dict) else None
            if isinstance(title, str) and title.strip():
                titles.append(title.strip())
            if len(titles) >= limit:
                break

        logger.info("News lookup completed", topic=topic or None, headlines=len(titles))
        return titles
