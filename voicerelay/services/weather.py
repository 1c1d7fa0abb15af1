"""OpenWeatherMap current-conditions adapter."""

from __future__ import annotations

import asyncio
from typing import Any, Dict, Optional

import aiohttp

from ..config import WeatherProviderConfig
from ..logging_config import get_logger
from .base import HttpComponent, SessionFactory, USER_AGENT, WeatherReport, WeatherService

logger = get_logger(__name__)


class OpenWeatherAdapter(HttpComponent, WeatherService):
    name = "weather"

    def __init__(self, provider_config: WeatherProviderConfig, *, session_factory: Optional[SessionFactory] = None):
        super().__init__(session_factory=session_factory)
        self._config = provider_config

    async def current(self, city: str) -> Optional[WeatherReport]:
        if not self._config.api_key:
            raise self._failure("API key not configured")
        await self._ensure_session()

        params = {
            "q": city,
            "units": self._config.units,
            "appid": self._config.api_key,
        }
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
            logger.warning("Weather lookup error", city=city, error=str(exc) or type(exc).__name__)
            raise self._failure(str(exc) or type(exc).__name__) from exc

        if not isinstance(data, dict):
            raise self._failure("unexpected response payload", status=status)

        # OpenWeatherMap reports its own code in the body, as int or string
        code = str(data.get("cod", status))
        if code == "404":
            logger.info("Weather lookup found no such city", city=city)
            return None
        if code != "200":
            logger.error("Weather lookup failed", city=city, status=status, code=code, message=data.get("message"))
            raise self._failure(f"code {code}", status=status)

        report = self._parse(city, data)
        logger.info(
            "Weather lookup completed",
            city=city,
            description=report.description,
            temperature_c=report.temperature_c,
        )
        return report

    def _parse(self, city: str, data: Dict[str, Any]) -> WeatherReport:
        try:
            description = data["weather"][0]["description"]
            temperature = float(data["main"]["temp"])
        except (KeyError, IndexError, TypeError, ValueError) as exc:
            raise self._failure(f"unexpected response payload: {exc}") from exc
        return WeatherReport(city=city, description=str(description), temperature_c=temperature)
