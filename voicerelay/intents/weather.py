"""Weather intent: current conditions for a named (or default) city."""

from __future__ import annotations

from ..errors import ServiceError
from ..logging_config import get_logger
from ..services import WeatherService
from .models import IntentHandler, IntentResult, TurnContext

logger = get_logger(__name__)

NOT_FOUND_EN = "Sorry, I couldn't find the weather for that city."
NOT_FOUND_TL = "Pasensya na, hindi ko mahanap ang panahon sa lungsod na iyon."
FAILURE_EN = "Sorry, I had trouble getting the weather data."
FAILURE_TL = "Pasensya na, nagkaproblema ako sa pagkuha ng panahon."


def format_temperature(value: float) -> str:
    return f"{value:g}"


class WeatherHandler(IntentHandler):
    def __init__(self, service: WeatherService, default_city: str = "Manila"):
        self.service = service
        self.default_city = default_city

    async def reply(self, intent: IntentResult, context: TurnContext) -> str:
        city = intent.city or self.default_city
        tagalog = intent.is_tagalog
        try:
            report = await self.service.current(city)
        except ServiceError as exc:
            logger.warning("Weather unavailable", city=city, error=str(exc), session_id=context.session_id)
            return FAILURE_TL if tagalog else FAILURE_EN

        if report is None:
            return NOT_FOUND_TL if tagalog else NOT_FOUND_EN

        temp = format_temperature(report.temperature_c)
        if tagalog:
            return f"Ang panahon sa {city} ay {temp}°C, {report.description}."
        return f"The weather in {city} is {report.description} with a temperature of {temp}°C."
