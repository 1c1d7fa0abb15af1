"""Local wall clock and the time/date intent."""

from __future__ import annotations

from datetime import datetime
from typing import Callable, Optional
from zoneinfo import ZoneInfo

from .models import IntentHandler, IntentResult, TurnContext


class LocalClock:
    """Current time in one configured timezone (Asia/Manila by default)."""

    def __init__(self, timezone: str = "Asia/Manila", now: Optional[Callable[[], datetime]] = None):
        self.tz = ZoneInfo(timezone)
        self._now = now

    def now(self) -> datetime:
        if self._now is not None:
            return self._now().astimezone(self.tz)
        return datetime.now(self.tz)

    def spoken_date(self, moment: Optional[datetime] = None) -> str:
        moment = moment or self.now()
        return f"{moment:%A}, {moment:%B} {moment.day}, {moment.year}"

    def spoken_time(self, moment: Optional[datetime] = None) -> str:
        moment = moment or self.now()
        return moment.strftime("%I:%M %p")

    def timestamp(self, moment: Optional[datetime] = None) -> str:
        moment = moment or self.now()
        return moment.strftime("%m/%d/%Y, %I:%M:%S %p")


class TimeHandler(IntentHandler):
    def __init__(self, clock: LocalClock):
        self.clock = clock

    async def reply(self, intent: IntentResult, context: TurnContext) -> str:
        moment = self.clock.now()
        date_text = self.clock.spoken_date(moment)
        time_text = self.clock.spoken_time(moment)
        if intent.is_tagalog:
            return f"Ngayon ay {date_text}, at ang oras ay {time_text}."
        return f"It's {date_text}, and the time is {time_text}."
