"""
Bilingual (English + Filipino) keyword classification of transcripts.

Matching is plain substring search on the trimmed, lower-cased transcript.
Rules are checked in table order and the first match wins, so a question
mentioning both weather and news is a weather question.
"""

import re
from dataclasses import dataclass
from typing import Optional, Tuple

from .models import INTENT_CHAT, INTENT_NEWS, INTENT_TIME, INTENT_WEATHER, LANG_EN, LANG_TL, IntentResult


@dataclass(frozen=True)
class IntentRule:
    kind: str
    english: Tuple[str, ...]
    filipino: Tuple[str, ...]

    def matches(self, text: str) -> bool:
        return any(word in text for word in self.english + self.filipino)

    def language(self, text: str) -> str:
        return LANG_TL if any(word in text for word in self.filipino) else LANG_EN

    def position(self, text: str) -> int:
        """Index of the earliest keyword in ``text`` (0 when none is present)."""
        found = [text.find(word) for word in self.english + self.filipino if word in text]
        return min(found) if found else 0


INTENT_RULES = (
    IntentRule(INTENT_WEATHER, ("weather", "forecast"), ("panahon", "klima")),
    IntentRule(INTENT_NEWS, ("news", "headlines"), ("balita",)),
    IntentRule(INTENT_TIME, ("time", "date"), ("oras", "araw")),
)

# (topic, keywords), first match wins
NEWS_TOPICS = (
    ("technology", ("tech", "teknolohiya")),
    ("sports", ("sports", "isports", "palakasan")),
    ("business", ("business", "negosyo")),
    ("entertainment", ("entertainment", "showbiz", "aliwan", "libangan")),
    ("politics", ("politics", "politika")),
    ("science", ("science", "agham")),
    ("health", ("health", "kalusugan")),
)

GENERAL_NEWS_KEYWORDS = ("general", "pangkalahatan", "lahat")

CITY_PATTERN = re.compile(r"\b(?:in|sa)\s+([a-z\s]+)")

# Words that end a city name ("in cebu today", "sa davao ngayon po")
CITY_STOP_WORDS = frozenset((
    "today", "now", "tonight", "tomorrow", "please", "right",
    "ngayon", "ngayong", "bukas", "mamaya", "po",
))


def normalize(transcript: str) -> str:
    return (transcript or "").strip().lower()


def extract_city(text: str, default_city: str, start: int = 0) -> str:
    """City named after "in"/"sa", title-cased; ``default_city`` otherwise.

    A marker at or after ``start`` (the weather keyword) is preferred. An
    earlier marker only counts when its capture ends before ``start``, so
    "in english the weather" names no city. The name ends at the first time
    or courtesy word.
    """
    match = CITY_PATTERN.search(text, start)
    if match is None:
        match = CITY_PATTERN.search(text)
        if match and match.end() > start:
            match = None
    if match:
        words = []
        for word in match.group(1).split():
            if word in CITY_STOP_WORDS:
                break
            words.append(word)
        if words:
            return " ".join(words).title()
    return default_city


def detect_topic(text: str) -> Tuple[Optional[str], bool]:
    """Return (topic, explicit_general) for a news question."""
    for topic, keywords in NEWS_TOPICS:
        if any(word in text for word in keywords):
            return topic, False
    if any(word in text for word in GENERAL_NEWS_KEYWORDS):
        return None, True
    return None, False


def classify(transcript: str, default_city: str = "Manila") -> IntentResult:
    text = normalize(transcript)
    for rule in INTENT_RULES:
        if not rule.matches(text):
            continue
        language = rule.language(text)
        if rule.kind == INTENT_WEATHER:
            city = extract_city(text, default_city, rule.position(text))
            return IntentResult(kind=rule.kind, language=language, city=city)
        if rule.kind == INTENT_NEWS:
            topic, explicit_general = detect_topic(text)
            return IntentResult(kind=rule.kind, language=language, topic=topic, explicit_general=explicit_general)
        return IntentResult(kind=rule.kind, language=language)
    return IntentResult(kind=INTENT_CHAT)
