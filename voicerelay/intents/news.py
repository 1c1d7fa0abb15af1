"""News intent: latest Philippine headlines, summarized to a few sentences."""

from __future__ import annotations

from typing import List, Optional

from ..errors import ServiceError
from ..logging_config import get_logger
from ..services import ChatService, NewsService
from .models import IntentHandler, IntentResult, TurnContext

logger = get_logger(__name__)

CLARIFY_EN = "What kind of news would you like: technology, sports, business, politics, entertainment, or general?"
CLARIFY_TL = "Anong klaseng balita ang gusto mong marinig: teknolohiya, isports, negosyo, politika, aliwan, o pangkalahatan?"
FAILURE_EN = "Sorry, I had trouble getting the news."
FAILURE_TL = "Pasensya na, nagkaproblema ako sa pagkuha ng balita."

SUMMARY_SYSTEM_PROMPT = "You summarize the latest news naturally and conversationally."


def no_results_reply(topic: Optional[str], tagalog: bool) -> str:
    if tagalog:
        return f"Pasensya na, wala akong mahanap na balita tungkol sa {topic or 'Pilipinas'} ngayon."
    return f"Sorry, I couldn't find any news about {topic or 'the Philippines'} right now."


def summary_request(headlines: List[str], topic: Optional[str], tagalog: bool) -> str:
    joined = "\n".join(headlines)
    if tagalog:
        return (
            f"Gumawa ng maikling buod sa Filipino tungkol sa mga headline na ito "
            f"({topic or 'pangkalahatang balita'}). Tatlong pangungusap lang:\n{joined}"
        )
    return (
        f"Summarize these Philippine {topic or 'general'} news headlines into a short, "
        f"natural paragraph (max 3 sentences):\n{joined}"
    )


class NewsHandler(IntentHandler):
    """Asks for a topic when none was given, otherwise fetches and summarizes."""

    def __init__(
        self,
        news: NewsService,
        chat: ChatService,
        *,
        max_headlines: int = 5,
        summary_model: Optional[str] = None,
    ):
        self.news = news
        self.chat = chat
        self.max_headlines = max_headlines
        self.summary_model = summary_model

    async def reply(self, intent: IntentResult, context: TurnContext) -> str:
        tagalog = intent.is_tagalog
        topic = intent.topic
        if not topic and not intent.explicit_general:
            return CLARIFY_TL if tagalog else CLARIFY_EN

        try:
            headlines = await self.news.headlines(topic or "", self.max_headlines)
            if not headlines:
                logger.info("No headlines found", topic=topic, session_id=context.session_id)
                return no_results_reply(topic, tagalog)
            summary = await self.chat.complete(
                [
                    {"role": "system", "content": SUMMARY_SYSTEM_PROMPT},
                    {"role": "user", "content": summary_request(headlines, topic, tagalog)},
                ],
                model=self.summary_model,
                session_id=context.session_id,
            )
        except ServiceError as exc:
            logger.warning("News unavailable", topic=topic, error=str(exc), session_id=context.session_id)
            return FAILURE_TL if tagalog else FAILURE_EN

        if tagalog:
            return f"Narito ang mga pinakabagong balita sa {topic or 'Pilipinas'}: {summary}"
        return f"Here's the latest {topic or 'Philippine'} news: {summary}"
