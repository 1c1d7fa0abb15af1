import pytest

from voicerelay.intents import LANG_EN, LANG_TL, classify, detect_topic, extract_city


class TestIntentPrecedence:
    """First matching rule wins: weather, then news, then time, else chat."""

    def test_weather_beats_news(self):
        assert classify("Any news about the weather in Baguio?").kind == "weather"

    def test_news_beats_time(self):
        assert classify("What's the news this time?").kind == "news"

    @pytest.mark.parametrize(
        "transcript, kind",
        [
            ("What's the forecast?", "weather"),
            ("Kamusta ang klima?", "weather"),
            ("Give me the headlines", "news"),
            ("May balita ba?", "news"),
            ("What time is it?", "time"),
            ("Anong oras na?", "time"),
            ("Anong araw ngayon?", "time"),
            ("Tell me a joke", "chat"),
            ("", "chat"),
        ],
    )
    def test_keywords(self, transcript, kind):
        assert classify(transcript).kind == kind

    def test_matching_ignores_case_and_padding(self):
        assert classify("   WEATHER PLEASE  ").kind == "weather"


class TestWeatherSlots:
    def test_city_after_in(self):
        intent = classify("What's the weather in Cebu")
        assert intent.city == "Cebu"
        assert intent.language == LANG_EN

    def test_city_after_sa_is_tagalog(self):
        intent = classify("Ano ang panahon sa Davao City?")
        assert intent.city == "Davao City"
        assert intent.language == LANG_TL

    def test_default_city(self):
        assert classify("How's the weather?").city == "Manila"
        assert classify("How's the weather?", default_city="Quezon City").city == "Quezon City"

    def test_in_inside_a_word_is_not_a_city_marker(self):
        assert extract_city("is it raining", "Manila") == "Manila"

    @pytest.mark.parametrize(
        "transcript, city",
        [
            ("Ano ang panahon sa Cebu ngayon?", "Cebu"),
            ("What's the weather in Cebu today", "Cebu"),
            ("Weather in Quezon City right now please", "Quezon City"),
            ("Panahon sa Davao bukas po", "Davao"),
        ],
    )
    def test_city_stops_at_time_words(self, transcript, city):
        assert classify(transcript).city == city

    def test_marker_after_weather_keyword_is_preferred(self):
        assert classify("Tell me in English the weather in Iloilo").city == "Iloilo"

    def test_marker_running_into_the_keyword_is_not_a_city(self):
        assert classify("Tell me in English the weather").city == "Manila"

    def test_city_before_keyword(self):
        assert classify("In Baguio, how's the weather?").city == "Baguio"

    def test_city_whitespace_is_collapsed(self):
        assert extract_city("weather in  new   york ", "Manila") == "New York"


class TestNewsSlots:
    @pytest.mark.parametrize(
        "text, topic",
        [
            ("tech news", "technology"),
            ("balitang teknolohiya", "technology"),
            ("isports na balita", "sports"),
            ("business headlines", "business"),
            ("showbiz news", "entertainment"),
            ("balita sa politika", "politics"),
            ("science news", "science"),
            ("health news", "health"),
        ],
    )
    def test_topics(self, text, topic):
        assert detect_topic(text) == (topic, False)

    def test_explicit_general(self):
        assert detect_topic("lahat ng balita") == (None, True)
        assert classify("General news please").explicit_general is True

    def test_no_topic(self):
        intent = classify("Any news?")
        assert intent.topic is None
        assert intent.explicit_general is False

    def test_balita_is_tagalog(self):
        assert classify("Ano ang balita?").language == LANG_TL
        assert classify("Latest news").language == LANG_EN
