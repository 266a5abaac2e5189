"""
Tests for quote parsing, filtering and generation
"""
import random

import pytest

from toolhub.services import quotes


class TestHelpers:
    """Test small quote helpers"""

    @pytest.mark.parametrize(
        "value,expected", [("1879-03-14", "March 14"), ("2000-12-25T10:00:00Z", "December 25"), ("bad", ""), (None, "")]
    )
    def test_get_month_day(self, value, expected):
        assert quotes.get_month_day(value) == expected

    @pytest.mark.parametrize("value,expected", [(None, 5), (0, 5), (3, 3), (50, 20), (-3, 1), ("x", 5)])
    def test_clamp_count(self, value, expected):
        assert quotes.clamp_count(value) == expected

    def test_strip_english_translation(self):
        assert quotes.strip_english_translation("আমি তোমাকে ভালোবাসি (I love you)", "Bengali") == "আমি তোমাকে ভালোবাসি"
        assert quotes.strip_english_translation("জীবন সুন্দর\n*Life is beautiful", "Bengali") == "জীবন সুন্দর"
        assert quotes.strip_english_translation("Keep (this)", "English") == "Keep (this)"

    def test_parse_famous_people(self):
        text = "1. Albert Einstein, 2. Michael Caine,\n*Quincy Jones"
        assert quotes.parse_famous_people(text) == ["Albert Einstein", "Michael Caine", "Quincy Jones"]


class TestAuthenticityFilter:
    """Test removal of hedged or unattributed quotes"""

    def test_filters_disclaimers_and_markers(self):
        items = [
            {"quote": "Where there is love there is life.", "author": "Mahatma Gandhi"},
            {"quote": "Great things happen (often attributed to him)", "author": "Someone"},
            {"quote": "A perfectly fine sentence here.", "author": "Unknown"},
            {"quote": "Inspired by Tagore, a line about rivers", "author": "Poet"},
        ]
        kept = quotes.filter_authentic_quotes(items)
        assert kept == [items[0]]


class TestParsing:
    """Test the structured and loose response parsers"""

    def test_structured_lines(self):
        text = "\n".join(
            [
                '1. "The only way to do great work is to love what you do." — Steve Jobs',
                "“Where there is love there is life.” – Mahatma Gandhi",
                "'Stay hungry, stay foolish, always.' - Steve Jobs",
                '"Too short" - Someone',
                "Note: these are all real quotes",
            ]
        )
        parsed = quotes.parse_quotes_from_response(text, "English")
        assert [q["author"] for q in parsed] == ["Steve Jobs", "Mahatma Gandhi", "Steve Jobs"]
        assert parsed[0]["quote"] == "The only way to do great work is to love what you do."

    def test_sentence_fallback(self):
        text = "This is a long sentence without any quote formatting. Short. Another long sentence worth keeping too!"
        parsed = quotes.parse_quotes_from_response(text, "English", "Ada")
        assert len(parsed) == 2
        assert all(q["author"] == "Ada" for q in parsed)

    def test_numbered_fallback(self):
        with_author = quotes.parse_numbered_fallback("1. Dream big and work hard\n2. Stay kind", "English", "Ada")
        assert [q["quote"] for q in with_author] == ["Dream big and work hard", "Stay kind"]
        without_author = quotes.parse_numbered_fallback("1. Be yourself - Oscar Wilde", "English")
        assert without_author == [{"quote": "Be yourself", "author": "Oscar Wilde"}]


class TestFallbackQuotes:
    """Test canned quote selection"""

    def test_topic_match(self):
        picked = quotes.get_fallback_quotes("love", None, 5, random.Random(0))
        assert len(picked) == 2
        assert {q["author"] for q in picked} == {"Rabindranath Tagore", "Mahatma Gandhi"}

    def test_no_match_returns_random_subset(self):
        assert len(quotes.get_fallback_quotes("zzz", None, 3, random.Random(0))) == 3
        assert len(quotes.get_fallback_quotes("zzz", None, 20, random.Random(0))) == 5


class TestPrompts:
    """Test prompt construction"""

    def test_bengali_prompt_lists_authors(self):
        prompt = quotes.build_quote_prompt({"language": "Bengali", "topic": "life", "count": 3})
        assert prompt.startswith("Respond ONLY in Bengali.")
        assert "Rabindranath Tagore" in prompt
        assert "up to 3" in prompt

    def test_author_prompt_asks_for_original_quotes(self):
        prompt = quotes.build_quote_prompt({"author": "Ada", "mood": "calm", "birthDate": "1990-01-01"})
        assert "in the style of Ada" in prompt
        assert "in a calm tone" in prompt
        assert "birthday" in prompt

    def test_fallback_prompt_is_english(self):
        assert "Respond ONLY" not in quotes.build_fallback_prompt({"language": "Bengali"})


class TestGenerateQuotes:
    """Test end-to-end quote generation with a stub model"""

    def test_without_model_uses_fallback(self):
        result = quotes.generate_quotes({"topic": "love", "birthDate": "1990-03-14"}, None, random.Random(0))
        assert result["message"] == quotes.NO_KEY_MESSAGE
        assert result["famousPeople"] == ["Albert Einstein"]
        assert len(result["quotes"]) == 2

    def test_filtered_quotes_are_reported(self):
        reply = "\n".join(
            [
                '1. "The only way to do great work is to love what you do." — Steve Jobs',
                '2. "Imagination is more important than knowledge." — Albert Einstein',
                '3. "Some saying that sounds wise enough to keep." — Unknown',
            ]
        )
        result = quotes.generate_quotes({"topic": "success"}, lambda prompt: reply)
        assert len(result["quotes"]) == 2
        assert result["message"].startswith("Only 2 authentic")

    def test_nothing_authentic(self):
        result = quotes.generate_quotes({}, lambda prompt: '"This is a made up quote text." - Unknown')
        assert result["quotes"] == []
        assert result["message"] == quotes.NONE_FOUND_MESSAGE

    def test_latin_reply_to_bengali_request_retries_in_english(self):
        prompts = []

        def model(prompt):
            prompts.append(prompt)
            if len(prompts) == 1:
                return '"Life is beautiful when you live it fully." - Someone Famous'
            return '"Where there is love there is life." - Mahatma Gandhi'

        result = quotes.generate_quotes({"language": "Bengali", "topic": "love"}, model)
        assert len(prompts) == 2
        assert "Respond ONLY" not in prompts[1]
        assert result["quotes"] == [{"quote": "Where there is love there is life.", "author": "Mahatma Gandhi"}]

    def test_famous_people_lookup(self):
        def model(prompt):
            if prompt.startswith("List"):
                return "Albert Einstein, Michael Caine"
            return '"Where there is love there is life." - Mahatma Gandhi'

        result = quotes.generate_quotes({"birthDate": "1990-03-14"}, model)
        assert result["famousPeople"] == ["Albert Einstein", "Michael Caine"]

    def test_reply_preamble_is_dropped(self):
        def model(prompt):
            if prompt.startswith("List"):
                return "Here are some famous people born on March 14:\nAlbert Einstein, Michael Caine"
            return 'Here are your quotes:\n1. "Where there is love there is life." — Mahatma Gandhi'

        result = quotes.generate_quotes({"birthDate": "1990-03-14"}, model)
        assert result["famousPeople"] == ["Albert Einstein", "Michael Caine"]
        assert result["quotes"] == [{"quote": "Where there is love there is life.", "author": "Mahatma Gandhi"}]


class TestQuoteRoute:
    """Test the quote endpoint"""

    def test_anonymous_request_is_not_stored(self, client, db):
        response = client.post("/api/quote", json={"topic": "love"})
        assert response.status_code == 200
        assert response.get_json()["message"] == quotes.NO_KEY_MESSAGE
        assert db["quote_requests"].count_documents({}) == 0

    def test_signed_in_request_is_stored(self, user_client, db):
        user_client.post("/api/quote", json={"topic": "love", "count": 2})
        stored = db["quote_requests"].find_one({})
        assert stored["topic"] == "love"
        assert stored["quoteCount"] == 2
