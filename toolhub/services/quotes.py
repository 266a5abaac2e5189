"""Quote generation: prompt building, response parsing and authenticity filtering."""

import logging
import random
import re
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional

from toolhub.llm.gemini import sanitize_llm_markdown

logger = logging.getLogger(__name__)

Quote = Dict[str, str]
TextGenerator = Callable[[str], Optional[str]]

FAMOUS_BENGALI_AUTHORS = [
    "Rabindranath Tagore",
    "Kazi Nazrul Islam",
    "Bankim Chandra Chattopadhyay",
    "Sarat Chandra Chattopadhyay",
    "Michael Madhusudan Dutt",
    "Ishwar Chandra Vidyasagar",
    "Swami Vivekananda",
    "Sri Aurobindo",
    "Netaji Subhas Chandra Bose",
    "Humayun Ahmed",
    "Jibanananda Das",
    "Buddhadeb Basu",
    "Sunil Gangopadhyay",
    "Mahasweta Devi",
    "Bibhutibhushan Bandyopadhyay",
    "Manik Bandyopadhyay",
]

FALLBACK_QUOTES: List[Dict[str, str]] = [
    {"quote": "Let your life lightly dance on the edges of time like dew on the tip of a leaf.", "author": "Rabindranath Tagore", "topic": "life", "mood": "thoughtful"},
    {"quote": "Love is an endless mystery, for it has nothing else to explain it.", "author": "Rabindranath Tagore", "topic": "love", "mood": "romantic"},
    {"quote": "You can't cross the sea merely by standing and staring at the water.", "author": "Rabindranath Tagore", "topic": "success", "mood": "motivational"},
    {"quote": "The only way to do great work is to love what you do.", "author": "Steve Jobs", "topic": "success", "mood": "motivational"},
    {"quote": "Where there is love there is life.", "author": "Mahatma Gandhi", "topic": "love", "mood": "motivational"},
    {"quote": "The best way to find yourself is to lose yourself in the service of others.", "author": "Mahatma Gandhi", "topic": "life", "mood": "thoughtful"},
    {"quote": "If you want to live a happy life, tie it to a goal, not to people or things.", "author": "Albert Einstein", "topic": "happiness", "mood": "motivational"},
    {"quote": "A friend is someone who gives you total freedom to be yourself.", "author": "Jim Morrison", "topic": "friendship", "mood": "thoughtful"},
    {"quote": "Let us celebrate the occasion with wine and sweet words.", "author": "Plautus", "topic": "birthday", "mood": "celebratory"},
    {"quote": "May your birthday be the start of a year filled with good luck, good health, and much happiness.", "author": "Unknown", "topic": "birthday", "mood": "uplifting"},
]

FALLBACK_FAMOUS: Dict[str, List[str]] = {
    "March 14": ["Albert Einstein"],
    "January 15": ["Martin Luther King Jr."],
    "February 12": ["Abraham Lincoln", "Charles Darwin"],
    "July 18": ["Nelson Mandela"],
    "October 2": ["Mahatma Gandhi"],
    "December 25": ["Isaac Newton", "Humphrey Bogart"],
}

FORBIDDEN_PHRASES = [
    # Bengali disclaimers
    "উপযুক্ত উক্তি যদিও নির্দিষ্ট নয়",
    "একটি উপযুক্ত উক্তি যদিও নির্দিষ্ট নয়",
    "নির্দিষ্ট কোন প্রসিদ্ধ উক্তি সন্নিবেশ করা সম্ভব হয়নি",
    "প্রকৃত প্রসিদ্ধ",
    "অজ্ঞাত",
    "দ্রষ্টব্য",
    "উপরোক্ত",
    "অনুপ্রাণিত",
    # English disclaimers
    "unknown",
    "inspired by",
    "paraphrased",
    "paraphrase",
    "often misattributed",
    "true authorship uncertain",
    "widely attributed, though origin uncertain",
    "commonly cited as",
    "lacks definitive evidence",
    "capturing",
    "expressing a similar sentiment",
    "some quotes",
    "uncertain or multiple attributions",
    "widely accepted origins",
    "definitive evidence",
    "similar sentiment",
    "disclaimer",
    "note",
]

SUSPICIOUS_MARKERS = [
    "(though",
    "(often",
    "(widely",
    "(commonly",
    "(true",
    "(definitive",
    "(similar",
    "(expressing",
    "(capturing",
]

DASH = r"[-–—]"
QUOTE_PATTERNS = [
    re.compile(r'^["“”]([^"“”]+)["“”]\s*' + DASH + r"\s*(.+)$"),
    re.compile(r"^['‘’]([^'‘’]+)['‘’]\s*" + DASH + r"\s*(.+)$"),
    re.compile(r'^\d+\.\s*["“”]([^"“”]+)["“”]\s*' + DASH + r"\s*(.+)$"),
    re.compile(r'^[•\-*]\s*["“”]([^"“”]+)["“”]\s*' + DASH + r"\s*(.+)$"),
]
NUMBERED_WITH_AUTHOR = re.compile(r"\d+\.\s*[\"'`]?([^\"']+)[\"'`]?\s*[—-]\s*([^\n]+)")
NUMBERED_ONLY = re.compile(r"\d+\.\s*[\"'`]?([^\"'\n]+)[\"'`]?")
LATIN_LETTERS = re.compile(r"[a-zA-Z]")

NO_KEY_MESSAGE = "AI key not set, using filtered fallback data."
NONE_FOUND_MESSAGE = "No authentic, verifiable quotes found for your criteria. Please try different parameters."


def clamp_count(count: Any) -> int:
    try:
        value = int(count or 5)
    except (TypeError, ValueError):
        value = 5
    return max(1, min(value, 20))


def get_month_day(date_str: Optional[str]) -> str:
    if not date_str:
        return ""
    try:
        parsed = datetime.strptime(str(date_str)[:10], "%Y-%m-%d")
    except ValueError:
        return ""
    return f"{parsed.strftime('%B')} {parsed.day}"


def _is_english(language: Optional[str]) -> bool:
    return not language or language == "English"


def strip_english_translation(text: str, language: Optional[str]) -> str:
    """Drop translated glosses an LLM tends to append to non-English quotes."""
    if _is_english(language):
        return text
    text = re.sub(r"\([^)]*\*[^)]*\)", "", text)
    text = re.sub(r"\([^)]*English[^)]*\)", "", text, flags=re.IGNORECASE)
    text = re.sub(r"\*[^\n]+", "", text)
    text = re.sub(r"\([^)]*\)", "", text)
    return re.sub(r"\s+", " ", text).strip()


def is_authentic(quote: Quote) -> bool:
    quote_text = (quote.get("quote") or "").lower()
    author_text = (quote.get("author") or "").lower()
    for phrase in FORBIDDEN_PHRASES:
        if phrase in quote_text or phrase in author_text:
            return False
    for marker in SUSPICIOUS_MARKERS:
        if marker in quote_text or marker in author_text:
            return False
    return True


def filter_authentic_quotes(quotes: List[Quote]) -> List[Quote]:
    return [quote for quote in quotes if is_authentic(quote)]


def parse_quotes_from_response(text: str, language: Optional[str], author: Optional[str] = None) -> List[Quote]:
    quotes: List[Quote] = []
    for raw_line in (text or "").split("\n"):
        line = raw_line.strip()
        if (
            not line
            or line.startswith("Note:")
            or line.startswith("**Note:**")
            or "disclaimer" in line
            or "উপযুক্ত উক্তি যদিও নির্দিষ্ট নয়" in line
        ):
            continue

        for pattern in QUOTE_PATTERNS:
            match = pattern.match(line)
            if match is None:
                continue
            quote = strip_english_translation(match.group(1).strip(), language)
            quote_author = strip_english_translation(match.group(2).strip(), language)
            if quote and quote_author and len(quote) > 10:
                quotes.append({"quote": quote, "author": quote_author})
            break

    if not quotes:
        sentences = [s for s in re.split(r"[.!?]+", text or "") if len(s.strip()) > 20]
        for sentence in sentences[:5]:
            clean = strip_english_translation(sentence.strip(), language)
            if 20 < len(clean) < 200:
                quotes.append({"quote": clean, "author": author or "Unknown"})

    return quotes[:10]


def parse_numbered_fallback(text: str, language: Optional[str], author: Optional[str] = None) -> List[Quote]:
    quotes: List[Quote] = []
    if not author:
        for match in NUMBERED_WITH_AUTHOR.finditer(text or ""):
            quote = strip_english_translation(match.group(1).strip(), language)
            quote_author = match.group(2).strip()
            if quote and quote_author:
                quotes.append({"quote": quote, "author": quote_author})
    else:
        for match in NUMBERED_ONLY.finditer(text or ""):
            quote = strip_english_translation(match.group(1).strip(), language)
            if quote:
                quotes.append({"quote": quote, "author": author})
    return quotes


def get_fallback_quotes(
    topic: Optional[str], mood: Optional[str], count: int, rng: Optional[random.Random] = None
) -> List[Quote]:
    rng = rng or random.Random()
    topic = (topic or "").lower()
    mood = (mood or "").lower()
    matches = [
        q for q in FALLBACK_QUOTES if (topic and topic in q["topic"]) or (mood and mood in q["mood"])
    ]
    if not matches:
        pool = list(FALLBACK_QUOTES)
        rng.shuffle(pool)
        selected = pool[: min(count, 5)]
    else:
        rng.shuffle(matches)
        selected = matches[: min(count, len(matches))]
    return [{"quote": q["quote"], "author": q["author"]} for q in selected]


def _topic_and_mood(topic: Optional[str], mood: Optional[str]) -> str:
    out = ""
    if topic:
        out += f" about {topic}"
    if mood:
        out += f" in a {mood} tone"
    return out


def _original_quotes_prompt(request: Dict[str, Any], count: int) -> str:
    prompt = f"Write {count} short, original, unique quotes"
    prompt += _topic_and_mood(request.get("topic"), request.get("mood"))
    if request.get("author"):
        prompt += f" in the style of {request['author']}"
    if request.get("birthDate"):
        prompt += " that could be used as a birthday wish"
    return prompt + ". Number each quote. Avoid cliches. Make them realistic and meaningful."


def build_quote_prompt(request: Dict[str, Any]) -> str:
    count = clamp_count(request.get("count"))
    language = request.get("language")
    prompt = ""
    if not _is_english(language):
        prompt += f"Respond ONLY in {language}. Do NOT provide translations or explanations. "

    if request.get("author"):
        return prompt + _original_quotes_prompt(request, count)

    prompt += f"Give me up to {count} famous, authentic, and verifiable quotes"
    prompt += _topic_and_mood(request.get("topic"), request.get("mood"))
    if language == "Bengali":
        prompt += (
            ". Only use real, well-known, and verifiable quotes from these Bengali authors: "
            f"{', '.join(FAMOUS_BENGALI_AUTHORS)}. Return only real, verifiable quotes. "
            "Do NOT invent, paraphrase, or create new quotes. If not enough real quotes exist, "
            "return only those that are authentic. Do NOT include any disclaimers or notes. "
            "Do not attribute quotes to 'Unknown' or generic sources."
        )
    else:
        prompt += (
            ". Return only real, verifiable, and well-known quotes from authentic sources. "
            "Do NOT invent, paraphrase, or create new quotes. If not enough real quotes exist, "
            "return only those that are authentic. Do NOT include any disclaimers or notes. "
            "For each quote, include the original author's name."
        )
    return prompt + ' Format: "Quote text" — Author Name. Number each quote.'


def build_fallback_prompt(request: Dict[str, Any]) -> str:
    """English-only variant used when a non-English reply came back unusable."""
    count = clamp_count(request.get("count"))
    if request.get("author"):
        return _original_quotes_prompt(request, count)
    return (
        f"Give me up to {count} famous, authentic, and verifiable quotes"
        + _topic_and_mood(request.get("topic"), request.get("mood"))
        + ". Return only real, verifiable, and well-known quotes from authentic sources. "
        "Do NOT invent, paraphrase, or create new quotes. If not enough real quotes exist, "
        "return only those that are authentic. Do NOT include any disclaimers or notes. "
        "For each quote, include the original author's name. "
        'Format: "Quote text" — Author Name. Number each quote.'
    )


def build_famous_people_prompt(birth_date: str) -> str:
    return (
        f"List 3-5 famous people born on {get_month_day(birth_date)}. "
        "Return only their names as a comma-separated list."
    )


def parse_famous_people(text: str) -> List[str]:
    raw = (text or "").strip()
    raw = re.sub(r'^"|"$', "", raw)
    raw = re.sub(r"^`+|`+$", "", raw)
    raw = re.sub(r"\d+\.|\*|\n", "", raw)
    return [name.strip() for name in raw.split(",") if name.strip()]


def _parse_all(text: str, language: Optional[str], author: Optional[str]) -> List[Quote]:
    quotes = parse_quotes_from_response(text, language, author)
    if not quotes and text:
        quotes = parse_numbered_fallback(text, language, author)
    if not quotes and text:
        quotes = [{"quote": strip_english_translation(text, language), "author": author or "Unknown"}]
    return quotes


def generate_quotes(
    request: Dict[str, Any],
    llm: Optional[TextGenerator] = None,
    rng: Optional[random.Random] = None,
) -> Dict[str, Any]:
    """Produce ``{quotes, famousPeople, message}`` for a quote request.

    Without a text generator the canned quotes are used. With one, the reply
    goes through progressively looser parsers, a retry in English when a
    non-English reply came back in Latin script, and the authenticity filter.
    """
    language = request.get("language") or "English"
    author = request.get("author") or None
    birth_date = request.get("birthDate")
    count = clamp_count(request.get("count"))

    if llm is None:
        famous = FALLBACK_FAMOUS.get(get_month_day(birth_date), []) if birth_date else []
        return {
            "quotes": get_fallback_quotes(request.get("topic"), request.get("mood"), count, rng),
            "famousPeople": list(famous),
            "message": NO_KEY_MESSAGE,
        }

    text = sanitize_llm_markdown(llm(build_quote_prompt(request)) or "")
    quotes = _parse_all(text, language, author)

    if not _is_english(language) and all(
        not q["quote"] or LATIN_LETTERS.search(q["quote"]) for q in quotes
    ):
        logger.info("Retrying quote request in English")
        text = sanitize_llm_markdown(llm(build_fallback_prompt(request)) or "")
        quotes = _parse_all(text, "English", author)

    famous_people: List[str] = []
    if birth_date:
        reply = llm(build_famous_people_prompt(birth_date)) or ""
        famous_people = parse_famous_people(sanitize_llm_markdown(reply))

    quotes = [q for q in quotes if q.get("quote") and q.get("author")]
    original_count = len(quotes)
    quotes = filter_authentic_quotes(quotes)

    message = ""
    if len(quotes) < original_count:
        message = (
            f"Only {len(quotes)} authentic, verifiable quotes found. "
            "Non-authentic quotes have been filtered out."
        )
    if not quotes:
        message = NONE_FOUND_MESSAGE
    return {"quotes": quotes, "famousPeople": famous_people, "message": message}
