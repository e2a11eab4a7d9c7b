"""Keyword-based sentiment scoring and theme extraction for feedback text.

Used as the fallback when the LLM analysis is unavailable. Scores are damped
towards neutral for keyword-sparse text and confidence is capped at 0.6.
"""

import re
from dataclasses import dataclass, field
from types import MappingProxyType

POSITIVE_WORDS = (
    "excellent", "great", "good", "amazing", "wonderful", "fantastic",
    "helpful", "professional", "knowledgeable", "thorough", "clear",
    "effective", "valuable", "useful", "informative", "enjoyable",
    "engaging", "practical", "relevant", "organized", "supportive",
)

NEGATIVE_WORDS = (
    "poor", "bad", "terrible", "awful", "useless", "waste",
    "confusing", "unclear", "disorganized", "unhelpful", "boring",
    "difficult", "frustrating", "disappointing", "inadequate", "lacking",
    "ineffective", "unprofessional", "rushed", "incomplete",
)

THEME_KEYWORDS = MappingProxyType({
    "Trainer Quality": ("trainer", "instructor", "teacher", "facilitator"),
    "Course Content": ("content", "material", "information", "curriculum"),
    "Practical Skills": ("practical", "hands-on", "skills", "practice", "application"),
    "Facilities": ("facilities", "equipment", "room", "venue", "location"),
    "Support": ("support", "help", "assistance", "guidance"),
    "Organization": ("organized", "structured", "schedule", "timing"),
    "Assessment": ("assessment", "exam", "test", "evaluation"),
    "Communication": ("communication", "feedback", "contact", "response"),
})

MAX_THEMES = 5
MIN_SENTIMENT_DENOMINATOR = 5
MIN_CONFIDENCE_WORDS = 10
KEYWORD_MAX_CONFIDENCE = 0.6


def _word_pattern(word: str) -> re.Pattern:
    return re.compile(rf"\b{re.escape(word)}\b", re.IGNORECASE)


_POSITIVE_PATTERNS = tuple(_word_pattern(w) for w in POSITIVE_WORDS)
_NEGATIVE_PATTERNS = tuple(_word_pattern(w) for w in NEGATIVE_WORDS)
_THEME_PATTERNS = tuple(
    (theme, tuple(_word_pattern(w) for w in triggers))
    for theme, triggers in THEME_KEYWORDS.items()
)


@dataclass(frozen=True)
class SentimentResult:
    sentiment: float = 0.0
    themes: list[str] = field(default_factory=list)
    confidence: float = 0.0

    def to_dict(self) -> dict:
        return {
            "sentiment": self.sentiment,
            "themes": list(self.themes),
            "confidence": self.confidence,
        }


def _count(patterns: tuple[re.Pattern, ...], text: str) -> int:
    return sum(len(p.findall(text)) for p in patterns)


def extract_themes(text: str) -> list[str]:
    themes = [
        theme for theme, patterns in _THEME_PATTERNS
        if any(p.search(text) for p in patterns)
    ]
    return themes[:MAX_THEMES]


def analyze_with_keywords(text: str | None) -> SentimentResult:
    """Score ``text`` against the fixed positive/negative word lists.

    sentiment = (pos - neg) / max(pos + neg, 5), clamped to [-1, 1].
    confidence = min(0.6, (pos + neg + themes) / max(words, 10)).
    """
    if not text or not text.strip():
        return SentimentResult()

    positive = _count(_POSITIVE_PATTERNS, text)
    negative = _count(_NEGATIVE_PATTERNS, text)
    total = positive + negative

    sentiment = 0.0
    if total > 0:
        sentiment = (positive - negative) / max(total, MIN_SENTIMENT_DENOMINATOR)
        sentiment = max(-1.0, min(1.0, sentiment))

    themes = extract_themes(text)
    word_count = len(text.split())
    confidence = min(
        KEYWORD_MAX_CONFIDENCE,
        (total + len(themes)) / max(word_count, MIN_CONFIDENCE_WORDS),
    )

    return SentimentResult(sentiment=sentiment, themes=themes, confidence=confidence)
