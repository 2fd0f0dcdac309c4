import logging
import threading

import requests
from pydantic import BaseModel, Field

from future_echoes import config
from future_echoes.errors import SentimentUnavailable

logger = logging.getLogger(__name__)

POSITIVE = "positive"
NEUTRAL = "neutral"
NEGATIVE = "negative"
SENTIMENT_LABELS = (POSITIVE, NEUTRAL, NEGATIVE)

MAX_TEXT_LENGTH = 2000

POSITIVE_WORDS = ["happy", "good", "great", "excellent", "wonderful", "joy", "pleased", "delighted", "glad"]
NEGATIVE_WORDS = ["sad", "bad", "terrible", "awful", "unhappy", "disappointed", "upset", "angry", "depressed"]


class Sentiment(BaseModel):
    label: str
    score: float = Field(ge=0.0, le=1.0)


def sentiment_class(sentiment) -> str:
    """
    Coarse sentiment class of a stored or reported sentiment.

    Accepts a Sentiment, a mapping with a "label" or "sentiment" key, a bare
    label string or None. Anything missing or unrecognised is neutral.
    """
    if sentiment is None:
        return NEUTRAL
    if isinstance(sentiment, Sentiment):
        label = sentiment.label
    elif isinstance(sentiment, dict):
        label = sentiment.get("label") or sentiment.get("sentiment")
    else:
        label = sentiment
    if not isinstance(label, str):
        return NEUTRAL
    label = label.strip().lower()
    return label if label in SENTIMENT_LABELS else NEUTRAL


class KeywordSentimentClassifier:
    """Word-list classifier used when no remote model is available."""

    def analyze(self, text: str) -> Sentiment:
        lower_text = text.lower()
        positive_count = sum(1 for word in POSITIVE_WORDS if word in lower_text)
        negative_count = sum(1 for word in NEGATIVE_WORDS if word in lower_text)
        if positive_count > negative_count:
            score = 0.5 + (positive_count / (positive_count + negative_count)) * 0.5
            return Sentiment(label=POSITIVE, score=score)
        if negative_count > positive_count:
            score = 0.5 + (negative_count / (positive_count + negative_count)) * 0.5
            return Sentiment(label=NEGATIVE, score=score)
        return Sentiment(label=NEUTRAL, score=0.5)


class HttpSentimentClassifier:
    """
    Calls a sentiment service that accepts {"text": ...} and answers with
    {"sentiment": "positive"|"negative"|"neutral", "score": 0..1}.
    """

    def __init__(self, url, api_key="", timeout=10.0, session=None):
        self.url = url
        self.api_key = api_key
        self.timeout = timeout
        self.session = session or requests.Session()

    def analyze(self, text: str) -> Sentiment:
        text = text.strip()[:MAX_TEXT_LENGTH]
        if not text:
            raise SentimentUnavailable("No text provided")
        headers = {"Content-Type": "application/json"}
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"
        try:
            resp = self.session.post(self.url, json={"text": text}, headers=headers, timeout=self.timeout)
            resp.raise_for_status()
            data = resp.json()
        except (requests.RequestException, ValueError) as e:
            raise SentimentUnavailable(f"Sentiment service error: {e}") from e

        label = data.get("sentiment") if isinstance(data, dict) else None
        score = data.get("score") if isinstance(data, dict) else None
        if not isinstance(label, str) or label.lower() not in SENTIMENT_LABELS:
            raise SentimentUnavailable(f"Invalid sentiment value: {label!r}")
        if not isinstance(score, (int, float)) or not 0.0 <= score <= 1.0:
            raise SentimentUnavailable(f"Invalid sentiment score: {score!r}")
        return Sentiment(label=label.lower(), score=float(score))


class FallbackSentimentClassifier:
    """Tries the primary classifier and falls back to keyword analysis."""

    def __init__(self, primary, fallback=None):
        self.primary = primary
        self.fallback = fallback or KeywordSentimentClassifier()

    def analyze(self, text: str) -> Sentiment:
        try:
            return self.primary.analyze(text)
        except SentimentUnavailable as e:
            logger.warning(f"Primary sentiment classifier failed, using fallback: {e}")
            return self.fallback.analyze(text)


class CachingSentimentClassifier:
    """Memoizes results keyed on the trimmed text. Failures are not cached."""

    def __init__(self, classifier, max_entries=1024):
        self.classifier = classifier
        self.max_entries = max_entries
        self._cache = {}
        self._lock = threading.Lock()

    def analyze(self, text: str) -> Sentiment:
        key = text.strip()
        with self._lock:
            if key in self._cache:
                return self._cache[key]
        result = self.classifier.analyze(text)
        with self._lock:
            if key not in self._cache and len(self._cache) >= self.max_entries:
                self._cache.pop(next(iter(self._cache)))
            self._cache[key] = result
        return result


def analyze_best_effort(classifier, text):
    """Classify text, returning None instead of failing when enrichment is unavailable."""
    if classifier is None or not text or not text.strip():
        return None
    try:
        return classifier.analyze(text)
    except SentimentUnavailable as e:
        logger.warning(f"Sentiment unavailable: {e}")
    except Exception as e:
        logger.error(f"Sentiment classifier raised unexpectedly: {str(e)}")
    return None


def build_classifier():
    if config.SENTIMENT_API_URL:
        primary = HttpSentimentClassifier(
            config.SENTIMENT_API_URL, config.SENTIMENT_API_KEY, config.SENTIMENT_TIMEOUT
        )
        return CachingSentimentClassifier(FallbackSentimentClassifier(primary))
    return CachingSentimentClassifier(KeywordSentimentClassifier())
