"""Tests for the emotional-journey summary built at reveal time."""

from types import SimpleNamespace

import pytest

from future_echoes.sentiment import Sentiment
from future_echoes.trends import (
    NARRATIVES, NO_REFLECTIONS_NARRATIVE, POSITIVE_NOTES, dominant_sentiment, positive_note_for, summarize,
)


def capsule(label=None, id=42):
    sentiment = Sentiment(label=label, score=0.9) if label else None
    return SimpleNamespace(id=id, initial_sentiment=sentiment)


def responses(*labels):
    return [
        SimpleNamespace(response_sentiment=Sentiment(label=l, score=0.8) if l else None)
        for l in labels
    ]


class TestSummarize:

    @pytest.mark.parametrize("label", ["positive", "neutral", "negative", None])
    def test_no_responses(self, label):
        summary = summarize(capsule(label), [])
        assert summary.narrative == NO_REFLECTIONS_NARRATIVE
        assert summary.dominant_sentiment == "neutral"
        assert summary.response_count == 0

    def test_growth_from_negative_to_positive(self):
        summary = summarize(capsule("negative"), responses("positive", "positive", "negative"))
        assert summary.initial_sentiment == "negative"
        assert summary.dominant_sentiment == "positive"
        assert "growth" in summary.narrative
        assert summary.sentiment_counts == {"positive": 2, "neutral": 0, "negative": 1}
        assert summary.response_count == 3

    def test_fluctuation_from_positive_to_negative(self):
        summary = summarize(capsule("positive"), responses("negative"))
        assert summary.narrative == NARRATIVES[("positive", "negative")]
        assert "fluctuations are normal" in summary.narrative

    def test_missing_initial_sentiment_is_neutral(self):
        summary = summarize(capsule(None), responses("neutral"))
        assert summary.initial_sentiment == "neutral"
        assert summary.narrative == NARRATIVES[("neutral", "neutral")]

    def test_missing_response_sentiment_counts_as_neutral(self):
        summary = summarize(capsule("positive"), responses(None, None, "negative"))
        assert summary.dominant_sentiment == "neutral"
        assert summary.sentiment_counts["neutral"] == 2

    def test_unparseable_sentiment_counts_as_neutral(self):
        items = [SimpleNamespace(response_sentiment={"sentiment": "ecstatic"})]
        assert summarize(capsule(), items).sentiment_counts["neutral"] == 1

    def test_nine_narratives(self):
        assert len(NARRATIVES) == 9
        assert len(set(NARRATIVES.values())) == 9


class TestDominantSentiment:

    def test_strict_majority(self):
        assert dominant_sentiment({"positive": 1, "neutral": 0, "negative": 3}) == "negative"

    def test_positive_wins_ties(self):
        assert dominant_sentiment({"positive": 2, "neutral": 2, "negative": 2}) == "positive"

    def test_neutral_beats_negative_on_tie(self):
        assert dominant_sentiment({"positive": 0, "neutral": 1, "negative": 1}) == "neutral"


class TestPositiveNote:

    def test_same_capsule_same_note(self):
        assert positive_note_for(42) == positive_note_for(42)
        assert summarize(capsule(id=7), []).positive_note == positive_note_for(7)

    def test_note_comes_from_list(self):
        notes = {positive_note_for(i) for i in range(50)}
        assert notes <= set(POSITIVE_NOTES)
        assert len(notes) > 1
