import zlib

from pydantic import BaseModel

from future_echoes.sentiment import NEGATIVE, NEUTRAL, POSITIVE, SENTIMENT_LABELS, sentiment_class

NO_REFLECTIONS_NARRATIVE = "No reflection responses were collected during the time capsule period."

# Keyed by (initial sentiment, dominant sentiment).
NARRATIVES = {
    (POSITIVE, POSITIVE): (
        "Throughout this period, your responses maintained a consistently positive outlook, "
        "reflecting continued optimism and good spirits."
    ),
    (NEGATIVE, POSITIVE): (
        "Your journey shows a remarkable shift from initial concerns to predominantly positive "
        "reflections, suggesting personal growth and emotional resilience."
    ),
    (NEUTRAL, POSITIVE): (
        "Your reflections evolved into a largely positive perspective over time, showing an "
        "upward trend in your emotional well-being."
    ),
    (POSITIVE, NEGATIVE): (
        "While you began with optimism, you faced some challenges during this period. Remember "
        "that emotional fluctuations are normal parts of life's journey."
    ),
    (NEGATIVE, NEGATIVE): (
        "You've been navigating some persistent challenges. Your consistent self-reflection "
        "shows strength and commitment to self-awareness."
    ),
    (NEUTRAL, NEGATIVE): (
        "Your reflections reveal some emotional challenges during this period. The practice of "
        "regular reflection itself is a powerful tool for working through difficult feelings."
    ),
    (POSITIVE, NEUTRAL): (
        "Starting from a positive outlook, your journey settled into a balanced, thoughtful "
        "perspective throughout this period."
    ),
    (NEGATIVE, NEUTRAL): (
        "From initial concerns, your reflections show movement toward a more balanced "
        "perspective, suggesting adaptation and emotional processing."
    ),
    (NEUTRAL, NEUTRAL): (
        "Your reflections maintained a balanced, thoughtful perspective throughout this period, "
        "showing consistent emotional equilibrium."
    ),
}

POSITIVE_NOTES = (
    "Remember that self-reflection is a powerful tool for personal growth. Keep nurturing this practice.",
    "Your commitment to reflection shows incredible self-awareness. This mindfulness will continue to serve you well.",
    "Every moment of reflection is a step toward greater self-understanding. You're on a meaningful journey.",
    "The insights you've gained through reflection are valuable treasures that will guide your future path.",
    "By looking inward regularly, you've demonstrated remarkable emotional intelligence and personal strength.",
)


class JourneySummary(BaseModel):
    dominant_sentiment: str
    initial_sentiment: str
    narrative: str
    positive_note: str
    sentiment_counts: dict
    response_count: int


def positive_note_for(capsule_id) -> str:
    # crc32 rather than hash(): str hashes are salted per process.
    index = zlib.crc32(str(capsule_id).encode("utf-8")) % len(POSITIVE_NOTES)
    return POSITIVE_NOTES[index]


def dominant_sentiment(counts: dict) -> str:
    """Label with the highest count; ties go to the earlier of positive, neutral, negative."""
    dominant = SENTIMENT_LABELS[0]
    for label in SENTIMENT_LABELS[1:]:
        if counts.get(label, 0) > counts.get(dominant, 0):
            dominant = label
    return dominant


def summarize(capsule, ordered_responses) -> JourneySummary:
    """Emotional-journey summary of a capsule and its reflection responses."""
    initial = sentiment_class(capsule.initial_sentiment)
    counts = {label: 0 for label in SENTIMENT_LABELS}
    for response in ordered_responses:
        counts[sentiment_class(response.response_sentiment)] += 1

    if not ordered_responses:
        return JourneySummary(
            dominant_sentiment=NEUTRAL,
            initial_sentiment=initial,
            narrative=NO_REFLECTIONS_NARRATIVE,
            positive_note=positive_note_for(capsule.id),
            sentiment_counts=counts,
            response_count=0,
        )

    dominant = dominant_sentiment(counts)
    return JourneySummary(
        dominant_sentiment=dominant,
        initial_sentiment=initial,
        narrative=NARRATIVES[(initial, dominant)],
        positive_note=positive_note_for(capsule.id),
        sentiment_counts=counts,
        response_count=len(ordered_responses),
    )
