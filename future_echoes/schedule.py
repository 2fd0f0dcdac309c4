from datetime import datetime, timedelta

from future_echoes.sentiment import NEGATIVE, sentiment_class

NEGATIVE_FREQUENCY_DAYS = 3
DEFAULT_FREQUENCY_DAYS = 7
NEGATIVE_MAX_QUESTIONS = 8
DEFAULT_MAX_QUESTIONS = 4


def cadence(sentiment) -> tuple:
    """Return (frequency_days, max_questions) for a sentiment class."""
    if sentiment_class(sentiment) == NEGATIVE:
        return NEGATIVE_FREQUENCY_DAYS, NEGATIVE_MAX_QUESTIONS
    return DEFAULT_FREQUENCY_DAYS, DEFAULT_MAX_QUESTIONS


def generate_schedule(created_at, reveal_at, sentiment) -> list:
    """
    Reflection question slots between creation and reveal.

    Negative capsules are checked in on every 3rd day, up to 8 times; all
    others weekly, up to 4 times. The first slot is one period after
    created_at and no slot falls after reveal_at. Works on dates or datetimes;
    the slots have the same type as created_at.
    """
    frequency_days, max_questions = cadence(sentiment)
    step = timedelta(days=frequency_days)
    slots = []
    candidate = created_at + step
    while len(slots) < max_questions and candidate <= reveal_at:
        slots.append(candidate)
        candidate += step
    return slots


def slot_dates(created_at, reveal_at, sentiment) -> list:
    """Calendar dates of the schedule slots."""
    return [
        slot.date() if isinstance(slot, datetime) else slot
        for slot in generate_schedule(created_at, reveal_at, sentiment)
    ]
