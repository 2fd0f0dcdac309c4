import logging
from datetime import date, datetime, time, timedelta
from typing import Optional

from pydantic import BaseModel

from future_echoes import config
from future_echoes.capsules import is_effectively_revealed, utcnow
from future_echoes.errors import AlreadyAnswered, NotFound, ValidationError
from future_echoes.questions import select_question
from future_echoes.schedule import slot_dates
from future_echoes.sentiment import analyze_best_effort

logger = logging.getLogger(__name__)

ALREADY_ANSWERED = "already_answered"
NO_ACTIVE_CAPSULES = "no_active_capsules"
NO_SLOT_TODAY = "no_slot_today"
QUESTION = "question"

MESSAGES = {
    ALREADY_ANSWERED: "You've already answered today's reflection. Come back tomorrow!",
    NO_ACTIVE_CAPSULES: "You have no active capsules. Create a capsule to start reflecting.",
    NO_SLOT_TODAY: "No reflection is due today. Check back later!",
}

# Shorter responses are saved without sentiment.
MIN_ANALYZED_LENGTH = 10


class Prompt(BaseModel):
    status: str
    message: Optional[str] = None
    capsule_id: Optional[int] = None
    question: Optional[str] = None
    question_date: Optional[date] = None


def day_bounds(now):
    start = datetime.combine(now.date(), time.min)
    return start, start + timedelta(days=1)


class QuestionnaireEngine:
    """Decides which reflection question, if any, a user sees today, and records answers."""

    def __init__(self, store, classifier=None, horizon_days=None):
        self.store = store
        self.classifier = classifier
        self.horizon_days = config.REVEAL_HORIZON_DAYS if horizon_days is None else horizon_days

    def answered_today(self, user_id, now) -> bool:
        start, end = day_bounds(now)
        return self.store.count(
            "response", {"owner_id": user_id, "created_at__gte": start, "created_at__lt": end}
        ) > 0

    def active_capsules(self, user_id, now) -> list:
        capsules = self.store.query(
            "capsule",
            {
                "owner_id": user_id,
                "is_revealed": False,
                "reveal_at__lte": now + timedelta(days=self.horizon_days),
            },
            order=["-created_at", "-id"],
        )
        return [c for c in capsules if not is_effectively_revealed(c, now)]

    def is_slot_today(self, capsule, now) -> bool:
        return now.date() in slot_dates(capsule.created_at, capsule.reveal_at, capsule.initial_sentiment)

    def question_for(self, capsule) -> str:
        ordinal = self.store.count("response", {"capsule_id": capsule.id})
        return select_question(capsule.initial_sentiment, ordinal)

    def prompt(self, user_id, now=None) -> Prompt:
        now = now or utcnow()
        if self.answered_today(user_id, now):
            return Prompt(status=ALREADY_ANSWERED, message=MESSAGES[ALREADY_ANSWERED])

        capsules = self.active_capsules(user_id, now)
        if not capsules:
            return Prompt(status=NO_ACTIVE_CAPSULES, message=MESSAGES[NO_ACTIVE_CAPSULES])

        for capsule in capsules:
            if self.is_slot_today(capsule, now):
                return Prompt(
                    status=QUESTION,
                    capsule_id=capsule.id,
                    question=self.question_for(capsule),
                    question_date=now.date(),
                )
        return Prompt(status=NO_SLOT_TODAY, message=MESSAGES[NO_SLOT_TODAY])

    def submit(self, user_id, capsule_id, response_text, now=None):
        """
        Store the answer to today's question for a capsule.

        Raises AlreadyAnswered if the user answered earlier today,
        ValidationError if the capsule has no slot today or is already
        revealed, and DuplicateResponse if another request won the race for
        the same slot.
        """
        now = now or utcnow()
        response_text = (response_text or "").strip()
        if not response_text:
            raise ValidationError("Please enter a response to submit")

        capsule = self.store.get("capsule", capsule_id)
        if capsule is None or capsule.owner_id != user_id:
            raise NotFound("Capsule not found")
        if is_effectively_revealed(capsule, now):
            raise ValidationError("This capsule has already been revealed")
        if self.answered_today(user_id, now):
            raise AlreadyAnswered(MESSAGES[ALREADY_ANSWERED])
        if not self.is_slot_today(capsule, now):
            raise ValidationError("No reflection is scheduled for this capsule today")

        question = self.question_for(capsule)
        sentiment = None
        if len(response_text) > MIN_ANALYZED_LENGTH:
            sentiment = analyze_best_effort(self.classifier, response_text)

        response = self.store.create(
            "response",
            capsule_id=capsule.id,
            owner_id=user_id,
            question_text=question,
            question_date=now.date(),
            response_text=response_text,
            sentiment_label=sentiment.label if sentiment else None,
            sentiment_score=sentiment.score if sentiment else None,
            created_at=now,
        )
        logger.info(f"Saved reflection {response.id} for capsule {capsule.id} on {now.date()}")
        return response
