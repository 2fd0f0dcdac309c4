import logging
from datetime import datetime, timedelta, timezone

from future_echoes import config
from future_echoes.errors import CreationCancelled, NotFound, ValidationError
from future_echoes.sentiment import NEGATIVE, analyze_best_effort, sentiment_class

logger = logging.getLogger(__name__)

NEGATIVE_CONFIRMATION_PROMPT = (
    "Your message seems quite negative. Are you sure you want to save this for your future self?"
)


def utcnow():
    """Naive UTC now, matching how timestamps are stored."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def is_effectively_revealed(capsule, now) -> bool:
    """A capsule is revealed once flagged, or once its reveal time has passed."""
    return bool(capsule.is_revealed) or capsule.reveal_at <= now


def validate_reveal_at(reveal_at, now, horizon_days=None):
    horizon_days = config.REVEAL_HORIZON_DAYS if horizon_days is None else horizon_days
    if reveal_at <= now:
        raise ValidationError("Reveal date and time must be in the future")
    if reveal_at > now + timedelta(days=horizon_days):
        raise ValidationError(f"Reveal date must be within {horizon_days} days")


def create_capsule(store, classifier, owner_id, message, reveal_at, media_refs=None, now=None, confirm=None):
    """
    Validate and store a new capsule.

    The message is classified once, here, and never again. When it reads as
    negative and a confirm(prompt) callable is given, the owner has to agree
    before anything is saved.
    """
    now = now or utcnow()
    message = (message or "").strip()
    media_refs = list(media_refs or [])
    if not message and not media_refs:
        raise ValidationError("A capsule needs a message or at least one attachment")
    validate_reveal_at(reveal_at, now)

    sentiment = analyze_best_effort(classifier, message)
    if confirm is not None and sentiment is not None and sentiment_class(sentiment) == NEGATIVE:
        if not confirm(NEGATIVE_CONFIRMATION_PROMPT):
            logger.info(f"Capsule creation cancelled by user {owner_id} at the confirmation prompt")
            raise CreationCancelled(NEGATIVE_CONFIRMATION_PROMPT)

    capsule = store.create(
        "capsule",
        owner_id=owner_id,
        message=message,
        created_at=now,
        reveal_at=reveal_at,
        is_revealed=False,
        sentiment_label=sentiment.label if sentiment else None,
        sentiment_score=sentiment.score if sentiment else None,
        media_refs=media_refs,
    )
    logger.info(f"Created capsule {capsule.id} for user {owner_id}, reveal at {reveal_at}")
    return capsule


def get_owned_capsule(store, owner_id, capsule_id):
    capsule = store.get("capsule", capsule_id)
    if capsule is None or capsule.owner_id != owner_id:
        raise NotFound("Capsule not found")
    return capsule


def capsule_analytics(store, owner_id, now=None) -> dict:
    now = now or utcnow()
    capsules = store.query("capsule", {"owner_id": owner_id})
    revealed = sum(1 for c in capsules if is_effectively_revealed(c, now))
    return {
        "total_capsules": len(capsules),
        "pending_capsules": len(capsules) - revealed,
        "revealed_capsules": revealed,
    }
