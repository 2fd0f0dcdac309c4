from future_echoes.sentiment import NEGATIVE, NEUTRAL, POSITIVE, sentiment_class

QUESTION_BANK = {
    POSITIVE: (
        "What are you grateful for today?",
        "What's one thing that made you smile recently?",
        "What's something you're looking forward to?",
        "Who has made a positive difference in your week?",
        "What's a recent win you'd like to remember?",
    ),
    NEUTRAL: (
        "How would you describe your week so far?",
        "What's been on your mind lately?",
        "What's one thing you'd like to improve about yourself?",
        "What's something new you've noticed recently?",
        "What would make tomorrow a good day?",
    ),
    NEGATIVE: (
        "How are you feeling right now, honestly?",
        "What's a challenge you're currently facing?",
        "What's one small thing that brought you comfort recently?",
        "Who could you reach out to for support this week?",
        "What's one kind thing you can do for yourself today?",
    ),
}


def select_question(sentiment, ordinal_index: int) -> str:
    """The question shown for the nth slot of a capsule; cycles through the bank."""
    bank = QUESTION_BANK[sentiment_class(sentiment)]
    return bank[ordinal_index % len(bank)]
