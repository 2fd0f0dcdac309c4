from sqlalchemy import (
    Boolean, Column, Date, DateTime, Float, ForeignKey, Integer, JSON, String, Text,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship

from future_echoes.database import Base
from future_echoes.sentiment import Sentiment


class User(Base):
    __tablename__ = "users"
    id = Column(Integer, primary_key=True, index=True)
    username = Column(String, unique=True, index=True, nullable=False)
    email = Column(String)


class Capsule(Base):
    __tablename__ = "capsules"
    id = Column(Integer, primary_key=True, index=True)
    owner_id = Column(Integer, ForeignKey("users.id"), index=True, nullable=False)
    message = Column(Text, nullable=False, default="")
    created_at = Column(DateTime, nullable=False)
    reveal_at = Column(DateTime, index=True, nullable=False)
    is_revealed = Column(Boolean, nullable=False, default=False, index=True)
    sentiment_label = Column(String)
    sentiment_score = Column(Float)
    media_refs = Column(JSON, nullable=False, default=list)

    owner = relationship("User")
    responses = relationship(
        "QuestionnaireResponse",
        back_populates="capsule",
        cascade="all, delete-orphan",
        order_by="QuestionnaireResponse.question_date",
    )

    @property
    def initial_sentiment(self):
        if self.sentiment_label is None:
            return None
        return Sentiment(label=self.sentiment_label, score=self.sentiment_score or 0.0)

    def __str__(self):
        return f"Capsule {self.id} by user {self.owner_id} (reveal: {self.reveal_at})"


class QuestionnaireResponse(Base):
    __tablename__ = "questionnaire_responses"
    __table_args__ = (
        UniqueConstraint("capsule_id", "question_date", name="uq_response_capsule_date"),
    )
    id = Column(Integer, primary_key=True, index=True)
    capsule_id = Column(Integer, ForeignKey("capsules.id", ondelete="CASCADE"), index=True, nullable=False)
    owner_id = Column(Integer, ForeignKey("users.id"), index=True, nullable=False)
    question_text = Column(Text, nullable=False)
    question_date = Column(Date, nullable=False)
    response_text = Column(Text, nullable=False)
    sentiment_label = Column(String)
    sentiment_score = Column(Float)
    created_at = Column(DateTime, nullable=False, index=True)

    capsule = relationship("Capsule", back_populates="responses")

    @property
    def response_sentiment(self):
        if self.sentiment_label is None:
            return None
        return Sentiment(label=self.sentiment_label, score=self.sentiment_score or 0.0)
