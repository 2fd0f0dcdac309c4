from contextlib import asynccontextmanager
from datetime import date, datetime, timezone
from typing import List, Optional

import jwt
from fastapi import Depends, FastAPI, HTTPException, Request, status
from fastapi.responses import JSONResponse
from fastapi.security import OAuth2PasswordBearer
from pydantic import BaseModel
from sqlalchemy.orm import Session

from future_echoes import config
from future_echoes.capsules import (
    capsule_analytics, create_capsule, get_owned_capsule, is_effectively_revealed, utcnow,
)
from future_echoes.database import get_db, init_db
from future_echoes.errors import (
    AlreadyAnswered, CreationCancelled, DuplicateResponse, NotFound, PersistenceError, ValidationError,
)
from future_echoes.questionnaire import Prompt, QuestionnaireEngine
from future_echoes.sentiment import Sentiment, build_classifier
from future_echoes.store import SqlRecordStore
from future_echoes.trends import JourneySummary, summarize

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/login")
classifier = build_classifier()


class CapsuleCreate(BaseModel):
    message: str = ""
    reveal_at: datetime
    media_refs: List[str] = []
    confirm_negative: bool = False


class CapsuleResponse(BaseModel):
    id: int
    message: Optional[str] = None
    created_at: datetime
    reveal_at: datetime
    is_revealed: bool
    sentiment: Optional[Sentiment] = None
    media_refs: List[str] = []


class AnalyticsResponse(BaseModel):
    total_capsules: int
    pending_capsules: int
    revealed_capsules: int


class ReflectionCreate(BaseModel):
    capsule_id: int
    response: str


class ReflectionResponse(BaseModel):
    id: int
    capsule_id: int
    question: str
    question_date: date
    response: str
    sentiment: Optional[Sentiment] = None


@asynccontextmanager
async def lifespan(app: FastAPI):
    init_db()
    yield


app = FastAPI(
    title="Future Echoes API",
    description="API for creating time capsules and reflecting on them until they reveal",
    version="1.0.0",
    lifespan=lifespan,
)


@app.exception_handler(PersistenceError)
async def persistence_error_handler(request: Request, exc: PersistenceError):
    return JSONResponse(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, content={"detail": str(exc)})


def get_store(db: Session = Depends(get_db)):
    return SqlRecordStore(db)


def get_classifier():
    return classifier


def get_current_user(token: str = Depends(oauth2_scheme), store: SqlRecordStore = Depends(get_store)):
    """
    Resolve the bearer token to a user. Tokens are issued by the auth
    service; users are provisioned here on first sight.
    """
    try:
        payload = jwt.decode(token, config.SECRET_KEY, algorithms=["HS256"])
    except jwt.PyJWTError as e:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=f"Invalid token: {str(e)}")
    username = payload.get("username")
    if username is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token")
    users = store.query("user", {"username": username})
    if users:
        return users[0]
    return store.create("user", username=username, email=payload.get("email"))


def to_naive_utc(value: datetime) -> datetime:
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


def capsule_out(capsule, now) -> CapsuleResponse:
    revealed = is_effectively_revealed(capsule, now)
    return CapsuleResponse(
        id=capsule.id,
        message=capsule.message if revealed else None,
        created_at=capsule.created_at,
        reveal_at=capsule.reveal_at,
        is_revealed=revealed,
        sentiment=capsule.initial_sentiment,
        media_refs=(capsule.media_refs or []) if revealed else [],
    )


def load_capsule(store, user, capsule_id):
    try:
        return get_owned_capsule(store, user.id, capsule_id)
    except NotFound:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Capsule not found")


@app.get("/status")
def service_status():
    return {"status": "running"}


@app.get("/capsules/analytics", response_model=AnalyticsResponse)
def get_analytics(user=Depends(get_current_user), store: SqlRecordStore = Depends(get_store)):
    """
    Counts of the user's capsules.
    - **pending_capsules**: capsules still hidden.
    - **revealed_capsules**: capsules whose reveal time has passed.
    """
    return AnalyticsResponse(**capsule_analytics(store, user.id))


@app.post("/capsules", response_model=CapsuleResponse, status_code=status.HTTP_201_CREATED)
def post_capsule(
    capsule: CapsuleCreate,
    user=Depends(get_current_user),
    store: SqlRecordStore = Depends(get_store),
    sentiment_classifier=Depends(get_classifier),
):
    """
    Create a new time capsule.
    - **message**: text for the future; may be empty when media is attached.
    - **reveal_at**: when the capsule opens, at most 30 days away.
    - **confirm_negative**: set after the user agreed to keep a negative message.

    Returns 409 with the confirmation prompt when the message reads as
    negative and has not been confirmed.
    """
    now = utcnow()
    try:
        created = create_capsule(
            store,
            sentiment_classifier,
            user.id,
            capsule.message,
            to_naive_utc(capsule.reveal_at),
            capsule.media_refs,
            now=now,
            confirm=lambda prompt: capsule.confirm_negative,
        )
    except ValidationError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except CreationCancelled as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))
    return capsule_out(created, now)


@app.get("/capsules", response_model=List[CapsuleResponse])
def list_capsules(user=Depends(get_current_user), store: SqlRecordStore = Depends(get_store)):
    """
    List all capsules for the authenticated user, newest first. Messages of
    unrevealed capsules are withheld.
    """
    now = utcnow()
    capsules = store.query("capsule", {"owner_id": user.id}, order=["-created_at"])
    return [capsule_out(c, now) for c in capsules]


@app.get("/capsules/{id}", response_model=CapsuleResponse)
def get_capsule(id: int, user=Depends(get_current_user), store: SqlRecordStore = Depends(get_store)):
    """
    Get a specific capsule by ID.
    Returns 403 if the capsule is not yet revealed.
    """
    now = utcnow()
    capsule = load_capsule(store, user, id)
    if not is_effectively_revealed(capsule, now):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Capsule not yet available")
    return capsule_out(capsule, now)


@app.get("/capsules/{id}/journey", response_model=JourneySummary)
def get_journey(id: int, user=Depends(get_current_user), store: SqlRecordStore = Depends(get_store)):
    """
    Emotional-journey summary of the reflections collected for a revealed capsule.
    """
    capsule = load_capsule(store, user, id)
    if not is_effectively_revealed(capsule, utcnow()):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Capsule not yet available")
    responses = store.query("response", {"capsule_id": capsule.id}, order=["question_date"])
    return summarize(capsule, responses)


@app.delete("/capsules/{id}")
def delete_capsule(id: int, user=Depends(get_current_user), store: SqlRecordStore = Depends(get_store)):
    """
    Delete a capsule and its reflections.
    """
    capsule = load_capsule(store, user, id)
    store.delete("capsule", capsule.id)
    return {"message": "Capsule deleted"}


@app.get("/questionnaire/today", response_model=Prompt)
def get_todays_question(user=Depends(get_current_user), store: SqlRecordStore = Depends(get_store)):
    """
    Today's reflection question, or a friendly message when none is due.
    """
    return QuestionnaireEngine(store).prompt(user.id)


@app.post("/questionnaire/responses", response_model=ReflectionResponse, status_code=status.HTTP_201_CREATED)
def post_reflection(
    reflection: ReflectionCreate,
    user=Depends(get_current_user),
    store: SqlRecordStore = Depends(get_store),
    sentiment_classifier=Depends(get_classifier),
):
    """
    Answer today's question for a capsule.
    """
    engine = QuestionnaireEngine(store, sentiment_classifier)
    try:
        saved = engine.submit(user.id, reflection.capsule_id, reflection.response)
    except NotFound as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except ValidationError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except (AlreadyAnswered, DuplicateResponse) as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))
    return ReflectionResponse(
        id=saved.id,
        capsule_id=saved.capsule_id,
        question=saved.question_text,
        question_date=saved.question_date,
        response=saved.response_text,
        sentiment=saved.response_sentiment,
    )
