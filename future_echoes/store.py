import logging

from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from future_echoes.errors import DuplicateResponse, PersistenceError
from future_echoes.models import Capsule, QuestionnaireResponse, User

logger = logging.getLogger(__name__)

KINDS = {
    "capsule": Capsule,
    "response": QuestionnaireResponse,
    "user": User,
}

OPERATORS = {
    "eq": lambda column, value: column == value,
    "lt": lambda column, value: column < value,
    "lte": lambda column, value: column <= value,
    "gt": lambda column, value: column > value,
    "gte": lambda column, value: column >= value,
}


def _model(kind):
    try:
        return KINDS[kind]
    except KeyError:
        raise ValueError(f"Unknown record kind: {kind}")


def _criteria(model, filters):
    """
    Turn {"owner_id": 1, "reveal_at__lte": now} into SQLAlchemy criteria.
    """
    criteria = []
    for key, value in (filters or {}).items():
        field, _, op = key.partition("__")
        if op and op not in OPERATORS:
            raise ValueError(f"Unknown filter operator: {op}")
        column = getattr(model, field)
        criteria.append(OPERATORS[op or "eq"](column, value))
    return criteria


def _ordering(model, order):
    clauses = []
    for name in order or ():
        if name.startswith("-"):
            clauses.append(getattr(model, name[1:]).desc())
        else:
            clauses.append(getattr(model, name).asc())
    return clauses


class SqlRecordStore:
    """CRUD and filtered queries over capsules, responses and users."""

    def __init__(self, db):
        self.db = db

    def create(self, kind, **fields):
        model = _model(kind)
        record = model(**fields)
        try:
            self.db.add(record)
            self.db.commit()
        except IntegrityError as e:
            self.db.rollback()
            if model is QuestionnaireResponse:
                raise DuplicateResponse(f"Duplicate response: {e.orig}") from e
            raise PersistenceError(f"Could not create {kind}: {e.orig}") from e
        except SQLAlchemyError as e:
            self.db.rollback()
            raise PersistenceError(f"Could not create {kind}: {str(e)}") from e
        self.db.refresh(record)
        return record

    def get(self, kind, id):
        model = _model(kind)
        try:
            return self.db.get(model, id)
        except SQLAlchemyError as e:
            raise PersistenceError(f"Could not load {kind} {id}: {str(e)}") from e

    def update(self, kind, id, fields, condition=None) -> int:
        """
        Apply fields to one record. With a condition, the update only happens
        while the record still matches it. Returns the number of rows changed.
        """
        model = _model(kind)
        try:
            affected = (
                self.db.query(model)
                .filter(model.id == id, *_criteria(model, condition))
                .update(fields, synchronize_session=False)
            )
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            raise PersistenceError(f"Could not update {kind} {id}: {str(e)}") from e
        return affected

    def delete(self, kind, id):
        model = _model(kind)
        try:
            record = self.db.get(model, id)
            if record is not None:
                self.db.delete(record)
                self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            raise PersistenceError(f"Could not delete {kind} {id}: {str(e)}") from e

    def query(self, kind, filters=None, order=None) -> list:
        model = _model(kind)
        try:
            return (
                self.db.query(model)
                .filter(*_criteria(model, filters))
                .order_by(*_ordering(model, order))
                .all()
            )
        except SQLAlchemyError as e:
            raise PersistenceError(f"Could not query {kind}: {str(e)}") from e

    def count(self, kind, filters=None) -> int:
        model = _model(kind)
        try:
            return self.db.query(model).filter(*_criteria(model, filters)).count()
        except SQLAlchemyError as e:
            raise PersistenceError(f"Could not count {kind}: {str(e)}") from e
