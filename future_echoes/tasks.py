import logging

from future_echoes.celery_app import app
from future_echoes.database import SessionLocal
from future_echoes.notifications import build_sender
from future_echoes.store import SqlRecordStore
from future_echoes.sweeper import RevealSweeper

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


@app.task
def reveal_due_capsules():
    logger.info("Starting periodic reveal sweep")
    db = SessionLocal()
    try:
        report = RevealSweeper(SqlRecordStore(db), build_sender()).run()
        return report.model_dump()
    except Exception as e:
        logger.error(f"Error in reveal_due_capsules: {str(e)}")
        raise
    finally:
        db.close()
