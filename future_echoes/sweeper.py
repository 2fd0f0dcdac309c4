import logging
from typing import Dict

from pydantic import BaseModel, Field

from future_echoes.capsules import utcnow
from future_echoes.errors import NotificationFailed, PersistenceError
from future_echoes.trends import summarize

logger = logging.getLogger(__name__)


class SweepReport(BaseModel):
    total_due: int = 0
    revealed_count: int = 0
    per_capsule_errors: Dict[int, str] = Field(default_factory=dict)
    skipped: list = Field(default_factory=list)


class RevealSweeper:
    """
    Reveals every capsule whose reveal time has passed and notifies its owner.

    The flip is a conditional update, so overlapping sweeps never notify the
    same capsule twice: whichever sweep changes zero rows skips the capsule.
    A notification that fails after the flip is reported, not retried. A
    store failure aborts the sweep; unreached capsules stay due for the next run.
    """

    def __init__(self, store, sender):
        self.store = store
        self.sender = sender

    def due_capsules(self, now) -> list:
        return self.store.query(
            "capsule",
            {"is_revealed": False, "reveal_at__lte": now},
            order=["reveal_at", "id"],
        )

    def run(self, now=None) -> SweepReport:
        now = now or utcnow()
        logger.info(f"Checking for capsules to reveal at {now.isoformat()}")
        capsules = self.due_capsules(now)
        report = SweepReport(total_due=len(capsules))
        if not capsules:
            logger.info("No capsules to reveal at this time")
            return report

        logger.info(f"Found {len(capsules)} capsules to reveal")
        for capsule in capsules:
            capsule_id = capsule.id
            try:
                if not self.reveal(capsule_id, now):
                    logger.info(f"Capsule {capsule_id} was already revealed by another sweep")
                    report.skipped.append(capsule_id)
                    continue
                report.revealed_count += 1
                self.notify(capsule_id)
            except PersistenceError:
                raise
            except Exception as e:
                logger.error(f"Error processing capsule {capsule_id}: {str(e)}")
                report.per_capsule_errors[capsule_id] = str(e)

        logger.info(
            f"Revealed {report.revealed_count} of {report.total_due} capsules, "
            f"{len(report.per_capsule_errors)} errors"
        )
        return report

    def reveal(self, capsule_id, now) -> bool:
        affected = self.store.update(
            "capsule",
            capsule_id,
            {"is_revealed": True},
            condition={"is_revealed": False, "reveal_at__lte": now},
        )
        return affected == 1

    def notify(self, capsule_id):
        capsule = self.store.get("capsule", capsule_id)
        owner = self.store.get("user", capsule.owner_id)
        if owner is None or not owner.email:
            raise NotificationFailed(f"No email found for user {capsule.owner_id}")

        responses = self.store.query("response", {"capsule_id": capsule_id}, order=["question_date"])
        summary = summarize(capsule, responses)
        template_data = {
            "capsule_id": capsule_id,
            "reveal_at": capsule.reveal_at,
            "summary": summary.model_dump(),
        }
        if not self.sender.send(owner.email, template_data):
            raise NotificationFailed(f"Failed to send notification to {owner.email}")
        logger.info(f"Notification sent for capsule {capsule_id}")
