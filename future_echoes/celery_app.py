from celery import Celery
from celery.schedules import crontab

from future_echoes import config

app = Celery('future_echoes', broker=config.CELERY_BROKER_URL, backend=config.CELERY_RESULT_BACKEND)
app.conf.update(
    task_serializer='json',
    accept_content=['json'],
    result_serializer='json',
    timezone='UTC',
    enable_utc=True,
    imports=('future_echoes.tasks',),
)

app.conf.beat_schedule = {
    'reveal-due-capsules': {
        'task': 'future_echoes.tasks.reveal_due_capsules',
        'schedule': crontab(minute=f'*/{config.REVEAL_SWEEP_MINUTES}'),
    },
}
