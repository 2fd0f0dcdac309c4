import os
from dotenv import load_dotenv

load_dotenv()

SECRET_KEY = os.environ.get('SECRET_KEY')
DATABASE_URL = os.environ.get('DATABASE_URL', 'sqlite:///./future_echoes.db')

CELERY_BROKER_URL = os.environ.get('CELERY_BROKER_URL', 'redis://localhost:6379/0')
CELERY_RESULT_BACKEND = os.environ.get('CELERY_RESULT_BACKEND', 'redis://localhost:6379/0')
REVEAL_SWEEP_MINUTES = int(os.environ.get('REVEAL_SWEEP_MINUTES', '10'))

# Capsules may not be scheduled further out than this.
REVEAL_HORIZON_DAYS = int(os.environ.get('REVEAL_HORIZON_DAYS', '30'))

SENTIMENT_API_URL = os.environ.get('SENTIMENT_API_URL', '')
SENTIMENT_API_KEY = os.environ.get('SENTIMENT_API_KEY', '')
SENTIMENT_TIMEOUT = float(os.environ.get('SENTIMENT_TIMEOUT', '10'))

SMTP_HOST = os.environ.get('SMTP_HOST', '')
SMTP_PORT = int(os.environ.get('SMTP_PORT', '587'))
SMTP_USER = os.environ.get('SMTP_USER', '')
SMTP_PASSWORD = os.environ.get('SMTP_PASSWORD', '')
SMTP_FROM = os.environ.get('SMTP_FROM', 'Future Echoes <capsules@localhost>')

APP_URL = os.environ.get('APP_URL', 'http://localhost:8000')
