import os
import logging

from dotenv import load_dotenv
import google.auth
from google.cloud import secretmanager

load_dotenv()

log = logging.getLogger(__name__)


class Config:
    SECRET_KEY = os.getenv("FLASK_SECRET_KEY", "dev-secret")

    # Empty means "ask Secret Manager at start-up"
    API_BASE_URL = os.getenv("API_BASE_URL", "")
    API_TIMEOUT = float(os.getenv("API_TIMEOUT", "10"))
    DEFAULT_API_BASE_URL = "http://localhost:3000"

    DEFAULT_THEME = os.getenv("DEFAULT_THEME", "light")
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

    # Firestore order-event audit log
    ORDER_EVENTS_ENABLED = os.getenv("ORDER_EVENTS_ENABLED", "0") == "1"
    FIRESTORE_DB_ID = os.getenv("FIRESTORE_DB_ID", "default")


def get_secret(name: str) -> str | None:
    """
    Read a secret from Google Secret Manager.
    Falls back to environment variable for local development.
    """
    env_val = os.environ.get(name)
    if env_val:
        return env_val

    project_id = os.environ.get("GOOGLE_CLOUD_PROJECT")
    if not project_id:
        return None

    try:
        creds, _ = google.auth.default()
        client = secretmanager.SecretManagerServiceClient(credentials=creds)
        secret_path = f"projects/{project_id}/secrets/{name}/versions/latest"
        resp = client.access_secret_version(request={"name": secret_path})
        return resp.payload.data.decode("utf-8").strip()

    except Exception as e:
        log.warning("Secret Manager read failed for %s: %s", name, e)
        return None
