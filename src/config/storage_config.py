import os
from pathlib import Path
from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()

# Project root directory
ROOT_DIR = Path(__file__).parent.parent.parent

# GCS Configuration for the "gcs" vector store backend
GCS_CONFIG = {
    "project_id": os.getenv("GCS_PROJECT_ID"),
    "bucket_name": os.getenv("GCS_BUCKET_NAME"),
    "credentials_path": os.getenv("GOOGLE_APPLICATION_CREDENTIALS", str(ROOT_DIR / "gcs-credentials.json"))
}

def validate_gcs_config(config: dict = None):
    """Validate GCS configuration"""
    config = config if config is not None else GCS_CONFIG
    missing = []
    if not config.get("project_id"):
        missing.append("GCS_PROJECT_ID")
    if not config.get("bucket_name"):
        missing.append("GCS_BUCKET_NAME")
    if not config.get("credentials_path") or not Path(config["credentials_path"]).exists():
        missing.append("Service Account Credentials File")

    if missing:
        raise ValueError(f"Missing required GCS configuration: {', '.join(missing)}")
