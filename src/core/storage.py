from google.api_core.exceptions import NotFound
from google.cloud import storage
from google.oauth2 import service_account
import logging
from typing import Optional, Union

from src.config.storage_config import GCS_CONFIG, validate_gcs_config

logger = logging.getLogger(__name__)

class CloudStorage:
    def __init__(self, bucket=None, config: dict = None):
        """
        Connect to the configured GCS bucket.

        Args:
            bucket: Already-constructed bucket handle; skips client setup when given
            config: GCS settings, defaults to GCS_CONFIG from the environment
        """
        config = config if config is not None else GCS_CONFIG
        self.bucket_name = config.get("bucket_name")

        if bucket is not None:
            self.bucket = bucket
            self.bucket_name = self.bucket_name or bucket.name
            return

        try:
            validate_gcs_config(config)
            creds_path = config["credentials_path"]
            logger.info(f"Loading credentials from: {creds_path}")

            credentials = service_account.Credentials.from_service_account_file(
                creds_path,
                scopes=["https://www.googleapis.com/auth/cloud-platform"]
            )
            self.project_id = config["project_id"]
            logger.info(f"Using project_id: {self.project_id}, bucket_name: {self.bucket_name}")

            self.client = storage.Client(
                credentials=credentials,
                project=self.project_id
            )
            self.bucket = self.client.get_bucket(self.bucket_name)
            logger.info(f"Connected to bucket: {self.bucket_name}")

        except Exception as e:
            logger.error(f"Storage initialization failed: {str(e)}")
            raise RuntimeError(f"Failed to initialize GCS storage: {str(e)}") from e

    def store_file(self, file_path: str, content: Union[str, bytes], content_type: str = 'text/plain') -> str:
        """Store a file in GCS, replacing any existing object at the same path"""
        try:
            blob = self.bucket.blob(file_path)

            # Convert content to bytes if it's a string
            if isinstance(content, str):
                content_bytes = content.encode('utf-8')
            else:
                content_bytes = content

            logger.info(f"Uploading {len(content_bytes)} bytes to {file_path}")
            blob.upload_from_string(content_bytes, content_type=content_type)

            gcs_url = f"gs://{self.bucket_name}/{file_path}"
            logger.info(f"Successfully stored file at: {gcs_url}")
            return gcs_url
        except Exception as e:
            logger.error(f"Failed to store file {file_path}: {str(e)}")
            raise

    def read_file(self, file_path: str) -> Optional[str]:
        """Read a text object, or None when it does not exist"""
        blob = self.bucket.blob(file_path)
        try:
            return blob.download_as_text(encoding='utf-8')
        except NotFound:
            logger.info(f"No object at gs://{self.bucket_name}/{file_path}")
            return None

    def list_files(self, prefix: str = None) -> list:
        """
        List all files in bucket with optional prefix
        Args:
            prefix: Folder prefix (e.g., 'vector_store/')
        Returns:
            List of file metadata dictionaries
        """
        try:
            files = []
            for blob in self.bucket.list_blobs(prefix=prefix):
                files.append({
                    'name': blob.name,
                    'size': blob.size,
                    'updated': blob.updated,
                    'url': f"gs://{self.bucket_name}/{blob.name}"
                })
            return files
        except Exception as e:
            logger.error(f"Failed to list files with prefix {prefix}: {str(e)}")
            raise

    @staticmethod
    def join(*parts: str) -> str:
        return "/".join(p.strip("/") for p in parts if p)
