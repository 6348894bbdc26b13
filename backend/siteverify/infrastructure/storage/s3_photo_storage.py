"""S3 Photo Storage Adapter - PhotoStoragePort implementation using boto3.

Stores moderator photo proofs in S3-compatible storage (AWS S3, MinIO).
Keys are content addressed so repeated uploads of the same photo for the
same document resolve to one object.
"""

import hashlib
import logging
from io import BytesIO
from typing import Optional

import boto3
from botocore.exceptions import ClientError, NoCredentialsError

from ...domain.ports.photo_storage_port import PhotoStoragePort

logger = logging.getLogger(__name__)

_EXTENSIONS = {
    "image/jpeg": ".jpg",
    "image/png": ".png",
    "image/webp": ".webp",
    "image/heic": ".heic",
}


class StorageError(Exception):
    """Base exception for storage operations."""
    pass


class S3PhotoStorage(PhotoStoragePort):
    """S3-compatible photo-proof storage.

    Storage key format: photo-proofs/{document_id}/{sha256}{ext}

    Example:
        settings = get_settings()
        storage = S3PhotoStorage(
            endpoint_url=settings.S3_ENDPOINT_URL,
            access_key=settings.S3_ACCESS_KEY_ID,
            secret_key=settings.S3_SECRET_ACCESS_KEY,
            bucket_name=settings.S3_BUCKET_NAME,
            region=settings.S3_REGION,
        )
        reference = storage.store(photo_bytes, document_id="...")
    """

    def __init__(
        self,
        endpoint_url: Optional[str],
        access_key: str,
        secret_key: str,
        bucket_name: str,
        region: str = "us-east-1",
    ):
        """Initialize S3 photo storage.

        Args:
            endpoint_url: S3 endpoint URL (None for AWS S3, URL for MinIO)
            access_key: S3 access key ID
            secret_key: S3 secret access key
            bucket_name: S3 bucket name
            region: AWS region (default: 'us-east-1')

        Raises:
            StorageError: If S3 client initialization fails
        """
        try:
            self.s3_client = boto3.client(
                "s3",
                endpoint_url=endpoint_url,
                aws_access_key_id=access_key,
                aws_secret_access_key=secret_key,
                region_name=region,
            )
        except NoCredentialsError as e:
            raise StorageError(f"Invalid S3 credentials: {e}")
        except Exception as e:
            raise StorageError(f"Failed to initialize S3 client: {e}")

        self.bucket_name = bucket_name
        logger.info(
            f"Initialized S3 photo storage: bucket={bucket_name}, "
            f"endpoint={endpoint_url or 'AWS S3'}, region={region}"
        )

    def store(self, data: bytes, document_id: str, content_type: str = "image/jpeg") -> str:
        """Upload photo bytes and return the storage key.

        Raises:
            ValueError: If data is empty
            StorageError: If the upload fails
        """
        if not data:
            raise ValueError("Cannot store empty photo")

        sha256_hex = hashlib.sha256(data).hexdigest()
        storage_key = self.storage_key(document_id, sha256_hex, content_type)

        try:
            self.s3_client.put_object(
                Bucket=self.bucket_name,
                Key=storage_key,
                Body=BytesIO(data),
                ContentType=content_type,
                Metadata={
                    "sha256": sha256_hex,
                    "document_id": str(document_id),
                },
            )
        except ClientError as e:
            error_code = e.response.get("Error", {}).get("Code", "Unknown")
            logger.error(
                f"Photo upload failed: storage_key={storage_key}, error={error_code}"
            )
            raise StorageError(f"Failed to upload photo: {error_code}")

        logger.info(
            f"Uploaded photo proof: storage_key={storage_key}, size={len(data)}",
            extra={"document_id": str(document_id)},
        )
        return storage_key

    def exists(self, storage_key: str) -> bool:
        """HEAD the object; False on 404."""
        try:
            self.s3_client.head_object(Bucket=self.bucket_name, Key=storage_key)
            return True
        except ClientError as e:
            error_code = e.response.get("Error", {}).get("Code", "Unknown")
            if error_code in ("404", "NoSuchKey"):
                return False
            raise StorageError(f"Failed to check photo: {error_code}")

    @staticmethod
    def storage_key(document_id: str, sha256_hex: str, content_type: str) -> str:
        """Build the object key for a photo.

        Example:
            >>> S3PhotoStorage.storage_key("d1", "abc", "image/png")
            'photo-proofs/d1/abc.png'
        """
        ext = _EXTENSIONS.get(content_type, "")
        return f"photo-proofs/{document_id}/{sha256_hex}{ext}"
