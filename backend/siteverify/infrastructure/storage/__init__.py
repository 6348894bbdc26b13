"""Photo-proof storage adapters"""

from .s3_photo_storage import S3PhotoStorage, StorageError

__all__ = ["S3PhotoStorage", "StorageError"]
