"""Photo Storage Port - Domain interface for photo-proof files.

The workflow persists only the reference string returned by store().
"""

from abc import ABC, abstractmethod


class PhotoStoragePort(ABC):
    """Port interface for photo-proof storage."""

    @abstractmethod
    def store(self, data: bytes, document_id: str, content_type: str = "image/jpeg") -> str:
        """Store photo bytes and return an opaque reference.

        Args:
            data: Raw photo content
            document_id: Verification document the photo belongs to
            content_type: MIME type of the photo

        Returns:
            Storage reference to persist on the document
        """
        pass
