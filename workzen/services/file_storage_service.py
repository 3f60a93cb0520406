"""
WorkZen - File Storage Service

Local file storage for onboarding documents.

Files are stored as:
    {storage_root}/onboarding/{onboarding_id}/{doc_key}_{unique_id}_{filename}
"""

import asyncio
import logging
import uuid
from pathlib import Path
from typing import Optional

from workzen.config import settings
from workzen.utils.error_handling import NotFoundException, ValidationException

logger = logging.getLogger(__name__)

ALLOWED_EXTENSIONS = {".jpg", ".jpeg", ".png", ".pdf"}


class FileStorageService:
    """Stores uploaded documents on the local filesystem."""
    
    def __init__(self, root: Optional[str] = None, max_file_size: Optional[int] = None):
        self.local_storage_path = Path(root or settings.storage_local_path)
        self.max_file_size = max_file_size or settings.max_file_size
    
    @staticmethod
    def _sanitize(filename: str) -> str:
        return "".join(
            c if c.isalnum() or c in ".-_" else "_"
            for c in Path(filename or "upload").name
        )
    
    def validate(self, filename: str, content: bytes) -> None:
        """Reject oversized files and unsupported extensions."""
        extension = Path(filename or "").suffix.lower()
        if extension not in ALLOWED_EXTENSIONS:
            raise ValidationException(
                f"Unsupported file type '{extension or filename}'. "
                f"Allowed: {', '.join(sorted(ALLOWED_EXTENSIONS))}",
                field="file",
            )
        if len(content) > self.max_file_size:
            raise ValidationException(
                f"File '{filename}' exceeds the maximum size of {self.max_file_size} bytes",
                field="file",
            )
    
    async def save_onboarding_document(
        self,
        onboarding_id: uuid.UUID,
        doc_key: str,
        filename: str,
        content: bytes,
    ) -> str:
        """
        Persist a document and return its storage path (relative to the root).
        """
        self.validate(filename, content)
        
        relative = Path("onboarding") / str(onboarding_id) / (
            f"{doc_key}_{uuid.uuid4().hex[:12]}_{self._sanitize(filename)}"
        )
        target = self.local_storage_path / relative
        
        def _write() -> None:
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_bytes(content)
        
        await asyncio.to_thread(_write)
        logger.info(f"Stored {doc_key} document for onboarding {onboarding_id} ({len(content)} bytes)")
        return relative.as_posix()
    
    def resolve(self, stored_path: str) -> Path:
        """Absolute path of a stored document; refuses paths outside the root."""
        root = self.local_storage_path.resolve()
        path = (root / stored_path).resolve()
        if root not in path.parents or not path.is_file():
            raise NotFoundException("Document", message="Document not found")
        return path
