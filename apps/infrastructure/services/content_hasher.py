import hashlib
import logging
from typing import Iterable, Optional

from django.conf import settings

from apps.domain.interfaces.document_storage_strategy import DocumentStorageStrategy, ReadHandle

logger = logging.getLogger('apps')


class ContentHasher:
    """Hex digest of a document's bytes, streamed from a storage read handle."""

    def __init__(self, algorithm: Optional[str] = None):
        self.algorithm = algorithm or getattr(settings, 'SIGNATURE_HASH_ALGORITHM', 'sha256')
        if self.algorithm not in hashlib.algorithms_available:
            raise ValueError(f'Unsupported hash algorithm: {self.algorithm}')

    def hash_chunks(self, chunks: Iterable[bytes]) -> str:
        digest = hashlib.new(self.algorithm)
        total = 0
        for chunk in chunks:
            digest.update(chunk)
            total += len(chunk)
        logger.debug(f'Hashed {total} bytes with {self.algorithm}')
        return digest.hexdigest()

    def hash_bytes(self, content: bytes) -> str:
        return self.hash_chunks([content])

    def hash_document(self, storage: DocumentStorageStrategy, handle: ReadHandle) -> str:
        """May raise TransientDependencyError from the storage backend."""
        return self.hash_chunks(storage.iter_content(handle))
