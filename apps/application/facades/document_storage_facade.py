import time
import logging
from typing import Dict, Optional
from django.conf import settings
from apps.domain.exceptions import TransientDependencyError
from apps.domain.interfaces.document_storage_strategy import DocumentStorageStrategy, ReadHandle
from apps.domain.models import Document
from apps.infrastructure.storage.factory import StorageFactory
from apps.infrastructure.services.content_hasher import ContentHasher

logger = logging.getLogger('apps')


class DocumentStorageFacade:
    def __init__(self, storage_factory: Optional[StorageFactory] = None, hasher: Optional[ContentHasher] = None):
        self.storage_factory = storage_factory or StorageFactory()
        self.hasher = hasher or ContentHasher()

    def _get_strategy(self, document: Document) -> DocumentStorageStrategy:
        return self.storage_factory.get_storage_for_document(document)

    def _retry_config(self, document: Document) -> Dict:
        retry_config = document.organization.storage_config.get('retry_policy', {})
        return {
            'max_retries': retry_config.get('max_retries', settings.STORAGE_RETRY_MAX_RETRIES),
            'delay': retry_config.get('delay', settings.STORAGE_RETRY_DELAY),
        }

    def _retry_operation(self, operation, max_retries: int = 3, delay: float = 1.0, **kwargs):
        retry_config = kwargs.pop('retry_config', {})
        max_retries = max(1, retry_config.get('max_retries', max_retries))
        delay = retry_config.get('delay', delay)

        for attempt in range(max_retries):
            try:
                return operation(**kwargs)
            except TransientDependencyError as e:
                if attempt == max_retries - 1:
                    raise
                logger.warning(f'Retry attempt {attempt + 1}/{max_retries} failed: {str(e)}')
                time.sleep(delay * (attempt + 1))

    def get_metadata(self, document: Document) -> Dict:
        return self._get_strategy(document).get_metadata(document)

    def get_read_handle(self, document: Document, ttl_seconds: Optional[int] = None) -> ReadHandle:
        ttl = ttl_seconds or settings.DOCUMENT_READ_HANDLE_TTL
        return self._get_strategy(document).get_read_handle(document, ttl)

    def compute_document_hash(self, document: Document) -> str:
        """Hash the document's current content, retrying transient storage failures."""
        strategy = self._get_strategy(document)

        def fetch_and_hash():
            # Cada tentativa pede um handle novo: o anterior pode ter expirado
            handle = strategy.get_read_handle(document, settings.DOCUMENT_READ_HANDLE_TTL)
            return self.hasher.hash_document(strategy, handle)

        return self._retry_operation(fetch_and_hash, retry_config=self._retry_config(document))
