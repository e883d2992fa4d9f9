import threading
import logging
from typing import Dict, List
from django.conf import settings
from apps.domain.interfaces.document_storage_strategy import DocumentStorageStrategy
from apps.domain.models import Document
from .http_storage import HttpDocumentStorage
from .local_storage import LocalDocumentStorage

logger = logging.getLogger('apps')


class StorageFactory:
    _instance = None
    _lock = threading.Lock()
    _storages_cache: Dict[str, DocumentStorageStrategy] = {}

    def __new__(cls):
        if cls._instance is None:
            with cls._lock:
                if cls._instance is None:
                    cls._instance = super(StorageFactory, cls).__new__(cls)
        return cls._instance

    def get_storage(self, backend_code: str) -> DocumentStorageStrategy:
        if backend_code not in self._storages_cache:
            with self._lock:
                if backend_code not in self._storages_cache:
                    storage = self._create_strategy(backend_code)
                    self._storages_cache[backend_code] = storage

        return self._storages_cache[backend_code]

    def get_storage_for_document(self, document) -> DocumentStorageStrategy:
        return self.get_storage(document.storage_backend)

    def _create_strategy(self, backend_code: str) -> DocumentStorageStrategy:
        code = backend_code.lower()
        if code == 'http':
            return HttpDocumentStorage(timeout=getattr(settings, 'STORAGE_HTTP_TIMEOUT', 30))
        elif code == 'local':
            return LocalDocumentStorage()
        else:
            raise ValueError(f'Unknown storage backend: {backend_code}')

    def available_backends(self) -> List[str]:
        return [code for code, _label in Document.STORAGE_CHOICES]

    def clear_cache(self):
        with self._lock:
            self._storages_cache.clear()
