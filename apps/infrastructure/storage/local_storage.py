import logging
from datetime import timedelta
from typing import Dict, Iterator, Optional

from django.core.files.storage import Storage, default_storage
from django.utils import timezone

from apps.domain.exceptions import TransientDependencyError, NotFound
from apps.domain.interfaces.document_storage_strategy import DocumentStorageStrategy, ReadHandle

logger = logging.getLogger('apps')


class LocalDocumentStorage(DocumentStorageStrategy):
    """Documents kept in Django file storage (``Document.file``)."""

    code = 'local'

    def __init__(self, storage: Optional[Storage] = None):
        self._storage = storage

    @property
    def storage(self) -> Storage:
        return self._storage or default_storage

    def get_metadata(self, document) -> Dict:
        metadata = {
            'organization_id': document.organization_id,
            'name': document.name,
            'mime_type': document.mime_type,
            'location': document.file.name if document.file else None,
        }
        if document.file:
            try:
                metadata['size'] = self.storage.size(document.file.name)
            except OSError as e:
                logger.warning(f'Could not read size of document {document.id}: {str(e)}')
        return metadata

    def get_read_handle(self, document, ttl_seconds: int) -> ReadHandle:
        if not document.file:
            raise NotFound('File not available for download', details={'document_id': document.id})
        name = document.file.name
        return ReadHandle(
            backend=self.code,
            location=name,
            url=self.storage.url(name),
            expires_at=timezone.now() + timedelta(seconds=ttl_seconds),
        )

    def iter_content(self, handle: ReadHandle, chunk_size: int = 64 * 1024) -> Iterator[bytes]:
        if handle.is_expired():
            raise TransientDependencyError('Document read handle expired before use')

        try:
            with self.storage.open(handle.location, 'rb') as stored_file:
                for chunk in stored_file.chunks(chunk_size=chunk_size):
                    yield chunk
        except OSError as e:
            logger.error(f'Error reading document {handle.location} from local storage: {str(e)}')
            raise TransientDependencyError('Error reading document from storage', details={'location': handle.location})
