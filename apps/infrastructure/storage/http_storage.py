import logging
from datetime import timedelta
from typing import Dict, Iterator

import requests
from django.utils import timezone

from apps.domain.exceptions import TransientDependencyError, NotFound
from apps.domain.interfaces.document_storage_strategy import DocumentStorageStrategy, ReadHandle

logger = logging.getLogger('apps')


class HttpDocumentStorage(DocumentStorageStrategy):
    """Documents served from a URL (object store, CDN or pre-signed link)."""

    code = 'http'

    def __init__(self, timeout: int = 30):
        self.timeout = timeout
        self.headers = {
            'User-Agent': 'esign-api/1.0 (+integrity-check)',
            'Accept': '*/*',
        }

    def get_metadata(self, document) -> Dict:
        return {
            'organization_id': document.organization_id,
            'name': document.name,
            'mime_type': document.mime_type,
            'location': document.file_url,
        }

    def get_read_handle(self, document, ttl_seconds: int) -> ReadHandle:
        if not document.file_url:
            raise NotFound('File not available for download', details={'document_id': document.id})
        return ReadHandle(
            backend=self.code,
            location=document.file_url,
            url=document.file_url,
            expires_at=timezone.now() + timedelta(seconds=ttl_seconds),
        )

    def iter_content(self, handle: ReadHandle, chunk_size: int = 64 * 1024) -> Iterator[bytes]:
        if handle.is_expired():
            raise TransientDependencyError('Document read handle expired before use')

        url = handle.url
        try:
            with requests.get(url, headers=self.headers, timeout=self.timeout, stream=True, allow_redirects=True) as response:
                if response.status_code == 404:
                    logger.error(f'Document not found (404) at URL: {url}')
                    raise TransientDependencyError('Document not found in storage (404)', details={'url': url})
                if response.status_code in (401, 403):
                    logger.error(f'Access denied ({response.status_code}) when downloading document from URL: {url}')
                    raise TransientDependencyError(
                        f'Storage refused access to document ({response.status_code})', details={'url': url}
                    )
                response.raise_for_status()

                for chunk in response.iter_content(chunk_size=chunk_size):
                    if chunk:
                        yield chunk
        except requests.exceptions.Timeout:
            logger.error(f'Timeout when downloading document from URL: {url}')
            raise TransientDependencyError('Timeout when downloading document', details={'url': url})
        except requests.exceptions.ConnectionError as e:
            logger.error(f'Connection error when downloading document from URL: {url} - {str(e)}')
            raise TransientDependencyError('Connection error when downloading document', details={'url': url})
        except requests.exceptions.RequestException as e:
            status_code = getattr(e.response, 'status_code', 'unknown')
            logger.error(f'Error downloading document from URL: {url} - {str(e)}')
            raise TransientDependencyError(
                f'Error downloading document. Status: {status_code}', details={'url': url}
            )
