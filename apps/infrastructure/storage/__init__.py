from .http_storage import HttpDocumentStorage
from .local_storage import LocalDocumentStorage
from .factory import StorageFactory

__all__ = ['HttpDocumentStorage', 'LocalDocumentStorage', 'StorageFactory']
