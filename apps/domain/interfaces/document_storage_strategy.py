from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from typing import Dict, Iterator, Optional

from django.utils import timezone


@dataclass(frozen=True)
class ReadHandle:
    backend: str
    location: str
    expires_at: datetime
    url: Optional[str] = None

    def is_expired(self, now: Optional[datetime] = None) -> bool:
        return self.expires_at <= (now or timezone.now())


class DocumentStorageStrategy(ABC):
    code = ''

    @abstractmethod
    def get_metadata(self, document) -> Dict:
        pass

    @abstractmethod
    def get_read_handle(self, document, ttl_seconds: int) -> ReadHandle:
        pass

    @abstractmethod
    def iter_content(self, handle: ReadHandle, chunk_size: int = 64 * 1024) -> Iterator[bytes]:
        pass
