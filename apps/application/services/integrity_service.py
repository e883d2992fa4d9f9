import logging
from dataclasses import dataclass
from typing import Optional
from apps.domain.exceptions import IntegrityViolation, TransientDependencyError, NotFound
from apps.domain.models import SignatureRequest
from apps.application.facades.document_storage_facade import DocumentStorageFacade

logger = logging.getLogger('apps')

MATCH = 'match'
MISMATCH = 'mismatch'
NO_BASELINE = 'no_baseline'


@dataclass(frozen=True)
class IntegrityResult:
    outcome: str
    current_hash: Optional[str] = None
    baseline_hash: Optional[str] = None


def classify(baseline_hash: Optional[str], current_hash: Optional[str]) -> str:
    if not baseline_hash or current_hash is None:
        return NO_BASELINE
    if baseline_hash.lower() == current_hash.lower():
        return MATCH
    return MISMATCH


class IntegrityVerifier:
    """Compares the document's current digest with the request's baseline.

    Only a confirmed byte mismatch fails closed. Storage failures degrade to
    a no-baseline result so an unavailable document store does not block
    signing.
    """

    def __init__(self, storage_facade: Optional[DocumentStorageFacade] = None):
        self.storage_facade = storage_facade or DocumentStorageFacade()

    def _current_hash(self, signature_request: SignatureRequest) -> Optional[str]:
        try:
            return self.storage_facade.compute_document_hash(signature_request.document)
        except (TransientDependencyError, NotFound) as e:
            logger.warning(
                f'Could not hash document {signature_request.document_id} for request '
                f'{signature_request.id}, continuing without integrity check: {str(e)}'
            )
            return None

    def verify(self, signature_request: SignatureRequest) -> IntegrityResult:
        baseline = signature_request.document_hash
        current = self._current_hash(signature_request)
        outcome = classify(baseline, current)

        if outcome == MISMATCH:
            logger.error(
                f'Integrity violation on signature request {signature_request.id}: '
                f'document {signature_request.document_id} changed since the request was created '
                f'(baseline {baseline}, current {current})'
            )
            raise IntegrityViolation(
                'Document content changed after the signature request was created',
                expected_hash=baseline,
                actual_hash=current,
                details={'request_id': signature_request.id, 'document_id': signature_request.document_id},
            )

        if outcome == NO_BASELINE and baseline:
            logger.warning(f'Baseline hash present for request {signature_request.id} but document could not be read')
        elif outcome == NO_BASELINE:
            logger.info(f'Signature request {signature_request.id} has no baseline hash, recording current digest only')

        return IntegrityResult(outcome=outcome, current_hash=current, baseline_hash=baseline)
