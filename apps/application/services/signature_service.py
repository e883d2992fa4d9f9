import re
import logging
import threading
from dataclasses import dataclass
from typing import Dict, List, Optional
from django.conf import settings
from django.contrib.auth.models import User
from django.db import IntegrityError, connection, transaction
from django.db.models import F, QuerySet
from django.utils import timezone
from apps.domain.exceptions import (
    AccessDenied, NotFound, StateConflict, ValidationError,
    IntegrityViolation, TransientDependencyError,
)
from apps.domain.models import Organization, Document, SignatureRequest, Signer, Signature
from apps.domain.policies.signer_coordinator import SignerCoordinator
from apps.domain.validators.evidence_validator import validate_evidence, Evidence
from apps.application.facades.document_storage_facade import DocumentStorageFacade
from apps.application.services.identity_service import IdentityService, Principal
from apps.application.services.integrity_service import IntegrityVerifier, IntegrityResult
from apps.application.services.notification_service import NotificationService
from apps.application.services.activity_service import ActivityService

logger = logging.getLogger('apps')

TITLE_MAX_LENGTH = 200
DESCRIPTION_MAX_LENGTH = 1000
DECLINE_REASON_MAX_LENGTH = 1000
EMAIL_PATTERN = re.compile(r'^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$')
STATUS_VALUES = [choice[0] for choice in SignatureRequest.STATUS_CHOICES]
SIGNATURES_LINK = '/signatures'


@dataclass(frozen=True)
class SignEligibility:
    can_sign: bool
    reason: Optional[str] = None
    signer_id: Optional[int] = None


class SignatureService:
    def __init__(
        self,
        identity: Optional[IdentityService] = None,
        storage_facade: Optional[DocumentStorageFacade] = None,
        integrity_verifier: Optional[IntegrityVerifier] = None,
        notifications: Optional[NotificationService] = None,
        activity: Optional[ActivityService] = None,
    ):
        self.identity = identity or IdentityService()
        self.storage_facade = storage_facade or DocumentStorageFacade()
        self.integrity_verifier = integrity_verifier or IntegrityVerifier(self.storage_facade)
        self.notifications = notifications or NotificationService()
        self.activity = activity or ActivityService()

    # ------------------------------------------------------------------
    # Criação
    # ------------------------------------------------------------------

    def create_request(
        self,
        user: User,
        organization_id: int,
        document_id: int,
        title: str,
        description: Optional[str] = None,
        expires_at=None,
        signers_data: Optional[List[Dict]] = None,
        require_all: bool = True,
        require_sequential: bool = False,
    ) -> SignatureRequest:
        principal = self.identity.require_admin_or_staff(user)

        organization = Organization.objects.filter(pk=organization_id).first()
        if organization is None:
            raise NotFound('Organization not found', details={'organization_id': organization_id})

        document = Document.objects.filter(pk=document_id).first()
        if document is None:
            raise NotFound('Document not found', details={'document_id': document_id})
        if document.organization_id != organization.id:
            raise ValidationError('Document does not belong to this organization')

        title = self._clean_title(title)
        description = self._clean_description(description)
        if expires_at is not None and expires_at <= timezone.now():
            raise ValidationError('Expiration date must be in the future')
        parties = self._normalize_signers(signers_data or [])

        try:
            with transaction.atomic():
                # Serializa criações concorrentes para o mesmo documento
                Document.objects.select_for_update().get(pk=document.pk)
                if SignatureRequest.objects.filter(document=document, status='pending').exists():
                    raise StateConflict('A pending signature request already exists for this document')

                signature_request = SignatureRequest.objects.create(
                    organization=organization,
                    document=document,
                    title=title,
                    description=description,
                    status='pending',
                    requested_by_id=principal.id,
                    requested_at=timezone.now(),
                    expires_at=expires_at,
                    signer_count=len(parties) or 1,
                    completed_count=0,
                    require_all=require_all,
                    require_sequential=require_sequential,
                )

                if parties:
                    Signer.objects.bulk_create([
                        Signer(
                            request=signature_request,
                            user_id=party.get('user_id'),
                            name=party['name'],
                            email=party['email'],
                            sequence=party['sequence'],
                        )
                        for party in parties
                    ])
                else:
                    Signer.objects.create(request=signature_request, sequence=1, is_implicit=True)
        except IntegrityError:
            raise StateConflict('A pending signature request already exists for this document')

        logger.info(
            f'Signature request {signature_request.id} created for document {document.id} '
            f'({signature_request.signer_count} signer(s), require_all={require_all}, '
            f'require_sequential={require_sequential})'
        )

        self._after_commit(
            'audit requested_signature',
            self.activity.log,
            organization_id=organization.id,
            actor_id=principal.id,
            action='requested_signature',
            resource_type='signature_request',
            resource_id=signature_request.id,
            resource_name=title,
        )
        self._after_commit('notify new request', self._notify_new_request, signature_request.id)
        transaction.on_commit(lambda: self._trigger_baseline_hash(signature_request.id))

        return signature_request

    def _clean_title(self, title: Optional[str]) -> str:
        cleaned = (title or '').strip()
        if not cleaned:
            raise ValidationError('Title is required')
        if len(cleaned) > TITLE_MAX_LENGTH:
            raise ValidationError(f'Title too long (max {TITLE_MAX_LENGTH} characters)')
        return cleaned

    def _clean_description(self, description: Optional[str]) -> Optional[str]:
        if description is None:
            return None
        cleaned = description.strip()
        if len(cleaned) > DESCRIPTION_MAX_LENGTH:
            raise ValidationError(f'Description too long (max {DESCRIPTION_MAX_LENGTH} characters)')
        return cleaned or None

    def _normalize_signers(self, signers_data: List[Dict]) -> List[Dict]:
        parties = []
        seen_sequences = set()
        for party in signers_data:
            name = (party.get('name') or '').strip()
            email = (party.get('email') or '').strip()
            if not name:
                raise ValidationError('Signer name is required')
            if not email:
                raise ValidationError('Signer email is required')
            if not EMAIL_PATTERN.match(email):
                raise ValidationError(f'Invalid email format: {email}')

            # Sem sequência explícita: segue a maior já vista
            sequence = party.get('sequence')
            if sequence is None:
                sequence = max(seen_sequences, default=0) + 1
            if isinstance(sequence, bool) or not isinstance(sequence, int) or sequence < 1:
                raise ValidationError(f'Signer sequence must be a positive integer: {sequence}')
            if sequence in seen_sequences:
                raise ValidationError(f'Duplicate signer sequence: {sequence}')
            seen_sequences.add(sequence)

            user_id = party.get('user_id')
            if user_id is not None and not User.objects.filter(pk=user_id).exists():
                raise NotFound('Signer user not found', details={'user_id': user_id})

            parties.append({'name': name, 'email': email, 'sequence': sequence, 'user_id': user_id})
        return parties

    # ------------------------------------------------------------------
    # Hash de referência (baseline)
    # ------------------------------------------------------------------

    def _trigger_baseline_hash(self, request_id: int) -> None:
        def hash_in_background():
            try:
                self.record_baseline_hash(request_id)
            except Exception as e:
                logger.error(f'Error capturing baseline hash for signature request {request_id}: {str(e)}')
            finally:
                connection.close()

        thread = threading.Thread(target=hash_in_background, daemon=True)
        thread.start()

    def record_baseline_hash(self, request_id: int) -> Optional[str]:
        """Compute and store the baseline digest if none is recorded yet.

        Idempotent: a digest already stored is never overwritten. A late write
        on a request that is already terminal is accepted but changes nothing
        else. Storage failures leave the request without integrity protection.
        """
        signature_request = (
            SignatureRequest.objects.select_related('document__organization').filter(pk=request_id).first()
        )
        if signature_request is None:
            logger.warning(f'Signature request {request_id} not found for baseline hash capture')
            return None
        if signature_request.document_hash:
            return signature_request.document_hash

        try:
            digest = self.storage_facade.compute_document_hash(signature_request.document)
        except (TransientDependencyError, NotFound) as e:
            logger.error(f'Baseline hash capture failed for signature request {request_id}: {str(e)}')
            return None

        updated = SignatureRequest.objects.filter(
            pk=request_id, document_hash__isnull=True
        ).update(document_hash=digest)

        if not updated:
            return SignatureRequest.objects.values_list('document_hash', flat=True).get(pk=request_id)

        if signature_request.is_terminal:
            logger.info(f'Baseline hash recorded after signature request {request_id} became {signature_request.status}')
        else:
            logger.info(f'Baseline hash recorded for signature request {request_id}')
        return digest

    # ------------------------------------------------------------------
    # Assinatura
    # ------------------------------------------------------------------

    def sign(
        self,
        user: User,
        request_id: int,
        signature_type: str,
        signature_data: str,
        legal_name: str,
        consent_given: bool,
        ip_address: Optional[str] = None,
        user_agent: Optional[str] = None,
    ) -> Signature:
        principal = self.identity.resolve(user)
        signature_request = self._get_request(request_id)
        self.identity.require_org_access(principal, signature_request.organization_id)
        self._ensure_pending(signature_request)

        evidence = validate_evidence(
            signature_type,
            signature_data,
            legal_name,
            consent_given,
            max_image_bytes=settings.SIGNATURE_MAX_IMAGE_BYTES,
        )

        self._expire_if_past_due(signature_request)
        signer = self._resolve_acting_signer(principal, signature_request)

        # Verificação fora da transação: nenhum lock é mantido durante o download
        try:
            integrity = self.integrity_verifier.verify(signature_request)
        except IntegrityViolation as e:
            self._after_commit(
                'audit integrity_violation',
                self.activity.log,
                organization_id=signature_request.organization_id,
                actor_id=principal.id,
                action='integrity_violation_detected',
                resource_type='signature_request',
                resource_id=signature_request.id,
                resource_name=signature_request.title,
                metadata={'expected_hash': e.expected_hash, 'actual_hash': e.actual_hash},
            )
            raise

        with transaction.atomic():
            locked = SignatureRequest.objects.select_for_update().get(pk=signature_request.pk)
            self._ensure_pending(locked)
            if locked.is_past_due():
                self._mark_expired(locked)
                outcome = None
            else:
                outcome = self._record_signature(locked, signer.id, principal, evidence, integrity, ip_address, user_agent)

        if outcome is None:
            raise StateConflict('This signature request has expired')

        signature, completed, newly_eligible = outcome
        logger.info(
            f'Signer {signer.id} signed request {locked.id} '
            f'({locked.completed_count}/{locked.signer_count}, integrity={integrity.outcome})'
        )
        if completed:
            logger.info(f'Signature request {locked.id} completed by user {principal.id}')

        self._after_commit(
            'audit signed_document',
            self.activity.log,
            organization_id=locked.organization_id,
            actor_id=principal.id,
            action='signed_document',
            resource_type='signature_request',
            resource_id=locked.id,
            resource_name=locked.title,
            metadata={'signer_id': signer.id, 'integrity': integrity.outcome, 'completed': completed},
        )
        self._after_commit(
            'notify admins of signature',
            self.notifications.notify_admins,
            exclude_user_id=principal.id,
            type='system',
            title='Document Signed',
            message=f'{principal.name} signed "{locked.title}"',
            link=SIGNATURES_LINK,
            related_id=locked.id,
        )
        if newly_eligible:
            self._after_commit('notify next signers', self._notify_signers, locked.id, newly_eligible)

        return signature

    def _record_signature(self, locked: SignatureRequest, signer_id: int, principal: Principal,
                          evidence: Evidence, integrity: IntegrityResult,
                          ip_address: Optional[str], user_agent: Optional[str]):
        signers = list(locked.signers.select_for_update())
        signer = next((s for s in signers if s.id == signer_id), None)
        if signer is None:
            raise NotFound('Signer not found', details={'signer_id': signer_id})

        coordinator = SignerCoordinator.for_request(locked, signers)
        reason = coordinator.blocking_reason(signer)
        if reason:
            raise StateConflict(f'Cannot sign: {reason}', details={'signer_id': signer.id})
        eligible_before = {s.id for s in coordinator.eligible_signers()}

        # Read-modify-write condicional: nunca passa de signer_count
        claimed = SignatureRequest.objects.filter(
            pk=locked.pk, status='pending', completed_count__lt=F('signer_count')
        ).update(completed_count=F('completed_count') + 1)
        if not claimed:
            raise StateConflict('All signers have already completed this request')
        locked.completed_count += 1

        now = timezone.now()
        try:
            with transaction.atomic():
                signature = Signature.objects.create(
                    request=locked,
                    signer=signer,
                    user_id=principal.id,
                    signature_type=evidence.signature_type,
                    signature_data=evidence.signature_data,
                    legal_name=evidence.legal_name,
                    consent_given=evidence.consent_given,
                    ip_address=ip_address or None,
                    user_agent=(user_agent or '')[:500] or None,
                    document_hash=integrity.current_hash,
                    timestamp=now,
                )
        except IntegrityError:
            raise StateConflict('Cannot sign: signer already signed', details={'signer_id': signer.id})

        signer.status = 'signed'
        signer.signed_at = now
        if signer.user_id is None:
            signer.user_id = principal.id
        signer.save(update_fields=['status', 'signed_at', 'user', 'updated_at'])

        completed = coordinator.is_complete()
        if completed:
            locked.status = 'signed'
            locked.signed_at = now
            locked.signed_by_id = principal.id
            locked.signed_document_hash = integrity.current_hash
            locked.save(update_fields=['status', 'signed_at', 'signed_by', 'signed_document_hash', 'updated_at'])
            newly_eligible = []
        else:
            newly_eligible = [s.id for s in coordinator.eligible_signers() if s.id not in eligible_before]

        return signature, completed, newly_eligible

    # ------------------------------------------------------------------
    # Recusa e cancelamento
    # ------------------------------------------------------------------

    def decline(self, user: User, request_id: int, reason: Optional[str] = None) -> SignatureRequest:
        principal = self.identity.resolve(user)
        signature_request = self._get_request(request_id)
        self.identity.require_org_access(principal, signature_request.organization_id)
        self._ensure_pending(signature_request)

        reason = (reason or '').strip() or None
        if reason and len(reason) > DECLINE_REASON_MAX_LENGTH:
            raise ValidationError(f'Reason too long (max {DECLINE_REASON_MAX_LENGTH} characters)')

        self._expire_if_past_due(signature_request)
        signer_id = self._resolve_declining_signer(principal, signature_request).id

        with transaction.atomic():
            locked = SignatureRequest.objects.select_for_update().get(pk=signature_request.pk)
            self._ensure_pending(locked)

            signers = list(locked.signers.select_for_update())
            signer = next((s for s in signers if s.id == signer_id), None)
            if signer is None or signer.status != 'pending':
                raise StateConflict('Signer has already responded to this request')

            signer.status = 'declined'
            signer.decline_reason = reason
            signer.save(update_fields=['status', 'decline_reason', 'updated_at'])

            coordinator = SignerCoordinator.for_request(locked, signers)
            # Um veto quebra o requisito "todos"; no modo "qualquer um" só encerra sem caminho viável
            if signer.is_implicit or locked.require_all or not coordinator.can_still_complete():
                locked.status = 'declined'
                locked.save(update_fields=['status', 'updated_at'])

        logger.info(f'Signer {signer.id} declined signature request {locked.id} (request status: {locked.status})')

        metadata = {'signer_id': signer.id, 'request_status': locked.status}
        if reason:
            metadata['reason'] = reason
        self._after_commit(
            'audit declined_signature',
            self.activity.log,
            organization_id=locked.organization_id,
            actor_id=principal.id,
            action='declined_signature',
            resource_type='signature_request',
            resource_id=locked.id,
            resource_name=locked.title,
            metadata=metadata,
        )
        self._after_commit(
            'notify admins of decline',
            self.notifications.notify_admins,
            exclude_user_id=principal.id,
            type='system',
            title='Signature Declined',
            message=f'{principal.name} declined to sign "{locked.title}"',
            link=SIGNATURES_LINK,
            related_id=locked.id,
        )
        return locked

    def cancel(self, user: User, request_id: int) -> SignatureRequest:
        principal = self.identity.require_admin_or_staff(user)

        with transaction.atomic():
            locked = SignatureRequest.objects.select_for_update().filter(pk=request_id).first()
            if locked is None:
                raise NotFound('Signature request not found', details={'request_id': request_id})
            if locked.is_terminal:
                raise StateConflict('Only pending requests can be cancelled')
            locked.status = 'expired'
            locked.save(update_fields=['status', 'updated_at'])

        logger.info(f'Signature request {locked.id} cancelled by user {principal.id}')
        self._after_commit(
            'audit cancelled_signature_request',
            self.activity.log,
            organization_id=locked.organization_id,
            actor_id=principal.id,
            action='cancelled_signature_request',
            resource_type='signature_request',
            resource_id=locked.id,
            resource_name=locked.title,
        )
        return locked

    def expire_overdue(self, now=None) -> int:
        """Move overdue pending requests to expired. Sign attempts check expiry on their own."""
        now = now or timezone.now()
        expired = SignatureRequest.objects.filter(status='pending', expires_at__lt=now).update(status='expired')
        if expired:
            logger.info(f'Expired {expired} overdue signature request(s)')
        return expired

    # ------------------------------------------------------------------
    # Consultas
    # ------------------------------------------------------------------

    def get_request(self, user: User, request_id: int) -> SignatureRequest:
        principal = self.identity.resolve(user)
        signature_request = self._get_request(request_id)
        self.identity.require_org_access(principal, signature_request.organization_id)
        return signature_request

    def list_requests(self, user: User, status: Optional[str] = None) -> QuerySet:
        principal = self.identity.resolve(user)
        if status is not None and status not in STATUS_VALUES:
            raise ValidationError(f'Invalid status: {status}', details={'allowed': STATUS_VALUES})

        queryset = self._scoped_queryset(principal)
        if status:
            queryset = queryset.filter(status=status)
        return queryset.select_related('document', 'organization').order_by('-requested_at')

    def get_signers(self, user: User, request_id: int) -> List[Signer]:
        signature_request = self.get_request(user, request_id)
        return list(signature_request.signers.select_related('user').order_by('sequence'))

    def can_user_sign(self, user: User, request_id: int) -> SignEligibility:
        """Read-only preview of whether ``sign`` would pass status and eligibility checks."""
        principal = self.identity.resolve(user)
        signature_request = self._get_request(request_id)
        if not principal.can_access_organization(signature_request.organization_id):
            return SignEligibility(False, 'access denied')
        if signature_request.is_terminal:
            return SignEligibility(False, f'request is {signature_request.status}')
        if signature_request.is_past_due():
            return SignEligibility(False, 'request expired')

        signers = list(signature_request.signers.all())
        candidates = self._match_signers(principal, signers)
        if not candidates:
            return SignEligibility(False, 'not a signer on this request')

        coordinator = SignerCoordinator.for_request(signature_request, signers)
        for candidate in candidates:
            if coordinator.can_act(candidate):
                return SignEligibility(True, None, candidate.id)
        return SignEligibility(False, coordinator.blocking_reason(candidates[0]), candidates[0].id)

    def count_pending(self, user: User) -> int:
        principal = self.identity.resolve(user)
        now = timezone.now()
        queryset = self._scoped_queryset(principal).filter(status='pending')
        return queryset.exclude(expires_at__lte=now).count()

    def get_document_preview(self, user: User, request_id: int) -> Dict:
        principal = self.identity.resolve(user)
        signature_request = self._get_request(request_id)
        self.identity.require_org_access(principal, signature_request.organization_id)

        document = signature_request.document
        metadata = self.storage_facade.get_metadata(document)
        handle = self.storage_facade.get_read_handle(document)

        self._after_commit(
            'audit viewed_signature_document',
            self.activity.log,
            organization_id=signature_request.organization_id,
            actor_id=principal.id,
            action='viewed_signature_document',
            resource_type='document',
            resource_id=document.id,
            resource_name=document.name,
            metadata={'signature_request_id': signature_request.id},
        )
        return {
            'url': handle.url,
            'expires_at': handle.expires_at,
            'filename': metadata.get('name', document.name),
            'mime_type': metadata.get('mime_type', document.mime_type),
        }

    # ------------------------------------------------------------------
    # Auxiliares
    # ------------------------------------------------------------------

    def _get_request(self, request_id: int) -> SignatureRequest:
        signature_request = (
            SignatureRequest.objects.select_related('document__organization').filter(pk=request_id).first()
        )
        if signature_request is None:
            raise NotFound('Signature request not found', details={'request_id': request_id})
        return signature_request

    def _scoped_queryset(self, principal: Principal) -> QuerySet:
        if principal.is_admin_or_staff:
            return SignatureRequest.objects.all()
        if principal.organization_id:
            return SignatureRequest.objects.filter(organization_id=principal.organization_id)
        return SignatureRequest.objects.none()

    def _ensure_pending(self, signature_request: SignatureRequest) -> None:
        if signature_request.is_terminal:
            raise StateConflict(
                f'This signature request is {signature_request.status}, not pending',
                details={'status': signature_request.status},
            )

    def _mark_expired(self, signature_request: SignatureRequest) -> None:
        updated = SignatureRequest.objects.filter(pk=signature_request.pk, status='pending').update(status='expired')
        signature_request.status = 'expired'
        if updated:
            logger.info(f'Signature request {signature_request.id} expired at sign attempt')

    def _expire_if_past_due(self, signature_request: SignatureRequest) -> None:
        if signature_request.is_past_due():
            with transaction.atomic():
                self._mark_expired(signature_request)
            raise StateConflict('This signature request has expired')

    def _match_signers(self, principal: Principal, signers: List[Signer]) -> List[Signer]:
        email = (principal.email or '').lower()
        matches = []
        for signer in signers:
            if signer.is_implicit:
                matches.append(signer)
            elif signer.user_id is not None and signer.user_id == principal.id:
                matches.append(signer)
            elif signer.user_id is None and email and signer.email.lower() == email:
                matches.append(signer)
        return sorted(matches, key=lambda s: s.sequence)

    def _resolve_acting_signer(self, principal: Principal, signature_request: SignatureRequest) -> Signer:
        signers = list(signature_request.signers.all())
        candidates = self._match_signers(principal, signers)
        if not candidates:
            raise AccessDenied('You are not a signer on this signature request')

        coordinator = SignerCoordinator.for_request(signature_request, signers)
        for candidate in candidates:
            if coordinator.can_act(candidate):
                return candidate

        reason = coordinator.blocking_reason(candidates[0])
        raise StateConflict(f'Cannot sign: {reason}', details={'signer_id': candidates[0].id})

    def _resolve_declining_signer(self, principal: Principal, signature_request: SignatureRequest) -> Signer:
        candidates = self._match_signers(principal, list(signature_request.signers.all()))
        if not candidates:
            raise AccessDenied('You are not a signer on this signature request')
        for candidate in candidates:
            if candidate.status == 'pending':
                return candidate
        raise StateConflict('Signer has already responded to this request')

    def _after_commit(self, label: str, func, *args, **kwargs) -> None:
        """Run a best-effort side effect once the current transaction commits.

        Failures are logged and never affect the primary operation.
        """
        def run():
            try:
                func(*args, **kwargs)
            except Exception as e:
                logger.error(f'Side effect "{label}" failed: {str(e)}')

        transaction.on_commit(run)

    def _notify_new_request(self, request_id: int) -> None:
        signature_request = SignatureRequest.objects.select_related('requested_by').get(pk=request_id)
        signers = list(signature_request.signers.all())

        if any(s.is_implicit for s in signers):
            self.notifications.notify_organization(
                signature_request.organization_id,
                exclude_user_id=signature_request.requested_by_id,
                type='signature_request',
                title='Signature Required',
                message=f'Please sign: "{signature_request.title}"',
                link=SIGNATURES_LINK,
                related_id=signature_request.id,
            )
            return

        coordinator = SignerCoordinator.for_request(signature_request, signers)
        self._notify_signers(signature_request.id, [s.id for s in coordinator.eligible_signers()])

    def _notify_signers(self, request_id: int, signer_ids: List[int]) -> None:
        signature_request = SignatureRequest.objects.select_related('requested_by').get(pk=request_id)
        requester = signature_request.requested_by
        requested_by = (requester.get_full_name() or requester.username) if requester else 'An administrator'
        message = f'{requested_by} has requested your signature on "{signature_request.title}"'

        for signer in Signer.objects.filter(pk__in=signer_ids, status='pending'):
            if signer.user_id:
                self.notifications.dispatch(
                    signer.user_id,
                    type='signature_request',
                    title='Signature Required',
                    message=message,
                    link=SIGNATURES_LINK,
                    related_id=signature_request.id,
                )
            elif signer.email and settings.SIGNATURE_EMAIL_NOTIFICATIONS:
                self.notifications.send_email(
                    signer.email, f'Signature Required: {signature_request.title}', message, SIGNATURES_LINK
                )
            signer.notified_at = timezone.now()
            signer.save(update_fields=['notified_at', 'updated_at'])
