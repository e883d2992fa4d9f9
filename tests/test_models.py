import pytest
from datetime import timedelta
from django.db import IntegrityError, transaction
from django.utils import timezone
from apps.domain.models import Organization, Member, SignatureRequest, Signer, Signature


@pytest.mark.django_db
class TestOrganization:
    def test_create_organization(self):
        organization = Organization.objects.create(
            name='Acme',
            storage_config={'retry_policy': {'max_retries': 5}}
        )
        assert organization.name == 'Acme'
        assert organization.storage_config['retry_policy']['max_retries'] == 5


@pytest.mark.django_db
class TestMember:
    def test_default_role_is_client(self, django_user_model, organization):
        user = django_user_model.objects.create_user(username='eve', password='x')
        member = Member.objects.create(user=user, organization=organization)
        assert member.role == 'client'
        assert user.member == member


@pytest.mark.django_db
class TestSignatureRequest:
    def test_defaults(self, signature_request):
        assert signature_request.status == 'pending'
        assert signature_request.signer_count == 1
        assert signature_request.completed_count == 0
        assert signature_request.require_all is True
        assert signature_request.require_sequential is False
        assert signature_request.is_terminal is False

    def test_display_status_for_overdue_pending(self, signature_request):
        signature_request.expires_at = timezone.now() - timedelta(minutes=1)
        assert signature_request.get_display_status() == 'expired'
        # Só exibição: o status armazenado não muda
        assert signature_request.status == 'pending'

    def test_display_status_without_deadline(self, signature_request):
        assert signature_request.get_display_status() == 'pending'

    def test_past_due_is_strict(self, signature_request):
        now = timezone.now()
        signature_request.expires_at = now
        assert signature_request.is_past_due(now) is False
        assert signature_request.is_past_due(now + timedelta(microseconds=1)) is True

    def test_terminal_status_display_unchanged(self, signature_request):
        signature_request.status = 'signed'
        signature_request.expires_at = timezone.now() - timedelta(days=1)
        assert signature_request.get_display_status() == 'signed'

    def test_single_pending_request_per_document(self, signature_request, organization, document):
        with pytest.raises(IntegrityError):
            with transaction.atomic():
                SignatureRequest.objects.create(organization=organization, document=document, title='Duplicate')

    def test_terminal_request_does_not_block_new_one(self, signature_request, organization, document):
        signature_request.status = 'declined'
        signature_request.save()
        second = SignatureRequest.objects.create(organization=organization, document=document, title='Second')
        assert second.status == 'pending'

    def test_completed_count_cannot_exceed_signer_count(self, signature_request):
        with pytest.raises(IntegrityError):
            with transaction.atomic():
                SignatureRequest.objects.filter(pk=signature_request.pk).update(completed_count=2)


@pytest.mark.django_db
class TestSigner:
    def test_sequence_unique_per_request(self, signature_request):
        with pytest.raises(IntegrityError):
            with transaction.atomic():
                Signer.objects.create(request=signature_request, name='X', email='x@example.com', sequence=1)

    def test_cascade_on_request_delete(self, signature_request):
        signature_request.delete()
        assert Signer.objects.count() == 0


@pytest.mark.django_db
class TestSignature:
    def test_evidence_is_immutable(self, signature_request, client_user):
        signer = signature_request.signers.get()
        signature = Signature.objects.create(
            request=signature_request,
            signer=signer,
            user=client_user,
            signature_type='typed',
            signature_data='Bob Signer',
            legal_name='Bob Signer',
            consent_given=True,
        )
        signature.legal_name = 'Someone Else'
        with pytest.raises(ValueError, match='immutable'):
            signature.save()
        assert Signature.objects.get(pk=signature.pk).legal_name == 'Bob Signer'
