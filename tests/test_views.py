import pytest
from datetime import timedelta
from unittest.mock import patch
from django.utils import timezone
from apps.domain.exceptions import TransientDependencyError
from rest_framework.test import APIRequestFactory
from apps.domain.models import SignatureRequest, Signature
from apps.presentation.utils import get_client_ip


@pytest.mark.django_db
class TestAuthentication:
    def test_obtain_token(self, api_client, client_user):
        response = api_client.post(
            '/api/api-token-auth/', {'username': 'bob', 'password': 'testpass123'}, format='json'
        )
        assert response.status_code == 200
        assert response.data['token']

    def test_invalid_credentials(self, api_client, client_user):
        response = api_client.post(
            '/api/api-token-auth/', {'username': 'bob', 'password': 'wrong'}, format='json'
        )
        assert response.status_code == 400

    def test_requires_auth(self, api_client):
        response = api_client.get('/api/signature-requests/')
        assert response.status_code == 401


@pytest.mark.django_db
class TestSignatureRequestViewSet:
    def test_create_request(self, auth_client, staff_user, organization, document):
        client = auth_client(staff_user)
        data = {
            'organization_id': organization.id,
            'document_id': document.id,
            'title': 'Contrato de Prestação de Serviços',
            'signers': [
                {'name': 'João Silva', 'email': 'joao@example.com'},
                {'name': 'Maria Santos', 'email': 'maria@example.com'},
            ],
            'require_sequential': True,
        }

        response = client.post('/api/signature-requests/', data, format='json')

        assert response.status_code == 201
        assert response.data['status'] == 'pending'
        assert response.data['signer_count'] == 2
        assert response.data['require_all'] is True
        assert [s['sequence'] for s in response.data['signers']] == [1, 2]

    def test_create_by_client_is_forbidden(self, auth_client, client_user, organization, document):
        response = auth_client(client_user).post('/api/signature-requests/', {
            'organization_id': organization.id, 'document_id': document.id, 'title': 'Contrato'
        }, format='json')

        assert response.status_code == 403
        assert response.data['code'] == 'access_denied'

    def test_create_duplicate_is_conflict(self, auth_client, staff_user, organization, document, signature_request):
        response = auth_client(staff_user).post('/api/signature-requests/', {
            'organization_id': organization.id, 'document_id': document.id, 'title': 'Contrato'
        }, format='json')

        assert response.status_code == 409
        assert response.data['code'] == 'state_conflict'

    def test_create_with_invalid_payload(self, auth_client, staff_user):
        response = auth_client(staff_user).post('/api/signature-requests/', {'title': 'Contrato'}, format='json')
        assert response.status_code == 400

    def test_list_includes_display_status(self, auth_client, client_user, signature_request):
        SignatureRequest.objects.filter(pk=signature_request.pk).update(expires_at=timezone.now() - timedelta(hours=1))

        response = auth_client(client_user).get('/api/signature-requests/')

        assert response.status_code == 200
        result = response.data['results'][0]
        assert result['status'] == 'pending'
        assert result['display_status'] == 'expired'
        assert result['document_name'] == 'Contrato.pdf'

    def test_list_invalid_status_filter(self, auth_client, client_user, signature_request):
        response = auth_client(client_user).get('/api/signature-requests/?status=archived')
        assert response.status_code == 400
        assert response.data['code'] == 'validation_error'

    def test_retrieve(self, auth_client, client_user, signature_request):
        response = auth_client(client_user).get(f'/api/signature-requests/{signature_request.id}/')
        assert response.status_code == 200
        assert response.data['title'] == 'Contrato de Serviços'
        assert len(response.data['signers']) == 1

    def test_retrieve_other_organization(self, auth_client, outsider, signature_request):
        response = auth_client(outsider).get(f'/api/signature-requests/{signature_request.id}/')
        assert response.status_code == 403

    def test_retrieve_unknown(self, auth_client, client_user):
        response = auth_client(client_user).get('/api/signature-requests/9999/')
        assert response.status_code == 404
        assert response.data['code'] == 'not_found'

    def test_sign(self, auth_client, client_user, signature_request, typed_evidence):
        response = auth_client(client_user).post(
            f'/api/signature-requests/{signature_request.id}/sign/', typed_evidence, format='json',
            HTTP_USER_AGENT='pytest-agent'
        )

        assert response.status_code == 201
        assert response.data['legal_name'] == 'Bob Signer'
        signature = Signature.objects.get()
        assert signature.user_agent == 'pytest-agent'
        assert signature.ip_address == '127.0.0.1'
        signature_request.refresh_from_db()
        assert signature_request.status == 'signed'

    def test_sign_forwarded_ip(self, auth_client, client_user, signature_request, typed_evidence):
        auth_client(client_user).post(
            f'/api/signature-requests/{signature_request.id}/sign/', typed_evidence, format='json',
            HTTP_X_FORWARDED_FOR='203.0.113.7, 10.0.0.1'
        )
        assert Signature.objects.get().ip_address == '203.0.113.7'

    def test_sign_invalid_forwarded_ip_falls_back(self, auth_client, client_user, signature_request, typed_evidence):
        response = auth_client(client_user).post(
            f'/api/signature-requests/{signature_request.id}/sign/', typed_evidence, format='json',
            HTTP_X_FORWARDED_FOR='unknown'
        )
        assert response.status_code == 201
        signature = Signature.objects.get()
        assert signature.ip_address == '127.0.0.1'

    def test_sign_without_consent(self, auth_client, client_user, signature_request, typed_evidence):
        typed_evidence['consent_given'] = False
        response = auth_client(client_user).post(
            f'/api/signature-requests/{signature_request.id}/sign/', typed_evidence, format='json'
        )
        assert response.status_code == 400
        assert response.data['error'] == 'You must agree to the terms'

    def test_sign_integrity_violation(self, auth_client, client_user, signature_request, typed_evidence):
        SignatureRequest.objects.filter(pk=signature_request.pk).update(document_hash='abc123')
        response = auth_client(client_user).post(
            f'/api/signature-requests/{signature_request.id}/sign/', typed_evidence, format='json'
        )
        assert response.status_code == 409
        assert response.data['code'] == 'integrity_violation'
        assert response.data['details']['expected_hash'] == 'abc123'
        assert Signature.objects.count() == 0

    def test_sign_expired(self, auth_client, client_user, signature_request, typed_evidence):
        SignatureRequest.objects.filter(pk=signature_request.pk).update(expires_at=timezone.now() - timedelta(hours=1))
        response = auth_client(client_user).post(
            f'/api/signature-requests/{signature_request.id}/sign/', typed_evidence, format='json'
        )
        assert response.status_code == 409
        assert response.data['error'] == 'This signature request has expired'

    @patch('apps.application.services.integrity_service.IntegrityVerifier.verify')
    def test_storage_outage_maps_to_503(self, mock_verify, auth_client, client_user, signature_request,
                                        typed_evidence):
        mock_verify.side_effect = TransientDependencyError('storage down')
        response = auth_client(client_user).post(
            f'/api/signature-requests/{signature_request.id}/sign/', typed_evidence, format='json'
        )
        assert response.status_code == 503
        assert response.data['code'] == 'dependency_error'

    def test_decline(self, auth_client, client_user, signature_request):
        response = auth_client(client_user).post(
            f'/api/signature-requests/{signature_request.id}/decline/', {'reason': 'Valores incorretos'}, format='json'
        )
        assert response.status_code == 200
        assert response.data['status'] == 'declined'
        assert response.data['signers'][0]['decline_reason'] == 'Valores incorretos'

    def test_cancel(self, auth_client, staff_user, signature_request):
        response = auth_client(staff_user).post(f'/api/signature-requests/{signature_request.id}/cancel/')
        assert response.status_code == 200
        assert response.data['status'] == 'expired'

    def test_cancel_by_client_is_forbidden(self, auth_client, client_user, signature_request):
        response = auth_client(client_user).post(f'/api/signature-requests/{signature_request.id}/cancel/')
        assert response.status_code == 403

    def test_signers(self, auth_client, client_user, signature_request):
        response = auth_client(client_user).get(f'/api/signature-requests/{signature_request.id}/signers/')
        assert response.status_code == 200
        assert response.data[0]['is_implicit'] is True

    def test_can_sign(self, auth_client, client_user, signature_request):
        response = auth_client(client_user).get(f'/api/signature-requests/{signature_request.id}/can_sign/')
        assert response.status_code == 200
        assert response.data['can_sign'] is True
        assert response.data['reason'] is None

    def test_preview(self, auth_client, client_user, signature_request):
        response = auth_client(client_user).get(f'/api/signature-requests/{signature_request.id}/preview/')
        assert response.status_code == 200
        assert response.data['filename'] == 'Contrato.pdf'
        assert response.data['url']

    def test_pending_count(self, auth_client, client_user, signature_request):
        response = auth_client(client_user).get('/api/signature-requests/pending_count/')
        assert response.status_code == 200
        assert response.data['count'] == 1

    def test_metrics(self, auth_client, staff_user, signature_request):
        response = auth_client(staff_user).get('/api/signature-requests/metrics/')
        assert response.status_code == 200
        assert response.data['total_requests'] == 1
        assert response.data['status_breakdown']['pending'] == 1
        assert response.data['missing_baseline_count'] == 1

    def test_alerts(self, auth_client, staff_user, signature_request):
        SignatureRequest.objects.filter(pk=signature_request.pk).update(
            expires_at=timezone.now() + timedelta(days=1), document_hash='abc123'
        )
        response = auth_client(staff_user).get('/api/signature-requests/alerts/')
        assert response.status_code == 200
        assert response.data['count'] == 1
        assert response.data['alerts'][0]['type'] == 'expiring_soon'


@pytest.mark.django_db
def test_health_check(api_client):
    response = api_client.get('/health/')
    assert response.status_code == 200
    assert response.data['database'] == 'healthy'
    assert response.data['storage_backends'] == ['http', 'local']


class TestClientIp:
    def test_forwarded_for_first_hop(self):
        request = APIRequestFactory().get('/', HTTP_X_FORWARDED_FOR='2001:db8::1, 10.0.0.1')
        assert get_client_ip(request) == '2001:db8::1'

    def test_invalid_values_discarded(self):
        request = APIRequestFactory().get('/', HTTP_X_FORWARDED_FOR='unknown', REMOTE_ADDR='not-an-ip')
        assert get_client_ip(request) is None
