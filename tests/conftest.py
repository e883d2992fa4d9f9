import pytest
from unittest.mock import Mock
from django.contrib.auth.models import User
from django.core.files.uploadedfile import SimpleUploadedFile
from rest_framework.test import APIClient
from rest_framework.authtoken.models import Token
from apps.domain.models import Organization, Member, Document, SignatureRequest, Signer
from apps.application.services.signature_service import SignatureService
from apps.infrastructure.storage import StorageFactory

DOCUMENT_CONTENT = b'%PDF-1.4\nContrato de teste\n%%EOF'
PNG_DATA_URI = 'data:image/png;base64,iVBORw0KGgoAAAANSUhEUgAAAAEAAAABCAYAAAAfFcSJAAAADUlEQVR42mNkYPhfDwAChwGA60e6kgAAAABJRU5ErkJggg=='


def make_user(username, role='client', organization=None, email=None):
    user = User.objects.create_user(
        username=username,
        email=email or f'{username}@example.com',
        password='testpass123',
        first_name=username.capitalize(),
    )
    Member.objects.create(user=user, role=role, organization=organization)
    return user


@pytest.fixture(autouse=True)
def fresh_storage_factory():
    StorageFactory().clear_cache()
    yield
    StorageFactory().clear_cache()


@pytest.fixture
def user_factory():
    return make_user


@pytest.fixture
def organization():
    return Organization.objects.create(name='Test Organization', email='org@example.com', storage_config={})


@pytest.fixture
def other_organization():
    return Organization.objects.create(name='Other Organization', storage_config={})


@pytest.fixture
def staff_user():
    return make_user('alice', role='staff')


@pytest.fixture
def client_user(organization):
    return make_user('bob', organization=organization)


@pytest.fixture
def second_client(organization):
    return make_user('carol', organization=organization)


@pytest.fixture
def outsider(other_organization):
    return make_user('dave', organization=other_organization)


@pytest.fixture
def document(organization, staff_user):
    return Document.objects.create(
        organization=organization,
        name='Contrato.pdf',
        storage_backend='local',
        file=SimpleUploadedFile('contrato.pdf', DOCUMENT_CONTENT, content_type='application/pdf'),
        uploaded_by=staff_user,
    )


@pytest.fixture
def http_document(organization, staff_user):
    return Document.objects.create(
        organization=organization,
        name='Remote.pdf',
        storage_backend='http',
        file_url='https://storage.example.com/remote.pdf',
        uploaded_by=staff_user,
    )


@pytest.fixture
def service():
    service = SignatureService()
    # Hash de referência é exercitado diretamente via record_baseline_hash
    service._trigger_baseline_hash = Mock()
    return service


@pytest.fixture
def signature_request(organization, document, staff_user):
    signature_request = SignatureRequest.objects.create(
        organization=organization,
        document=document,
        title='Contrato de Serviços',
        requested_by=staff_user,
    )
    Signer.objects.create(request=signature_request, sequence=1, is_implicit=True)
    return signature_request


@pytest.fixture
def typed_evidence():
    return {
        'signature_type': 'typed',
        'signature_data': 'Bob Signer',
        'legal_name': 'Bob Signer',
        'consent_given': True,
    }


@pytest.fixture
def document_content():
    return DOCUMENT_CONTENT


@pytest.fixture
def png_data_uri():
    return PNG_DATA_URI


@pytest.fixture
def api_client():
    return APIClient()


@pytest.fixture
def auth_client():
    def _auth_client(user):
        client = APIClient()
        token, _ = Token.objects.get_or_create(user=user)
        client.credentials(HTTP_AUTHORIZATION=f'Token {token.key}')
        return client
    return _auth_client
