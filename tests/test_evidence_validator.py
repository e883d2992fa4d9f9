import pytest
from apps.domain.exceptions import ValidationError
from apps.domain.validators.evidence_validator import (
    validate_evidence, validate_signature_data, validate_legal_name, Evidence
)


class TestValidateEvidence:
    def test_valid_typed_evidence(self):
        evidence = validate_evidence('typed', '  Bob Signer  ', ' Bob Signer ', True)
        assert evidence == Evidence('typed', 'Bob Signer', 'Bob Signer', True)

    def test_valid_drawn_evidence(self, png_data_uri):
        evidence = validate_evidence('drawn', png_data_uri, 'Bob Signer', True)
        assert evidence.signature_data == png_data_uri

    @pytest.mark.parametrize('consent', [False, None, 'true', 1])
    def test_consent_must_be_true(self, consent):
        with pytest.raises(ValidationError, match='You must agree to the terms'):
            validate_evidence('typed', 'Bob Signer', 'Bob Signer', consent)

    def test_consent_checked_before_other_fields(self):
        with pytest.raises(ValidationError, match='agree to the terms'):
            validate_evidence('bogus', '', '', False)

    def test_legal_name_required(self):
        with pytest.raises(ValidationError, match='Legal name is required'):
            validate_evidence('typed', 'Bob Signer', '   ', True)


class TestValidateSignatureData:
    def test_unknown_type(self):
        with pytest.raises(ValidationError) as exc_info:
            validate_signature_data('stamp', 'x')
        assert exc_info.value.details == {'allowed': ['drawn', 'typed', 'uploaded']}

    def test_missing_data(self):
        with pytest.raises(ValidationError, match='Signature data is required'):
            validate_signature_data('typed', '')

    def test_image_without_data_uri_prefix(self):
        with pytest.raises(ValidationError, match='Invalid signature image format'):
            validate_signature_data('uploaded', 'iVBORw0KGgo=')

    def test_image_with_unsupported_encoding(self):
        with pytest.raises(ValidationError, match='Invalid signature image encoding'):
            validate_signature_data('drawn', 'data:image/bmp;base64,Qk0=')

    def test_image_with_invalid_base64(self):
        with pytest.raises(ValidationError, match='Invalid signature image encoding'):
            validate_signature_data('drawn', 'data:image/png;base64,not base64!')

    def test_image_size_limit(self):
        payload = 'data:image/png;base64,' + 'A' * 600
        with pytest.raises(ValidationError, match='too large') as exc_info:
            validate_signature_data('drawn', payload, max_image_bytes=512)
        assert exc_info.value.details['max_size'] == 512

    def test_image_at_size_limit_accepted(self):
        payload = 'data:image/png;base64,' + 'A' * 10
        assert validate_signature_data('drawn', payload, max_image_bytes=len(payload)) == payload

    @pytest.mark.parametrize('encoding', ['png', 'jpeg', 'jpg', 'gif', 'svg+xml'])
    def test_allowed_image_encodings(self, encoding):
        payload = f'data:image/{encoding};base64,QUJD'
        assert validate_signature_data('uploaded', payload) == payload

    def test_typed_too_short_after_trim(self):
        with pytest.raises(ValidationError, match='too short'):
            validate_signature_data('typed', '  B  ')

    def test_typed_too_long(self):
        with pytest.raises(ValidationError, match='too long'):
            validate_signature_data('typed', 'B' * 201)

    def test_typed_bounds(self):
        assert validate_signature_data('typed', 'Bo') == 'Bo'
        assert validate_signature_data('typed', 'B' * 200) == 'B' * 200


def test_legal_name_too_long():
    with pytest.raises(ValidationError, match='Legal name too long'):
        validate_legal_name('N' * 201)
