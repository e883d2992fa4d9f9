from rest_framework import serializers
from drf_spectacular.utils import extend_schema_field
from apps.domain.models import SignatureRequest, Signer, Signature
from apps.domain.validators.evidence_validator import SIGNATURE_TYPES


class SignerSerializer(serializers.ModelSerializer):
    id = serializers.IntegerField(read_only=True, help_text='ID único do signatário')
    user = serializers.PrimaryKeyRelatedField(read_only=True, help_text='ID do usuário vinculado (quando houver)')
    name = serializers.CharField(read_only=True, help_text='Nome completo do signatário')
    email = serializers.EmailField(read_only=True, help_text='E-mail do signatário')
    sequence = serializers.IntegerField(read_only=True, help_text='Ordem do signatário no fluxo sequencial')
    status = serializers.ChoiceField(
        choices=Signer.STATUS_CHOICES,
        read_only=True,
        help_text='Status do signatário: pending, signed, declined'
    )
    is_implicit = serializers.BooleanField(
        read_only=True,
        help_text='True quando a solicitação é de parte única (qualquer membro autorizado da organização pode assinar)'
    )
    decline_reason = serializers.CharField(read_only=True, allow_null=True, help_text='Motivo da recusa')
    signed_at = serializers.DateTimeField(read_only=True, allow_null=True, help_text='Data da assinatura')
    notified_at = serializers.DateTimeField(read_only=True, allow_null=True, help_text='Data da última notificação')

    class Meta:
        model = Signer
        fields = [
            'id', 'user', 'name', 'email', 'sequence', 'status', 'is_implicit',
            'decline_reason', 'signed_at', 'notified_at'
        ]
        read_only_fields = fields


class SignatureSerializer(serializers.ModelSerializer):
    id = serializers.IntegerField(read_only=True, help_text='ID único da evidência de assinatura')
    signer = serializers.PrimaryKeyRelatedField(read_only=True, help_text='ID do signatário')
    user = serializers.PrimaryKeyRelatedField(read_only=True, help_text='ID do usuário que assinou')
    signature_type = serializers.CharField(read_only=True, help_text='Tipo: drawn, typed ou uploaded')
    legal_name = serializers.CharField(read_only=True, help_text='Nome legal declarado pelo signatário')
    consent_given = serializers.BooleanField(read_only=True, help_text='Consentimento com os termos')
    ip_address = serializers.IPAddressField(read_only=True, allow_null=True, help_text='IP de origem')
    user_agent = serializers.CharField(read_only=True, allow_null=True, help_text='User-Agent do cliente')
    document_hash = serializers.CharField(
        read_only=True,
        allow_null=True,
        help_text='Hash do documento observado no momento da assinatura'
    )
    timestamp = serializers.DateTimeField(read_only=True, help_text='Data e hora da assinatura')

    class Meta:
        model = Signature
        fields = [
            'id', 'signer', 'user', 'signature_type', 'signature_data', 'legal_name',
            'consent_given', 'ip_address', 'user_agent', 'document_hash', 'timestamp'
        ]
        read_only_fields = fields


class SignatureRequestSerializer(serializers.ModelSerializer):
    id = serializers.IntegerField(read_only=True, help_text='ID único da solicitação de assinatura')
    organization = serializers.PrimaryKeyRelatedField(read_only=True, help_text='ID da organização')
    document = serializers.PrimaryKeyRelatedField(read_only=True, help_text='ID do documento')
    document_name = serializers.CharField(source='document.name', read_only=True, help_text='Nome do documento')
    status = serializers.ChoiceField(
        choices=SignatureRequest.STATUS_CHOICES,
        read_only=True,
        help_text='Status armazenado: pending, signed, declined, expired'
    )
    display_status = serializers.SerializerMethodField(
        help_text='Status exibido: uma solicitação pendente com prazo vencido aparece como expired'
    )
    signers = SignerSerializer(many=True, read_only=True, help_text='Signatários da solicitação')
    signatures = SignatureSerializer(many=True, read_only=True, help_text='Evidências de assinatura registradas')

    class Meta:
        model = SignatureRequest
        fields = [
            'id', 'organization', 'document', 'document_name', 'title', 'description',
            'status', 'display_status', 'requested_by', 'requested_at', 'expires_at',
            'signed_at', 'signed_by', 'document_hash', 'signed_document_hash',
            'signer_count', 'completed_count', 'require_all', 'require_sequential',
            'signers', 'signatures'
        ]
        read_only_fields = fields

    @extend_schema_field(serializers.CharField())
    def get_display_status(self, obj):
        return obj.get_display_status()


class SignatureRequestListSerializer(SignatureRequestSerializer):
    class Meta(SignatureRequestSerializer.Meta):
        fields = [
            'id', 'organization', 'document', 'document_name', 'title', 'status',
            'display_status', 'requested_at', 'expires_at', 'signed_at',
            'signer_count', 'completed_count'
        ]
        read_only_fields = fields


class SignerInputSerializer(serializers.Serializer):
    name = serializers.CharField(max_length=200, help_text='Nome completo do signatário (máximo 200 caracteres)')
    email = serializers.EmailField(help_text='E-mail do signatário')
    sequence = serializers.IntegerField(
        min_value=1,
        required=False,
        help_text='Posição no fluxo (padrão: após a maior sequência informada)'
    )
    user_id = serializers.IntegerField(required=False, allow_null=True, help_text='ID do usuário do portal (opcional)')


class SignatureRequestCreateSerializer(serializers.Serializer):
    organization_id = serializers.IntegerField(help_text='ID da organização')
    document_id = serializers.IntegerField(help_text='ID do documento a ser assinado')
    title = serializers.CharField(max_length=200, help_text='Título da solicitação (máximo 200 caracteres)')
    description = serializers.CharField(
        max_length=1000,
        required=False,
        allow_blank=True,
        allow_null=True,
        help_text='Descrição opcional (máximo 1000 caracteres)'
    )
    expires_at = serializers.DateTimeField(
        required=False,
        allow_null=True,
        help_text='Prazo para assinatura (opcional, formato ISO 8601)'
    )
    signers = SignerInputSerializer(
        many=True,
        required=False,
        help_text='Signatários. Se omitido, a solicitação é de parte única.'
    )
    require_all = serializers.BooleanField(
        default=True,
        help_text='True: todos devem assinar. False: basta um signatário.'
    )
    require_sequential = serializers.BooleanField(
        default=False,
        help_text='True: signatários assinam na ordem de sequence.'
    )


class SignSerializer(serializers.Serializer):
    signature_type = serializers.ChoiceField(
        choices=SIGNATURE_TYPES,
        help_text='Tipo de assinatura: drawn, typed ou uploaded'
    )
    signature_data = serializers.CharField(
        trim_whitespace=False,
        help_text='Imagem em data URI base64 (drawn/uploaded) ou o texto digitado (typed)'
    )
    legal_name = serializers.CharField(max_length=200, help_text='Nome legal completo do signatário')
    consent_given = serializers.BooleanField(help_text='Deve ser true para concordar com os termos')


class DeclineSerializer(serializers.Serializer):
    reason = serializers.CharField(
        max_length=1000,
        required=False,
        allow_blank=True,
        allow_null=True,
        help_text='Motivo da recusa (opcional, máximo 1000 caracteres)'
    )
