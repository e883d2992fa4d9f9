import logging
from rest_framework import viewsets, status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.decorators import action
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated, AllowAny
from drf_spectacular.utils import extend_schema, extend_schema_view, OpenApiParameter, OpenApiExample
from drf_spectacular.types import OpenApiTypes
from apps.domain.exceptions import SignatureWorkflowError
from apps.presentation.serializers import (
    SignatureRequestSerializer, SignatureRequestListSerializer, SignatureRequestCreateSerializer,
    SignerSerializer, SignatureSerializer, SignSerializer, DeclineSerializer
)
from apps.application.services.signature_service import SignatureService
from apps.presentation.alerts import get_signature_request_alerts, get_signature_request_metrics
from apps.presentation.utils import workflow_error_response, get_client_ip

logger = logging.getLogger('apps')


@extend_schema(
    summary='Obter token de autenticação',
    description='Autentica um usuário com username e password e retorna um token de autenticação. Use este token no header "Authorization: Token <token>" para acessar os demais endpoints.',
    tags=['Autenticação'],
    request={
        'application/json': {
            'type': 'object',
            'properties': {
                'username': {
                    'type': 'string',
                    'description': 'Nome de usuário',
                    'example': 'admin'
                },
                'password': {
                    'type': 'string',
                    'format': 'password',
                    'description': 'Senha do usuário',
                    'example': 'senha123'
                }
            },
            'required': ['username', 'password']
        }
    },
    responses={
        200: {
            'type': 'object',
            'properties': {
                'token': {
                    'type': 'string',
                    'description': 'Token de autenticação',
                    'example': '9944b09199c62bcf9418ad846dd0e4bbdfc6ee4b'
                }
            }
        },
        400: {
            'type': 'object',
            'description': 'Credenciais inválidas ou campos faltando'
        }
    },
)
@api_view(['POST'])
@permission_classes([AllowAny])
def custom_obtain_auth_token(request):
    """Wrapper para documentar o endpoint de autenticação"""
    from django.contrib.auth import authenticate
    from rest_framework.authtoken.models import Token

    username = request.data.get('username')
    password = request.data.get('password')

    if username is None or password is None:
        return Response(
            {'error': 'Por favor, forneça username e password'},
            status=status.HTTP_400_BAD_REQUEST
        )

    user = authenticate(username=username, password=password)

    if not user:
        return Response(
            {'error': 'Credenciais inválidas'},
            status=status.HTTP_400_BAD_REQUEST
        )

    token, created = Token.objects.get_or_create(user=user)
    return Response({'token': token.key}, status=status.HTTP_200_OK)


@extend_schema_view(
    list=extend_schema(
        summary='Listar solicitações de assinatura',
        description='Retorna uma lista paginada das solicitações visíveis ao usuário (admin/staff: todas; cliente: as da sua organização), ordenadas da mais recente para a mais antiga.',
        tags=['Signature Requests'],
        parameters=[
            OpenApiParameter('status', OpenApiTypes.STR, location=OpenApiParameter.QUERY,
                             description='Filtra pelo status armazenado: pending, signed, declined, expired'),
        ],
    ),
    retrieve=extend_schema(
        summary='Obter detalhes da solicitação',
        description='Retorna a solicitação com signatários e evidências de assinatura. O campo display_status mostra expired para pendentes com prazo vencido.',
        tags=['Signature Requests'],
    ),
)
class SignatureRequestViewSet(viewsets.GenericViewSet):
    serializer_class = SignatureRequestSerializer
    permission_classes = [IsAuthenticated]
    lookup_value_regex = r'\d+'

    def get_service(self) -> SignatureService:
        return SignatureService()

    def get_serializer_class(self):
        if self.action == 'list':
            return SignatureRequestListSerializer
        if self.action == 'create':
            return SignatureRequestCreateSerializer
        return SignatureRequestSerializer

    def list(self, request):
        try:
            queryset = self.get_service().list_requests(request.user, status=request.query_params.get('status'))
        except SignatureWorkflowError as e:
            return workflow_error_response(e)

        page = self.paginate_queryset(queryset)
        if page is not None:
            serializer = SignatureRequestListSerializer(page, many=True)
            return self.get_paginated_response(serializer.data)
        return Response(SignatureRequestListSerializer(queryset, many=True).data)

    @extend_schema(
        summary='Criar solicitação de assinatura',
        description='Cria uma solicitação para um documento da organização. Sem signatários, a solicitação é de parte única; com signatários, aplica as políticas require_all e require_sequential. O hash de referência do documento é calculado em segundo plano.',
        tags=['Signature Requests'],
        request=SignatureRequestCreateSerializer,
        responses={
            201: SignatureRequestSerializer,
            400: OpenApiTypes.OBJECT,
            403: OpenApiTypes.OBJECT,
            409: OpenApiTypes.OBJECT,
        },
        examples=[
            OpenApiExample(
                'Solicitação de parte única',
                value={
                    'organization_id': 1,
                    'document_id': 10,
                    'title': 'Contrato de Prestação de Serviços',
                    'expires_at': '2026-12-31T23:59:59Z'
                }
            ),
            OpenApiExample(
                'Solicitação sequencial com dois signatários',
                value={
                    'organization_id': 1,
                    'document_id': 10,
                    'title': 'Contrato de Prestação de Serviços',
                    'signers': [
                        {'name': 'João Silva', 'email': 'joao@example.com', 'sequence': 1},
                        {'name': 'Maria Santos', 'email': 'maria@example.com', 'sequence': 2}
                    ],
                    'require_all': True,
                    'require_sequential': True
                }
            ),
        ],
    )
    def create(self, request):
        serializer = SignatureRequestCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        try:
            signature_request = self.get_service().create_request(
                request.user,
                organization_id=data['organization_id'],
                document_id=data['document_id'],
                title=data['title'],
                description=data.get('description'),
                expires_at=data.get('expires_at'),
                signers_data=data.get('signers'),
                require_all=data['require_all'],
                require_sequential=data['require_sequential'],
            )
        except SignatureWorkflowError as e:
            return workflow_error_response(e)

        return Response(SignatureRequestSerializer(signature_request).data, status=status.HTTP_201_CREATED)

    def retrieve(self, request, pk=None):
        try:
            signature_request = self.get_service().get_request(request.user, int(pk))
        except SignatureWorkflowError as e:
            return workflow_error_response(e)
        return Response(SignatureRequestSerializer(signature_request).data, status=status.HTTP_200_OK)

    @extend_schema(
        summary='Assinar solicitação',
        description='Registra a assinatura do usuário. Valida consentimento, nome legal e dados da assinatura, verifica prazo e elegibilidade do signatário e confere a integridade do documento antes de gravar a evidência.',
        tags=['Signature Requests'],
        request=SignSerializer,
        responses={
            201: SignatureSerializer,
            400: OpenApiTypes.OBJECT,
            403: OpenApiTypes.OBJECT,
            404: OpenApiTypes.OBJECT,
            409: OpenApiTypes.OBJECT,
            503: OpenApiTypes.OBJECT,
        },
        examples=[
            OpenApiExample(
                'Assinatura digitada',
                value={
                    'signature_type': 'typed',
                    'signature_data': 'João Silva',
                    'legal_name': 'João da Silva',
                    'consent_given': True
                }
            ),
        ],
    )
    @action(detail=True, methods=['post'])
    def sign(self, request, pk=None):
        serializer = SignSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        try:
            signature = self.get_service().sign(
                request.user,
                int(pk),
                signature_type=data['signature_type'],
                signature_data=data['signature_data'],
                legal_name=data['legal_name'],
                consent_given=data['consent_given'],
                ip_address=get_client_ip(request),
                user_agent=request.META.get('HTTP_USER_AGENT'),
            )
        except SignatureWorkflowError as e:
            return workflow_error_response(e)

        return Response(SignatureSerializer(signature).data, status=status.HTTP_201_CREATED)

    @extend_schema(
        summary='Recusar solicitação',
        description='Registra a recusa do signatário. Em solicitações de parte única ou que exigem todos os signatários, a solicitação passa para declined.',
        tags=['Signature Requests'],
        request=DeclineSerializer,
        responses={
            200: SignatureRequestSerializer,
            400: OpenApiTypes.OBJECT,
            403: OpenApiTypes.OBJECT,
            409: OpenApiTypes.OBJECT,
        },
    )
    @action(detail=True, methods=['post'])
    def decline(self, request, pk=None):
        serializer = DeclineSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        try:
            signature_request = self.get_service().decline(
                request.user, int(pk), reason=serializer.validated_data.get('reason')
            )
        except SignatureWorkflowError as e:
            return workflow_error_response(e)

        return Response(SignatureRequestSerializer(signature_request).data, status=status.HTTP_200_OK)

    @extend_schema(
        summary='Cancelar solicitação',
        description='Cancela uma solicitação pendente (somente admin/staff). A solicitação passa para expired e não pode mais ser assinada.',
        tags=['Signature Requests'],
        request=None,
        responses={
            200: SignatureRequestSerializer,
            403: OpenApiTypes.OBJECT,
            404: OpenApiTypes.OBJECT,
            409: OpenApiTypes.OBJECT,
        },
    )
    @action(detail=True, methods=['post'])
    def cancel(self, request, pk=None):
        try:
            signature_request = self.get_service().cancel(request.user, int(pk))
        except SignatureWorkflowError as e:
            return workflow_error_response(e)
        return Response(SignatureRequestSerializer(signature_request).data, status=status.HTTP_200_OK)

    @extend_schema(
        summary='Listar signatários da solicitação',
        description='Retorna os signatários da solicitação em ordem de sequência.',
        tags=['Signers'],
        responses={200: SignerSerializer(many=True)},
    )
    @action(detail=True, methods=['get'])
    def signers(self, request, pk=None):
        try:
            signers = self.get_service().get_signers(request.user, int(pk))
        except SignatureWorkflowError as e:
            return workflow_error_response(e)
        return Response(SignerSerializer(signers, many=True).data, status=status.HTTP_200_OK)

    @extend_schema(
        summary='Verificar se o usuário pode assinar',
        description='Indica se o usuário autenticado pode assinar agora e, caso não possa, o motivo. Não altera o estado da solicitação.',
        tags=['Signers'],
        responses={
            200: {
                'type': 'object',
                'properties': {
                    'can_sign': {'type': 'boolean'},
                    'reason': {'type': 'string', 'nullable': True},
                    'signer_id': {'type': 'integer', 'nullable': True},
                },
            },
        },
    )
    @action(detail=True, methods=['get'])
    def can_sign(self, request, pk=None):
        try:
            eligibility = self.get_service().can_user_sign(request.user, int(pk))
        except SignatureWorkflowError as e:
            return workflow_error_response(e)
        return Response({
            'can_sign': eligibility.can_sign,
            'reason': eligibility.reason,
            'signer_id': eligibility.signer_id,
        }, status=status.HTTP_200_OK)

    @extend_schema(
        summary='Visualizar documento da solicitação',
        description='Retorna um link temporário de leitura do documento a ser assinado. O acesso é registrado no log de atividades.',
        tags=['Signature Requests'],
        responses={
            200: {
                'type': 'object',
                'properties': {
                    'url': {'type': 'string'},
                    'expires_at': {'type': 'string', 'format': 'date-time'},
                    'filename': {'type': 'string'},
                    'mime_type': {'type': 'string'},
                },
            },
            403: OpenApiTypes.OBJECT,
            404: OpenApiTypes.OBJECT,
        },
    )
    @action(detail=True, methods=['get'])
    def preview(self, request, pk=None):
        try:
            preview = self.get_service().get_document_preview(request.user, int(pk))
        except SignatureWorkflowError as e:
            return workflow_error_response(e)

        preview['expires_at'] = preview['expires_at'].isoformat()
        return Response(preview, status=status.HTTP_200_OK)

    @extend_schema(
        summary='Contar solicitações pendentes',
        description='Retorna o número de solicitações pendentes e dentro do prazo visíveis ao usuário.',
        tags=['Signature Requests'],
        responses={200: {'type': 'object', 'properties': {'count': {'type': 'integer'}}}},
    )
    @action(detail=False, methods=['get'])
    def pending_count(self, request):
        try:
            count = self.get_service().count_pending(request.user)
        except SignatureWorkflowError as e:
            return workflow_error_response(e)
        return Response({'count': count}, status=status.HTTP_200_OK)

    @extend_schema(
        summary='Obter alertas de solicitações',
        description='Retorna alertas sobre solicitações pendentes: prazo vencido, vencimento próximo, pendência longa ou ausência de hash de referência.',
        tags=['Signature Requests'],
        responses={
            200: {
                'type': 'object',
                'properties': {
                    'alerts': {
                        'type': 'array',
                        'description': 'Lista de alertas',
                    },
                    'count': {
                        'type': 'integer',
                        'description': 'Número total de alertas',
                    },
                },
            },
        },
    )
    @action(detail=False, methods=['get'])
    def alerts(self, request):
        try:
            requests = self.get_service().list_requests(request.user)
        except SignatureWorkflowError as e:
            return workflow_error_response(e)
        alerts = get_signature_request_alerts(requests)
        return Response({'alerts': alerts, 'count': len(alerts)}, status=status.HTTP_200_OK)

    @extend_schema(
        summary='Obter métricas de solicitações',
        description='Retorna métricas agregadas: total, distribuição por status, taxa de assinatura e tempo médio até a conclusão.',
        tags=['Signature Requests'],
        responses={
            200: {
                'type': 'object',
                'description': 'Métricas agregadas das solicitações',
            },
        },
    )
    @action(detail=False, methods=['get'])
    def metrics(self, request):
        try:
            requests = self.get_service().list_requests(request.user)
        except SignatureWorkflowError as e:
            return workflow_error_response(e)
        return Response(get_signature_request_metrics(requests), status=status.HTTP_200_OK)
