from django.conf import settings
from django.db import connection
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import AllowAny
from rest_framework.response import Response
from rest_framework import status
from drf_spectacular.utils import extend_schema
from apps.infrastructure.storage import StorageFactory


@extend_schema(
    summary='Health Check',
    description='Verifica o status de saúde da API, a conectividade com o banco de dados e os backends de armazenamento disponíveis.',
    tags=['Health'],
    responses={
        200: {
            'type': 'object',
            'properties': {
                'status': {
                    'type': 'string',
                    'example': 'ok',
                    'description': 'Status geral da API'
                },
                'database': {
                    'type': 'string',
                    'example': 'healthy',
                    'description': 'Status da conexão com o banco de dados (healthy/unhealthy)'
                },
                'storage_backends': {
                    'type': 'array',
                    'items': {'type': 'string'},
                    'example': ['http', 'local'],
                    'description': 'Backends de armazenamento de documentos registrados'
                },
                'hash_algorithm': {
                    'type': 'string',
                    'example': 'sha256',
                    'description': 'Algoritmo usado no hash de integridade dos documentos'
                }
            }
        }
    },
)
@api_view(['GET'])
@permission_classes([AllowAny])
def health_check(request):
    try:
        with connection.cursor() as cursor:
            cursor.execute("SELECT 1")
        db_status = "healthy"
    except Exception:
        db_status = "unhealthy"

    return Response({
        "status": "ok",
        "database": db_status,
        "storage_backends": StorageFactory().available_backends(),
        "hash_algorithm": settings.SIGNATURE_HASH_ALGORITHM,
    }, status=status.HTTP_200_OK)
