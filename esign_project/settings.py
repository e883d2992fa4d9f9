from pathlib import Path
from decouple import config, Csv
import dj_database_url

BASE_DIR = Path(__file__).resolve().parent.parent

LOGS_DIR = BASE_DIR / 'logs'
LOGS_DIR.mkdir(exist_ok=True)

SECRET_KEY = config('SECRET_KEY', default='django-insecure-change-in-production')

DEBUG = config('DEBUG', default=True, cast=bool)

allowed_hosts_env = config('ALLOWED_HOSTS', default=None)
if allowed_hosts_env:
    ALLOWED_HOSTS = [host.strip() for host in allowed_hosts_env.split(',')]
elif not DEBUG:
    ALLOWED_HOSTS = []
else:
    ALLOWED_HOSTS = ['localhost', '127.0.0.1']

INSTALLED_APPS = [
    'django.contrib.admin',
    'django.contrib.auth',
    'django.contrib.contenttypes',
    'django.contrib.sessions',
    'django.contrib.messages',
    'django.contrib.staticfiles',
    'rest_framework',
    'rest_framework.authtoken',
    'corsheaders',
    'drf_spectacular',
    'apps.domain',
    'apps.application',
    'apps.infrastructure',
    'apps.presentation',
]

MIDDLEWARE = [
    'django.middleware.security.SecurityMiddleware',
    'django.contrib.sessions.middleware.SessionMiddleware',
    'corsheaders.middleware.CorsMiddleware',
    'django.middleware.common.CommonMiddleware',
    'django.middleware.csrf.CsrfViewMiddleware',
    'django.contrib.auth.middleware.AuthenticationMiddleware',
    'django.contrib.messages.middleware.MessageMiddleware',
    'django.middleware.clickjacking.XFrameOptionsMiddleware',
]

ROOT_URLCONF = 'esign_project.urls'

TEMPLATES = [
    {
        'BACKEND': 'django.template.backends.django.DjangoTemplates',
        'DIRS': [],
        'APP_DIRS': True,
        'OPTIONS': {
            'context_processors': [
                'django.template.context_processors.debug',
                'django.template.context_processors.request',
                'django.contrib.auth.context_processors.auth',
                'django.contrib.messages.context_processors.messages',
            ],
        },
    },
]

WSGI_APPLICATION = 'esign_project.wsgi.application'

# Banco de dados: DATABASE_URL (Render/Heroku) ou variáveis individuais (Docker Compose)
DATABASE_URL = config('DATABASE_URL', default=None)

if DATABASE_URL:
    DATABASES = {
        'default': dj_database_url.parse(DATABASE_URL, conn_max_age=600)
    }
else:
    DATABASES = {
        'default': {
            'ENGINE': 'django.db.backends.postgresql',
            'NAME': config('POSTGRES_DB', default='esign_db'),
            'USER': config('POSTGRES_USER', default='esign_user'),
            'PASSWORD': config('POSTGRES_PASSWORD', default='esign_pass'),
            'HOST': config('DB_HOST', default='db'),
            'PORT': config('DB_PORT', default='5432'),
        }
    }

AUTH_PASSWORD_VALIDATORS = [
    {
        'NAME': 'django.contrib.auth.password_validation.UserAttributeSimilarityValidator',
    },
    {
        'NAME': 'django.contrib.auth.password_validation.MinimumLengthValidator',
    },
    {
        'NAME': 'django.contrib.auth.password_validation.CommonPasswordValidator',
    },
    {
        'NAME': 'django.contrib.auth.password_validation.NumericPasswordValidator',
    },
]

LANGUAGE_CODE = 'pt-br'

TIME_ZONE = 'America/Sao_Paulo'

USE_I18N = True

USE_TZ = True

STATIC_URL = 'static/'

MEDIA_URL = 'media/'
MEDIA_ROOT = config('MEDIA_ROOT', default=str(BASE_DIR / 'media'))

DEFAULT_AUTO_FIELD = 'django.db.models.BigAutoField'

REST_FRAMEWORK = {
    'DEFAULT_AUTHENTICATION_CLASSES': [
        'rest_framework.authentication.TokenAuthentication',
        'rest_framework.authentication.SessionAuthentication',
    ],
    'DEFAULT_PERMISSION_CLASSES': [
        'rest_framework.permissions.IsAuthenticated',
    ],
    'DEFAULT_PAGINATION_CLASS': 'rest_framework.pagination.PageNumberPagination',
    'PAGE_SIZE': 20,
    'DEFAULT_RENDERER_CLASSES': [
        'rest_framework.renderers.JSONRenderer',
    ],
    'DEFAULT_PARSER_CLASSES': [
        'rest_framework.parsers.JSONParser',
    ],
    'DEFAULT_SCHEMA_CLASS': 'drf_spectacular.openapi.AutoSchema',
}

CORS_ALLOWED_ORIGINS = config('CORS_ALLOWED_ORIGINS', default='http://localhost:3000', cast=Csv())
CORS_ALLOW_CREDENTIALS = True

CORS_ALLOW_METHODS = [
    'DELETE',
    'GET',
    'OPTIONS',
    'PATCH',
    'POST',
    'PUT',
]
CORS_ALLOW_HEADERS = [
    'accept',
    'accept-encoding',
    'authorization',
    'content-type',
    'dnt',
    'origin',
    'user-agent',
    'x-csrftoken',
    'x-requested-with',
]
CORS_PREFLIGHT_MAX_AGE = 86400

LOGGING = {
    'version': 1,
    'disable_existing_loggers': False,
    'formatters': {
        'verbose': {
            'format': '{levelname} {asctime} {module} {message}',
            'style': '{',
        },
    },
    'handlers': {
        'file': {
            'level': 'INFO',
            'class': 'logging.FileHandler',
            'filename': BASE_DIR / 'logs' / 'django.log',
            'formatter': 'verbose',
        },
        'console': {
            'level': 'DEBUG',
            'class': 'logging.StreamHandler',
            'formatter': 'verbose',
        },
    },
    'root': {
        'handlers': ['console', 'file'],
        'level': 'INFO',
    },
    'loggers': {
        'django': {
            'handlers': ['console', 'file'],
            'level': 'INFO',
            'propagate': False,
        },
        'apps': {
            'handlers': ['console', 'file'],
            'level': 'DEBUG',
            'propagate': False,
        },
    },
}

# E-mail
EMAIL_BACKEND = config('EMAIL_BACKEND', default='django.core.mail.backends.console.EmailBackend')
DEFAULT_FROM_EMAIL = config('DEFAULT_FROM_EMAIL', default='no-reply@esign.local')
PORTAL_BASE_URL = config('PORTAL_BASE_URL', default='http://localhost:3000')

# Signature workflow
SIGNATURE_HASH_ALGORITHM = config('SIGNATURE_HASH_ALGORITHM', default='sha256')
SIGNATURE_MAX_IMAGE_BYTES = config('SIGNATURE_MAX_IMAGE_BYTES', default=500 * 1024, cast=int)
SIGNATURE_EMAIL_NOTIFICATIONS = config('SIGNATURE_EMAIL_NOTIFICATIONS', default=False, cast=bool)

# Document storage
DOCUMENT_READ_HANDLE_TTL = config('DOCUMENT_READ_HANDLE_TTL', default=300, cast=int)
STORAGE_HTTP_TIMEOUT = config('STORAGE_HTTP_TIMEOUT', default=30, cast=int)
STORAGE_RETRY_MAX_RETRIES = config('STORAGE_RETRY_MAX_RETRIES', default=3, cast=int)
STORAGE_RETRY_DELAY = config('STORAGE_RETRY_DELAY', default=1.0, cast=float)

# Swagger/OpenAPI Configuration
SPECTACULAR_SETTINGS = {
    'TITLE': 'eSign API',
    'DESCRIPTION': '''
    API para solicitações de assinatura eletrônica de documentos.

    ## Funcionalidades Principais

    - **Solicitações de Assinatura**: Criação, listagem, cancelamento e acompanhamento
    - **Múltiplos Signatários**: Fluxos sequenciais ou paralelos, com política "todos" ou "qualquer um"
    - **Integridade**: Hash SHA-256 do documento registrado na criação e verificado na assinatura
    - **Evidências**: Assinatura desenhada, digitada ou enviada, com nome legal, consentimento, IP e user-agent

    ## Autenticação

    A API utiliza autenticação por Token. Para obter um token:

    1. Faça uma requisição POST para `/api/api-token-auth/` com `username` e `password`
    2. Use o token retornado no header: `Authorization: Token <seu-token>`

    ## Códigos de Status HTTP

    - `200 OK`: Requisição bem-sucedida
    - `201 Created`: Recurso criado com sucesso
    - `400 Bad Request`: Erro de validação
    - `401 Unauthorized`: Token de autenticação inválido ou ausente
    - `403 Forbidden`: Sem permissão para a organização ou operação
    - `404 Not Found`: Recurso não encontrado
    - `409 Conflict`: Estado inválido para a operação ou violação de integridade do documento
    - `503 Service Unavailable`: Falha temporária do armazenamento de documentos
    ''',
    'VERSION': '1.0.0',
    'SERVE_INCLUDE_SCHEMA': False,
    'CONTACT': {
        'name': 'eSign API Support',
    },
    'LICENSE': {
        'name': 'Proprietary',
    },
    'TAGS': [
        {'name': 'Autenticação', 'description': 'Endpoints para autenticação e obtenção de tokens'},
        {'name': 'Signature Requests', 'description': 'Ciclo de vida das solicitações de assinatura'},
        {'name': 'Signers', 'description': 'Signatários de uma solicitação'},
        {'name': 'Health', 'description': 'Endpoints de verificação de saúde da API'},
    ],
    'AUTHENTICATION_WHITELIST': [
        'rest_framework.authentication.TokenAuthentication',
        'rest_framework.authentication.SessionAuthentication',
    ],
    'SERVERS': [
        {'url': 'http://localhost:8000', 'description': 'Servidor de desenvolvimento'},
    ],
    'SCHEMA_PATH_PREFIX': '/api/',
    'COMPONENT_SPLIT_REQUEST': True,
    'COMPONENT_NO_READ_ONLY_REQUIRED': True,
    'SWAGGER_UI_SETTINGS': {
        'deepLinking': True,
        'displayOperationId': False,
        'defaultModelsExpandDepth': 1,
        'displayRequestDuration': True,
        'docExpansion': 'list',
        'filter': True,
    },
}
