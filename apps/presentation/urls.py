from django.urls import path, include
from rest_framework.routers import DefaultRouter
from .views import SignatureRequestViewSet, custom_obtain_auth_token

router = DefaultRouter()
router.register(r'signature-requests', SignatureRequestViewSet, basename='signature-request')

urlpatterns = [
    path('api-token-auth/', custom_obtain_auth_token, name='api-token-auth'),
    path('', include(router.urls)),
]
