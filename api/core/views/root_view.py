"""
Root API View
=============
Landing endpoint listing the portal's API areas.
"""
from django.conf import settings
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import AllowAny
from rest_framework.response import Response
from rest_framework import serializers
from drf_spectacular.utils import extend_schema, inline_serializer

API_PREFIX = '/api/v1'

API_AREAS = {
    'auth': f'{API_PREFIX}/auth/',
    'accounts': f'{API_PREFIX}/accounts/',
    'partners': f'{API_PREFIX}/partners/',
    'consents': f'{API_PREFIX}/consents/required/',
    'services': f'{API_PREFIX}/services/categories/',
    'payments': f'{API_PREFIX}/payments/settings/',
    'notifications': f'{API_PREFIX}/notifications/',
    'health': f'{API_PREFIX}/health/',
}


@extend_schema(
    tags=['Health'],
    summary='API 目錄 / API index',
    description='列出客戶入口網站的 API 區域。無需認證。\n\nLists the client portal API areas. No authentication required.',
    responses=inline_serializer(
        name='ApiIndexResponse',
        fields={
            'name': serializers.CharField(),
            'version': serializers.CharField(),
            'docs': serializers.CharField(),
            'endpoints': serializers.DictField(child=serializers.CharField()),
        }
    )
)
@api_view(['GET'])
@permission_classes([AllowAny])
def root_view(request):
    return Response({
        'name': settings.SPECTACULAR_SETTINGS.get('TITLE', 'Client Portal API'),
        'version': settings.SPECTACULAR_SETTINGS.get('VERSION', '1.0.0'),
        'docs': '/api/docs/',
        'endpoints': API_AREAS,
    })
