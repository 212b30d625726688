from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import AllowAny
from rest_framework.response import Response
from rest_framework import serializers
from drf_spectacular.utils import extend_schema, inline_serializer
from django.conf import settings
from django.db import connection
from django.core.cache import cache
from django.utils import timezone
import os

import redis


def check_database():
    """Check database connectivity"""
    try:
        with connection.cursor() as cursor:
            cursor.execute("SELECT 1")
        return {"status": "ok", "message": "Database connected"}
    except Exception as e:
        return {"status": "error", "message": f"Database error: {str(e)}"}


def check_redis():
    """Check the Celery broker, unless tasks run in-process"""
    if settings.CELERY_TASK_ALWAYS_EAGER:
        return {"status": "not_configured", "message": "Tasks run eagerly"}
    broker_url = settings.CELERY_BROKER_URL
    if not broker_url or not broker_url.startswith(('redis://', 'rediss://')):
        return {"status": "not_configured", "message": "Redis not configured"}

    try:
        r = redis.from_url(broker_url, socket_connect_timeout=2)
        r.ping()
        return {"status": "ok", "message": "Redis connected"}
    except redis.RedisError as e:
        return {"status": "error", "message": f"Redis error: {str(e)}"}


def check_cache():
    """Check Django cache backend"""
    try:
        cache.set('health_check', 'ok', 10)
        if cache.get('health_check') == 'ok':
            return {"status": "ok", "message": "Cache working"}
        return {"status": "error", "message": "Cache read/write failed"}
    except Exception as e:
        return {"status": "error", "message": f"Cache error: {str(e)}"}


def check_payments():
    if not settings.STRIPE_SECRET_KEY:
        return {"status": "not_configured", "message": "Stripe key not set"}
    if not settings.STRIPE_WEBHOOK_SECRET:
        return {"status": "error", "message": "Stripe webhook secret not set"}
    return {"status": "ok", "message": "Stripe configured"}


@extend_schema(
    tags=['Health'],
    summary='健康檢查 / Health Check',
    description='檢查系統是否正常運行。無需認證。\n\nCheck if the system is running normally. No authentication required.',
    responses=inline_serializer(
        name='HealthCheckResponse',
        fields={
            'status': serializers.CharField(),
            'message': serializers.CharField(),
            'timestamp': serializers.CharField(),
        }
    )
)
@api_view(['GET'])
@permission_classes([AllowAny])
def health_check(request):
    return Response({
        "status": "ok",
        "message": "Client portal API is up and running",
        "timestamp": timezone.now().isoformat(),
    }, status=200)


@extend_schema(
    tags=['Health'],
    summary='詳細健康檢查 / Detailed Health Check',
    description='檢查資料庫、Redis、緩存及付款設定。無需認證。\n\nCheck database, Redis, cache and payment configuration. No authentication required.',
    responses=inline_serializer(
        name='DetailedHealthCheckResponse',
        fields={
            'status': serializers.CharField(),
            'timestamp': serializers.CharField(),
            'services': serializers.DictField(),
            'version': serializers.CharField(),
        }
    )
)
@api_view(['GET'])
@permission_classes([AllowAny])
def detailed_health_check(request):
    """Detailed health check with all service statuses"""
    services = {
        "api": {"status": "ok", "message": "API server running"},
        "database": check_database(),
        "redis": check_redis(),
        "cache": check_cache(),
        "payments": check_payments(),
    }

    # Payments misconfiguration is reported but does not fail the check
    critical = ("database", "redis", "cache")
    healthy = all(services[name]["status"] in ("ok", "not_configured") for name in critical)
    overall_status = "ok" if healthy else "degraded"

    return Response({
        "status": overall_status,
        "timestamp": timezone.now().isoformat(),
        "services": services,
        "version": os.environ.get("APP_VERSION", "1.0.0"),
        "environment": os.environ.get("ENVIRONMENT", "development"),
    }, status=200 if healthy else 503)
