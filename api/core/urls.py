from django.contrib import admin
from django.urls import path, include
from rest_framework.routers import DefaultRouter
from rest_framework_simplejwt.views import (
    TokenObtainPairView,
    TokenRefreshView,
)
from drf_spectacular.views import (
    SpectacularAPIView,
    SpectacularSwaggerView,
    SpectacularRedocView,
)
from drf_spectacular.utils import extend_schema
from core.views.root_view import root_view
from core.views.notification_views import NotificationViewSet


class DecoratedTokenObtainPairView(TokenObtainPairView):
    @extend_schema(
        tags=['Authentication'],
        summary='登入 / Obtain JWT Token',
        description='使用電郵和密碼獲取 JWT access token 和 refresh token。\n\nObtain JWT access and refresh tokens with e-mail and password.'
    )
    def post(self, request, *args, **kwargs):
        return super().post(request, *args, **kwargs)


class DecoratedTokenRefreshView(TokenRefreshView):
    @extend_schema(
        tags=['Authentication'],
        summary='刷新 JWT Token / Refresh JWT Token',
        description='使用 refresh token 獲取新的 access token。\n\nObtain a new access token using a refresh token.'
    )
    def post(self, request, *args, **kwargs):
        return super().post(request, *args, **kwargs)


notification_router = DefaultRouter()
notification_router.include_root_view = False
notification_router.register(r'notifications', NotificationViewSet, basename='notification')


urlpatterns = [
    path('', root_view, name='root'),

    path('admin/', admin.site.urls),

    # API Documentation
    path('api/schema/', SpectacularAPIView.as_view(), name='schema'),
    path('api/docs/', SpectacularSwaggerView.as_view(url_name='schema'), name='swagger-ui'),
    path('api/redoc/', SpectacularRedocView.as_view(url_name='schema'), name='redoc'),

    # JWT Auth
    path('api/v1/auth/token/', DecoratedTokenObtainPairView.as_view(), name='token_obtain_pair'),
    path('api/v1/auth/token/refresh/', DecoratedTokenRefreshView.as_view(), name='token_refresh'),

    path('api/v1/', include(notification_router.urls)),

    path('api/v1/', include('health.urls')),
    path('api/v1/', include('users.urls')),
    path('api/v1/', include('accounts.urls')),
    path('api/v1/', include('partners.urls')),
    path('api/v1/', include('consents.urls')),
    path('api/v1/', include('catalogue.urls')),
    path('api/v1/', include('payments.urls')),
]
