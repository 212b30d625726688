from django.urls import path
from rest_framework.routers import DefaultRouter

from .views import (
    AcceptConsentsView, AccountConsentsView, AdminConsentViewSet,
    ConsentCheckView, MyConsentsView, RequiredConsentsView,
)

router = DefaultRouter()
router.include_root_view = False
router.register(r'admin/consents', AdminConsentViewSet, basename='admin-consent')

urlpatterns = [
    path('consents/accept/', AcceptConsentsView.as_view(), name='consent-accept'),
    path('consents/check/<str:account_id>/', ConsentCheckView.as_view(), name='consent-check'),
    path('consents/account/<str:account_id>/', AccountConsentsView.as_view(), name='consent-account'),
    path('consents/required/', RequiredConsentsView.as_view(), name='consent-required'),
    path('consents/my/', MyConsentsView.as_view(), name='consent-my'),
] + router.urls
