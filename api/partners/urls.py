from django.urls import path
from rest_framework.routers import DefaultRouter

from .views import (
    AcceptInvitationView, CheckEmailView, CompanyPartnerViewSet, PartnershipPartnerViewSet,
    PendingInvitationsView, RespondInvitationView, TrustPartnerViewSet, VerifyInvitationTokenView,
)

router = DefaultRouter()
router.include_root_view = False
router.register(r'partners', CompanyPartnerViewSet, basename='company-partner')
router.register(r'trust-partners', TrustPartnerViewSet, basename='trust-partner')
router.register(r'partnership-partners', PartnershipPartnerViewSet, basename='partnership-partner')

urlpatterns = [
    path('partners/check-email/', CheckEmailView.as_view(), name='partner-check-email'),
    path('partners/invitations/', PendingInvitationsView.as_view(), name='partner-invitations'),
    path(
        'partners/invitations/<str:kind>/<uuid:pk>/respond/',
        RespondInvitationView.as_view(),
        name='partner-invitation-respond',
    ),
    path('partners/verify-token/', VerifyInvitationTokenView.as_view(), name='partner-verify-token'),
    path('partners/accept-invitation/', AcceptInvitationView.as_view(), name='partner-accept-invitation'),
] + router.urls
