from django.urls import path
from rest_framework.routers import DefaultRouter

from .views import (
    AdminPurchaseViewSet, AdminServiceViewSet, PurchasedServicesView,
    PurchaseServiceView, ServiceCategoriesView, ServicesForAccountView,
)

router = DefaultRouter()
router.include_root_view = False
# Registered before admin/services so "purchases" is not read as a service id
router.register(r'admin/services/purchases', AdminPurchaseViewSet, basename='admin-purchase')
router.register(r'admin/services', AdminServiceViewSet, basename='admin-service')

urlpatterns = [
    path('services/for-account/<str:account_id>/', ServicesForAccountView.as_view(), name='services-for-account'),
    path('services/purchased/<str:account_id>/', PurchasedServicesView.as_view(), name='services-purchased'),
    path('services/purchase/', PurchaseServiceView.as_view(), name='services-purchase'),
    path('services/categories/', ServiceCategoriesView.as_view(), name='services-categories'),
] + router.urls
