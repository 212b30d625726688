from rest_framework.routers import DefaultRouter
from .views import AccountViewSet, AdminAccountViewSet

router = DefaultRouter()
router.include_root_view = False
router.register(r'accounts', AccountViewSet, basename='account')
router.register(r'admin/accounts', AdminAccountViewSet, basename='admin-account')

urlpatterns = router.urls
