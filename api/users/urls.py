from django.urls import path
from .auth_views import SignUpView, MeView

urlpatterns = [
    path('auth/signup/', SignUpView.as_view(), name='auth-signup'),
    path('auth/me/', MeView.as_view(), name='auth-me'),
]
