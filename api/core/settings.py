import os
import sys
from pathlib import Path
from dotenv import load_dotenv
from datetime import timedelta

# Load environment variables
load_dotenv()

BASE_DIR = Path(__file__).resolve().parent.parent

TESTING = 'test' in sys.argv[1:2] or 'pytest' in sys.modules

# =================================================================
# Security Settings
# =================================================================
SECRET_KEY = os.getenv('DJANGO_SECRET_KEY', 'django-insecure-change-this-in-production')
DEBUG = os.getenv('DJANGO_DEBUG', 'True').lower() == 'true'
DJANGO_ALLOWED_HOSTS = os.getenv('DJANGO_ALLOWED_HOSTS', 'localhost,127.0.0.1,testserver')
ALLOWED_HOSTS = [h.strip() for h in DJANGO_ALLOWED_HOSTS.split(',') if h.strip()]
AUTH_USER_MODEL = 'users.User'

# =================================================================
# Application Definition
# =================================================================
INSTALLED_APPS = [
    # Django core apps
    'django.contrib.admin',
    'django.contrib.auth',
    'django.contrib.contenttypes',
    'django.contrib.sessions',
    'django.contrib.messages',
    'django.contrib.staticfiles',

    # Third-party apps
    'rest_framework',
    'rest_framework_simplejwt',
    'rest_framework_simplejwt.token_blacklist',
    'corsheaders',
    'django_filters',
    'drf_spectacular',
    'drf_spectacular_sidecar',

    # Local apps (feature-based)
    'core.apps.CoreConfig',
    'users',
    'health',
    'accounts',
    'partners.apps.PartnersConfig',
    'consents',
    'catalogue',
    'payments',
]

MIDDLEWARE = [
    'corsheaders.middleware.CorsMiddleware',
    'django.middleware.security.SecurityMiddleware',
    'django.contrib.sessions.middleware.SessionMiddleware',
    'django.middleware.common.CommonMiddleware',
    'django.middleware.csrf.CsrfViewMiddleware',
    'django.contrib.auth.middleware.AuthenticationMiddleware',
    'django.contrib.messages.middleware.MessageMiddleware',
    'django.middleware.clickjacking.XFrameOptionsMiddleware',
]

ROOT_URLCONF = 'core.urls'

TEMPLATES = [
    {
        'BACKEND': 'django.template.backends.django.DjangoTemplates',
        'DIRS': [BASE_DIR / 'templates'],
        'APP_DIRS': True,
        'OPTIONS': {
            'context_processors': [
                'django.template.context_processors.request',
                'django.contrib.auth.context_processors.auth',
                'django.contrib.messages.context_processors.messages',
            ],
        },
    },
]

WSGI_APPLICATION = 'core.wsgi.application'

# =================================================================
# Database Configuration
# =================================================================
DATABASE_ENGINE = os.getenv('DATABASE_ENGINE', 'sqlite')

if DATABASE_ENGINE == 'postgresql':
    DATABASES = {
        'default': {
            'ENGINE': 'django.db.backends.postgresql',
            'NAME': os.getenv('DATABASE_NAME', 'client_portal'),
            'USER': os.getenv('DATABASE_USER', 'postgres'),
            'PASSWORD': os.getenv('DATABASE_PASSWORD', ''),
            'HOST': os.getenv('DATABASE_HOST', 'localhost'),
            'PORT': os.getenv('DATABASE_PORT', '5432'),
        }
    }
else:
    # Default to SQLite for development
    DATABASES = {
        'default': {
            'ENGINE': 'django.db.backends.sqlite3',
            'NAME': BASE_DIR / 'db.sqlite3',
        }
    }

# =================================================================
# Authentication & JWT
# =================================================================
REST_FRAMEWORK = {
    'DEFAULT_AUTHENTICATION_CLASSES': (
        'rest_framework_simplejwt.authentication.JWTAuthentication',
        'rest_framework.authentication.SessionAuthentication',
    ),
    'DEFAULT_PERMISSION_CLASSES': [
        'rest_framework.permissions.IsAuthenticated',
    ],
    'DEFAULT_PAGINATION_CLASS': 'rest_framework.pagination.PageNumberPagination',
    'PAGE_SIZE': 50,
    'DEFAULT_SCHEMA_CLASS': 'drf_spectacular.openapi.AutoSchema',
    'EXCEPTION_HANDLER': 'core.exceptions.api_exception_handler',
    'DEFAULT_THROTTLE_RATES': {
        'invitation_token': os.getenv('INVITATION_TOKEN_THROTTLE', '20/minute'),
    },
}

# =================================================================
# API Documentation (drf-spectacular)
# =================================================================
SPECTACULAR_SETTINGS = {
    'TITLE': 'Client Portal API',
    'DESCRIPTION': '''
# Client Portal API 文件 / Client Portal API Documentation

## 簡介 / Introduction

會計事務所客戶入口的後端 API：稅務實體帳戶、合夥人邀請、法律同意書及服務購買。

Backend API for the accounting practice client portal: tax-entity accounts, partner invitations, legal consents and service purchases.

## 功能模組 / Feature Modules

| 模組 Module | 說明 Description |
|-------------|------------------|
| 🔐 認證 Authentication | 用戶註冊、JWT Token 管理 / Sign-up, JWT Token management |
| 🗂️ 帳戶 Accounts | 個人、公司、信託、合夥帳戶 / Individual, Company, Trust and Partnership accounts |
| 🤝 合夥人 Partners | 董事、股東、受託人、合夥人邀請 / Director, shareholder, trustee and partner invitations |
| ✍️ 同意書 Consents | 稅務代理授權、委聘書電子簽署 / Tax agent authority and engagement letter e-signatures |
| 🧾 服務 Services | 服務目錄與購買 / Service catalogue and purchases |
| 💳 付款 Payments | Stripe 結帳與 Webhook / Stripe checkout and webhooks |

## 認證方式 / Authentication

所有 API（除健康檢查、公開設定及 Webhook 外）都需要 JWT Bearer Token 或 Session 認證。

All APIs (except health check, public settings and webhooks) require JWT Bearer Token or session authentication.

```
Authorization: Bearer <your_jwt_token>
```
''',
    'VERSION': '1.0.0',
    'SERVE_INCLUDE_SCHEMA': False,
    'COMPONENT_SPLIT_REQUEST': True,
    'SWAGGER_UI_SETTINGS': {
        'deepLinking': True,
        'persistAuthorization': True,
        'displayOperationId': False,
        'docExpansion': 'list',
        'filter': True,
        'tagsSorter': 'alpha',
        'operationsSorter': 'alpha',
    },
    'SECURITY': [{'Bearer': []}],
    'SWAGGER_UI_DIST': 'SIDECAR',
    'SWAGGER_UI_FAVICON_HREF': 'SIDECAR',
    'REDOC_DIST': 'SIDECAR',
    # API 標籤分類和說明
    'TAGS': [
        {
            'name': 'Health',
            'description': '🏥 **健康檢查 / Health Check**\n\n系統健康狀態檢查端點，無需認證。\n\nSystem health status check endpoint, no authentication required.'
        },
        {
            'name': 'Authentication',
            'description': '🔐 **認證 / Authentication**\n\n用戶註冊、登入及 Token 刷新。\n\nSign-up, login and token refresh.'
        },
        {
            'name': 'Accounts',
            'description': '🗂️ **帳戶 / Accounts**\n\n稅務實體帳戶的建立、提交、關閉與重開。\n\nCreate, submit, close and reopen tax-entity accounts.'
        },
        {
            'name': 'Partners',
            'description': '🤝 **合夥人 / Partners**\n\n公司董事及股東、信託受託人、合夥人的邀請與審批。\n\nInvitations and approvals for company directors and shareholders, trust trustees and partnership partners.'
        },
        {
            'name': 'Consents',
            'description': '✍️ **同意書 / Consents**\n\n法律同意書的簽署與查詢。\n\nSigning and querying legal consents.'
        },
        {
            'name': 'Services',
            'description': '🧾 **服務 / Services**\n\n服務目錄、購買及狀態管理。\n\nService catalogue, purchases and status management.'
        },
        {
            'name': 'Payments',
            'description': '💳 **付款 / Payments**\n\nStripe 結帳、付款驗證與 Webhook。\n\nStripe checkout, payment verification and webhooks.'
        },
        {
            'name': 'Notifications',
            'description': '🔔 **通知 / Notifications**\n\n站內通知。\n\nIn-app notifications.'
        },
        {
            'name': 'Admin',
            'description': '🛠️ **管理 / Admin**\n\n後台管理端點，僅限職員。\n\nBack-office endpoints, staff only.'
        },
    ],
}

SIMPLE_JWT = {
    "ACCESS_TOKEN_LIFETIME": timedelta(minutes=int(os.getenv('JWT_ACCESS_TOKEN_LIFETIME_MINUTES', '60'))),
    "REFRESH_TOKEN_LIFETIME": timedelta(days=int(os.getenv('JWT_REFRESH_TOKEN_LIFETIME_DAYS', '7'))),
    "AUTH_HEADER_TYPES": ("Bearer",),
    "ROTATE_REFRESH_TOKENS": True,
    "BLACKLIST_AFTER_ROTATION": True,
}

# =================================================================
# CORS Settings
# =================================================================
CORS_ALLOWED_ORIGINS = os.getenv(
    'CORS_ALLOWED_ORIGINS',
    'http://localhost:3000,http://127.0.0.1:3000'
).split(',')
CORS_ALLOW_CREDENTIALS = True

CSRF_TRUSTED_ORIGINS_ENV = os.getenv('CSRF_TRUSTED_ORIGINS', '')
if CSRF_TRUSTED_ORIGINS_ENV:
    CSRF_TRUSTED_ORIGINS = [origin.strip() for origin in CSRF_TRUSTED_ORIGINS_ENV.split(',') if origin.strip()]
else:
    # Default for development
    CSRF_TRUSTED_ORIGINS = ['http://localhost:3000', 'http://127.0.0.1:3000', 'http://localhost:8000', 'http://127.0.0.1:8000']

# For development only - remove in production
if DEBUG:
    CORS_ALLOW_ALL_ORIGINS = True

# =================================================================
# Static Files
# =================================================================
STATIC_URL = 'static/'
STATIC_ROOT = BASE_DIR / 'staticfiles'

# =================================================================
# Frontend & Portal
# =================================================================
FRONTEND_URL = os.getenv('FRONTEND_URL', 'http://localhost:3000').rstrip('/')
PARTNER_INVITATION_TTL_DAYS = int(os.getenv('PARTNER_INVITATION_TTL_DAYS', '7'))
CONSENT_DOCUMENT_VERSION = os.getenv('CONSENT_DOCUMENT_VERSION', '1.0')

# =================================================================
# Email Configuration
# =================================================================
EMAIL_BACKEND = os.getenv('EMAIL_BACKEND', 'django.core.mail.backends.smtp.EmailBackend')
EMAIL_HOST = os.getenv('EMAIL_HOST', 'smtp.gmail.com')
EMAIL_PORT = int(os.getenv('EMAIL_PORT', '587'))
EMAIL_USE_TLS = os.getenv('EMAIL_USE_TLS', 'True').lower() == 'true'
EMAIL_HOST_USER = os.getenv('EMAIL_HOST_USER', '')
EMAIL_HOST_PASSWORD = os.getenv('EMAIL_HOST_PASSWORD', '')
EMAIL_TIMEOUT = int(os.getenv('EMAIL_TIMEOUT', '10'))
DEFAULT_FROM_EMAIL = os.getenv('DEFAULT_FROM_EMAIL', 'noreply@clientportal.local')

if TESTING:
    EMAIL_BACKEND = 'django.core.mail.backends.locmem.EmailBackend'

# =================================================================
# Redis Configuration (for caching)
# =================================================================
REDIS_URL = os.getenv('REDIS_URL', 'redis://localhost:6379/0')

# Optional: Configure cache with Redis
if REDIS_URL and not DEBUG and not TESTING:
    CACHES = {
        'default': {
            'BACKEND': 'django.core.cache.backends.redis.RedisCache',
            'LOCATION': REDIS_URL,
        }
    }

# =================================================================
# Celery (background e-mail delivery)
# =================================================================
CELERY_BROKER_URL = os.getenv('CELERY_BROKER_URL', REDIS_URL)
CELERY_RESULT_BACKEND = os.getenv('CELERY_RESULT_BACKEND', REDIS_URL)
CELERY_TASK_ALWAYS_EAGER = TESTING or os.getenv('CELERY_TASK_ALWAYS_EAGER', 'False').lower() == 'true'
CELERY_TASK_EAGER_PROPAGATES = False

# =================================================================
# Payments (Stripe)
# =================================================================
PAYMENT_GATEWAY = os.getenv('PAYMENT_GATEWAY', 'stripe')
STRIPE_SECRET_KEY = os.getenv('STRIPE_SECRET_KEY', '')
STRIPE_PUBLISHABLE_KEY = os.getenv('STRIPE_PUBLISHABLE_KEY', '')
STRIPE_WEBHOOK_SECRET = os.getenv('STRIPE_WEBHOOK_SECRET', '')
PAYMENT_CURRENCY = os.getenv('PAYMENT_CURRENCY', 'AUD')
PAYMENT_TAX_RATE = os.getenv('PAYMENT_TAX_RATE', '10')
PAYMENT_TAX_INCLUSIVE = os.getenv('PAYMENT_TAX_INCLUSIVE', 'False').lower() == 'true'

# =================================================================
# Sentry Error Tracking
# =================================================================
SENTRY_DSN = os.getenv('SENTRY_DSN', '')
if SENTRY_DSN and not TESTING:
    import sentry_sdk
    from sentry_sdk.integrations.django import DjangoIntegration
    from sentry_sdk.integrations.celery import CeleryIntegration

    sentry_sdk.init(
        dsn=SENTRY_DSN,
        integrations=[DjangoIntegration(), CeleryIntegration()],
        traces_sample_rate=float(os.getenv('SENTRY_TRACES_SAMPLE_RATE', '0.2')),
        send_default_pii=False,
        environment=os.getenv('APP_ENV', 'development'),
    )

# =================================================================
# Logging Configuration
# =================================================================
LOG_LEVEL = os.getenv('LOG_LEVEL', 'DEBUG' if DEBUG else 'INFO')

LOGGING = {
    'version': 1,
    'disable_existing_loggers': False,
    'formatters': {
        'verbose': {
            'format': '{levelname} {asctime} {module} {process:d} {thread:d} {message}',
            'style': '{',
        },
        'audit': {
            'format': '{asctime} AUDIT {message}',
            'style': '{',
        },
    },
    'handlers': {
        'console': {
            'class': 'logging.StreamHandler',
            'formatter': 'verbose',
        },
        'audit_console': {
            'class': 'logging.StreamHandler',
            'formatter': 'audit',
        },
    },
    'root': {
        'handlers': ['console'],
        'level': LOG_LEVEL,
    },
    'loggers': {
        'audit': {
            'handlers': ['audit_console'],
            'level': 'INFO',
            'propagate': False,
        },
        'django.db.backends': {
            'level': 'INFO',
        },
    },
}

# =================================================================
# Password Validation
# =================================================================
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

# =================================================================
# Internationalization
# =================================================================
LANGUAGE_CODE = 'en-us'
TIME_ZONE = 'UTC'
USE_I18N = True
USE_TZ = True

# =================================================================
# Default Primary Key Field Type
# =================================================================
DEFAULT_AUTO_FIELD = 'django.db.models.BigAutoField'
