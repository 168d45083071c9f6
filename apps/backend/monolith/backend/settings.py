# backend/settings.py
from pathlib import Path
from decimal import Decimal
from decouple import AutoConfig
from datetime import timedelta
import os

BASE_DIR = Path(__file__).resolve().parent.parent
config = AutoConfig(search_path=BASE_DIR)

# ==========================================
# BASIC CONFIGURATION
# ==========================================
SECRET_KEY = config("LEDGER_SECRET_KEY")
DEBUG = config('DEBUG', default=False, cast=bool)
ALLOWED_HOSTS = config('ALLOWED_HOSTS', default='*', cast=lambda v: [h.strip() for h in v.split(',') if h.strip()])

# ==========================================
# DJANGO APPS
# ==========================================
DJANGO_APPS = [
    'django.contrib.admin',
    'django.contrib.auth',
    'django.contrib.contenttypes',
    'django.contrib.sessions',
    'django.contrib.messages',
    'django.contrib.staticfiles',
]

THIRD_PARTY_APPS = [
    'corsheaders',
    'rest_framework',
    'rest_framework_simplejwt.token_blacklist',
    'django_prometheus',
    'django_extensions',  # ACTIVE for runserver_plus / shell_plus
]

LOCAL_APPS = [
    'trading.apps.TradingConfig',
]

INSTALLED_APPS = DJANGO_APPS + THIRD_PARTY_APPS + LOCAL_APPS

# ==========================================
# REST FRAMEWORK
# ==========================================
REST_FRAMEWORK = {
    'DEFAULT_AUTHENTICATION_CLASSES': (
        'rest_framework_simplejwt.authentication.JWTAuthentication',
        'rest_framework.authentication.SessionAuthentication',
    ),
    'DEFAULT_PERMISSION_CLASSES': [
        'rest_framework.permissions.IsAuthenticated',
    ],
    # Money is rendered as strings, never floats
    'COERCE_DECIMAL_TO_STRING': True,
    'DEFAULT_THROTTLE_CLASSES': [
        'rest_framework.throttling.AnonRateThrottle',
        'rest_framework.throttling.UserRateThrottle'
    ],
    'DEFAULT_THROTTLE_RATES': {
        'anon': '100/hour',
        'user': '5000/hour',
    }
}

# ==========================================
# JWT SETTINGS
# ==========================================
SIMPLE_JWT = {
    "ACCESS_TOKEN_LIFETIME": timedelta(hours=1),
    "REFRESH_TOKEN_LIFETIME": timedelta(days=30),
    "ROTATE_REFRESH_TOKENS": True,
    "BLACKLIST_AFTER_ROTATION": True,
    "UPDATE_LAST_LOGIN": True,
    "ALGORITHM": "HS256",
    "AUTH_HEADER_TYPES": ("Bearer",),
    "USER_ID_FIELD": "id",
    "USER_ID_CLAIM": "user_id",
}

# ==========================================
# MIDDLEWARE
# ==========================================
MIDDLEWARE = [
    # Prometheus metrics - must be first
    'django_prometheus.middleware.PrometheusBeforeMiddleware',

    # Correlation ID - early for request tracking
    'trading.middleware.correlation_id.CorrelationIDMiddleware',

    'corsheaders.middleware.CorsMiddleware',
    'django.middleware.security.SecurityMiddleware',
    'django.contrib.sessions.middleware.SessionMiddleware',
    'django.middleware.common.CommonMiddleware',
    'django.middleware.csrf.CsrfViewMiddleware',
    'django.contrib.auth.middleware.AuthenticationMiddleware',
    'django.contrib.messages.middleware.MessageMiddleware',
    'django.middleware.clickjacking.XFrameOptionsMiddleware',

    # Prometheus metrics - must be last
    'django_prometheus.middleware.PrometheusAfterMiddleware',
]

ROOT_URLCONF = 'backend.urls'

# ==========================================
# TEMPLATES
# ==========================================
TEMPLATES = [
    {
        'BACKEND': 'django.template.backends.django.DjangoTemplates',
        'DIRS': [],
        'APP_DIRS': True,
        'OPTIONS': {
            'context_processors': [
                'django.template.context_processors.debug',
                'django.template.context_processors.request',
                'django.contrib.auth.context_processors.auth',
                'django.contrib.messages.context_processors.messages',
            ],
        },
    },
]

WSGI_APPLICATION = 'backend.wsgi.application'

# ==========================================
# DATABASES
# ==========================================
# PostgreSQL gives real row locks (SELECT ... FOR UPDATE). The SQLite
# fallback serializes writers on the whole database and is for local use;
# ledger amounts stay exact there through ExactDecimalField.
PG_DATABASE = config('LEDGER_PG_DATABASE', default='')

if PG_DATABASE:
    DATABASES = {
        'default': {
            'ENGINE': 'django.db.backends.postgresql',
            'NAME': PG_DATABASE,
            'USER': config('LEDGER_PG_USER', default='postgres'),
            'PASSWORD': config('LEDGER_PG_PASSWORD', default=''),
            'HOST': config('LEDGER_PG_HOST', default='localhost'),
            'PORT': config('LEDGER_PG_PORT', default='5432'),
            'CONN_MAX_AGE': config('LEDGER_PG_CONN_MAX_AGE', default=60, cast=int),
        }
    }
else:
    DATABASES = {
        'default': {
            'ENGINE': 'django.db.backends.sqlite3',
            'NAME': BASE_DIR / 'db.sqlite3',
            'OPTIONS': {
                'timeout': 5,
            },
        }
    }

# ==========================================
# CACHE
# ==========================================
REDIS_URL = config("REDIS_URL", default="")

if REDIS_URL:
    CACHES = {
        'default': {
            'BACKEND': 'django_redis.cache.RedisCache',
            'LOCATION': REDIS_URL,
            'OPTIONS': {
                'CLIENT_CLASS': 'django_redis.client.DefaultClient',
            },
        }
    }
else:
    CACHES = {
        'default': {
            'BACKEND': 'django.core.cache.backends.locmem.LocMemCache',
            'LOCATION': 'ledger-cache',
        }
    }

# ==========================================
# LEDGER CONFIGURATION
# ==========================================
LEDGER = {
    # Balance of the wallet created for every new user
    'INITIAL_WALLET_BALANCE': config('LEDGER_INITIAL_WALLET_BALANCE', default='0.00', cast=Decimal),
    # Extra attempts after a store conflict (lock timeout, deadlock, serialization failure)
    'STORE_CONFLICT_RETRIES': config('LEDGER_STORE_CONFLICT_RETRIES', default=2, cast=int),
    'STORE_CONFLICT_BACKOFF_SECONDS': config('LEDGER_STORE_CONFLICT_BACKOFF_SECONDS', default=0.05, cast=float),
    'PRICE_CACHE_TIMEOUT': config('LEDGER_PRICE_CACHE_TIMEOUT', default=300, cast=int),
    'PRICE_TICK_INTERVAL': config('LEDGER_PRICE_TICK_INTERVAL', default=3.0, cast=float),
    'PRICE_FEED_RETRY': {
        'MAX_ATTEMPTS': config('LEDGER_PRICE_FEED_MAX_ATTEMPTS', default=5, cast=int),
        'INITIAL_DELAY_SECONDS': config('LEDGER_PRICE_FEED_INITIAL_DELAY', default=1.0, cast=float),
        'BACKOFF_MULTIPLIER': 2.0,
        'MAX_DELAY_SECONDS': config('LEDGER_PRICE_FEED_MAX_DELAY', default=30.0, cast=float),
    },
    'TRANSACTION_HISTORY_LIMIT': 50,
    'STREAM_MAX_SECONDS': config('LEDGER_STREAM_MAX_SECONDS', default=300, cast=int),
    'STREAM_HEARTBEAT_SECONDS': config('LEDGER_STREAM_HEARTBEAT_SECONDS', default=15, cast=int),
}

# ==========================================
# LOGGING
# ==========================================
LOGGING = {
    'version': 1,
    'disable_existing_loggers': False,
    'formatters': {
        'verbose': {
            'format': '{levelname} {asctime} {module} {process:d} {thread:d} [{correlation_id}] {message}',
            'style': '{',
        },
        'simple': {
            'format': '{levelname} {message}',
            'style': '{',
        },
        'json': {
            '()': 'pythonjsonlogger.json.JsonFormatter',
            'format': '%(asctime)s %(name)s %(levelname)s %(message)s %(pathname)s %(lineno)d %(funcName)s %(correlation_id)s',
        },
    },
    'filters': {
        'correlation_id': {
            '()': 'trading.middleware.logging_filter.CorrelationIDFilter',
        },
    },
    'handlers': {
        'file': {
            'level': 'INFO',
            'class': 'logging.FileHandler',
            'filename': BASE_DIR / 'logs' / 'ledger.log',
            'formatter': 'verbose',
            'filters': ['correlation_id'],
        },
        'console': {
            'level': 'DEBUG' if DEBUG else 'INFO',
            'class': 'logging.StreamHandler',
            'formatter': 'simple' if DEBUG else 'json',  # JSON in production
            'filters': ['correlation_id'],
        },
    },
    'loggers': {
        'trading': {
            'handlers': ['file', 'console'],
            'level': 'INFO',
            'propagate': True,
        },
        'trading.events': {
            'level': 'INFO',
            'propagate': True,
        },
        'rest_framework_simplejwt': {
            'handlers': ['file', 'console'],
            'level': 'WARNING',
            'propagate': True,
        },
    },
}

# Create logs directory if it doesn't exist
os.makedirs(BASE_DIR / 'logs', exist_ok=True)

# ==========================================
# PASSWORD CONFIGURATION
# ==========================================
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

# ==========================================
# INTERNATIONALIZATION
# ==========================================
LANGUAGE_CODE = 'en-us'
TIME_ZONE = 'UTC'
USE_I18N = True
USE_TZ = True

# ==========================================
# STATIC FILES
# ==========================================
STATIC_ROOT = 'staticfiles'
STATIC_URL = 'static/'
DEFAULT_AUTO_FIELD = 'django.db.models.BigAutoField'

# ==========================================
# CORS CONFIGURATION
# ==========================================
if DEBUG:
    CORS_ALLOW_ALL_ORIGINS = True
    CORS_ALLOW_CREDENTIALS = True
else:
    CORS_ALLOWED_ORIGINS = config(
        'CORS_ALLOWED_ORIGINS',
        default='http://localhost:3000,http://127.0.0.1:3000',
        cast=lambda v: [o.strip() for o in v.split(',') if o.strip()],
    )
    CORS_ALLOW_CREDENTIALS = True

CORS_ALLOW_HEADERS = [
    'accept',
    'accept-encoding',
    'authorization',
    'content-type',
    'origin',
    'user-agent',
    'x-csrftoken',
    'x-requested-with',
    'x-request-id',
]

CORS_EXPOSE_HEADERS = [
    'content-type',
    'x-request-id',
]

# ==========================================
# SECURITY SETTINGS
# ==========================================
if DEBUG:
    CSRF_COOKIE_SECURE = False
    SESSION_COOKIE_SECURE = False
    SECURE_SSL_REDIRECT = False
else:
    CSRF_COOKIE_SECURE = True
    SESSION_COOKIE_SECURE = True
    SECURE_SSL_REDIRECT = config('SECURE_SSL_REDIRECT', default=True, cast=bool)
    SECURE_HSTS_SECONDS = 31536000
    SECURE_HSTS_INCLUDE_SUBDOMAINS = True
    SECURE_CONTENT_TYPE_NOSNIFF = True

CSRF_COOKIE_HTTPONLY = True
CSRF_COOKIE_SAMESITE = 'Lax'
SESSION_COOKIE_HTTPONLY = True
SESSION_COOKIE_SAMESITE = 'Lax'

# Trusted proxy header for HTTPS detection
SECURE_PROXY_SSL_HEADER = ('HTTP_X_FORWARDED_PROTO', 'https')

# ==========================================
# DJANGO EXTENSIONS CONFIGURATION
# ==========================================
if DEBUG:
    SHELL_PLUS_PRINT_SQL = True
    SHELL_PLUS_IMPORTS = [
        'from trading.models import *',
        'from trading.application.wiring import get_trade_executor, get_wallet_service',
        'from decimal import Decimal',
    ]

# ==========================================
# DEVELOPMENT SETTINGS
# ==========================================
if DEBUG:
    # Add database logging in development
    LOGGING['loggers']['django.db.backends'] = {
        'handlers': ['console'],
        'level': 'DEBUG',
        'propagate': False,
    }
