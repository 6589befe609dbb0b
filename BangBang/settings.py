"""
Django settings for the BangBang wallpaper storefront.

Every secret and platform endpoint is read from the environment; a local
``.env`` file is loaded first when present.
"""
import os
from pathlib import Path

import cloudinary
from dotenv import load_dotenv

BASE_DIR = Path(__file__).resolve().parent.parent

load_dotenv(BASE_DIR / '.env')


def env_bool(name, default=False):
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ('1', 'true', 'yes', 'on')


def env_list(name, default=''):
    return [item.strip() for item in os.getenv(name, default).split(',') if item.strip()]


SECRET_KEY = os.getenv('DJANGO_SECRET_KEY', 'django-insecure-bangbang-dev-key')
DEBUG = env_bool('DEBUG')
ALLOWED_HOSTS = env_list('ALLOWED_HOSTS', 'localhost,127.0.0.1')
CSRF_TRUSTED_ORIGINS = env_list('CSRF_TRUSTED_ORIGINS')

INSTALLED_APPS = [
    'django.contrib.admin',
    'django.contrib.auth',
    'django.contrib.contenttypes',
    'django.contrib.sessions',
    'django.contrib.messages',
    'django.contrib.staticfiles',
    'cloudinary',
    'anymail',
    'store',
]

MIDDLEWARE = [
    'django.middleware.security.SecurityMiddleware',
    'django.contrib.sessions.middleware.SessionMiddleware',
    'django.middleware.common.CommonMiddleware',
    'django.middleware.csrf.CsrfViewMiddleware',
    'django.contrib.auth.middleware.AuthenticationMiddleware',
    'store.middleware.ProtectedRoutesMiddleware',
    'django.contrib.messages.middleware.MessageMiddleware',
    'django.middleware.clickjacking.XFrameOptionsMiddleware',
]

ROOT_URLCONF = 'BangBang.urls'

TEMPLATES = [
    {
        'BACKEND': 'django.template.backends.django.DjangoTemplates',
        'DIRS': [],
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

WSGI_APPLICATION = 'BangBang.wsgi.application'

DATABASES = {
    'default': {
        'ENGINE': 'django.db.backends.sqlite3',
        'NAME': os.getenv('DATABASE_PATH', str(BASE_DIR / 'db.sqlite3')),
    }
}

DEFAULT_AUTO_FIELD = 'django.db.models.BigAutoField'

LANGUAGE_CODE = 'en-us'
TIME_ZONE = 'UTC'
USE_I18N = True
USE_TZ = True

STATIC_URL = '/static/'
STATIC_ROOT = BASE_DIR / 'staticfiles'

LOGIN_URL = os.getenv('LOGIN_URL', '/admin/login/')
SITE_URL = os.getenv('SITE_URL', 'http://localhost:8000')

# ------------------------------
# Managed object storage
# ------------------------------
cloudinary.config(
    cloud_name=os.getenv('CLOUDINARY_CLOUD_NAME', 'bangbang'),
    api_key=os.getenv('CLOUDINARY_API_KEY', ''),
    api_secret=os.getenv('CLOUDINARY_API_SECRET', ''),
    secure=True,
)

# ------------------------------
# Payments
# ------------------------------
STRIPE_SECRET_KEY = os.getenv('STRIPE_SECRET_KEY', '')
STRIPE_CURRENCY = os.getenv('STRIPE_CURRENCY', 'usd')

# ------------------------------
# Image generation
# ------------------------------
IMAGINE_API_URL = os.getenv('IMAGINE_API_URL', 'https://cl.imagineapi.dev/items/images/')
IMAGINE_API_KEY = os.getenv('IMAGINE_API_KEY', '')
IMAGINE_TIMEOUT = float(os.getenv('IMAGINE_TIMEOUT', '30'))
IMAGINE_POLL_INTERVAL = float(os.getenv('IMAGINE_POLL_INTERVAL', '5'))
IMAGINE_POLL_TIMEOUT = float(os.getenv('IMAGINE_POLL_TIMEOUT', '600'))

# ------------------------------
# User directory
# ------------------------------
COGNITO_REGION = os.getenv('COGNITO_REGION', 'us-east-1')
COGNITO_USER_POOL_ID = os.getenv('COGNITO_USER_POOL_ID', '')

# ------------------------------
# E-mail
# ------------------------------
EMAIL_BACKEND = os.getenv('EMAIL_BACKEND', 'anymail.backends.brevo.EmailBackend')
ANYMAIL = {
    'BREVO_API_KEY': os.getenv('BREVO_API_KEY', ''),
}
DEFAULT_FROM_EMAIL = os.getenv('DEFAULT_FROM_EMAIL', 'BangBang Wallpapers <orders@bangbang.example>')

# ------------------------------
# Ranking
# ------------------------------
LIKE_WEIGHT = int(os.getenv('LIKE_WEIGHT', '1'))
CART_WEIGHT = int(os.getenv('CART_WEIGHT', '1'))

CUSTOM_WALLPAPER_PRICE = os.getenv('CUSTOM_WALLPAPER_PRICE', '49.99')

AUTO_MIGRATE = env_bool('AUTO_MIGRATE')

LOGGING = {
    'version': 1,
    'disable_existing_loggers': False,
    'formatters': {
        'simple': {
            'format': '%(asctime)s %(levelname)s %(name)s: %(message)s',
        },
    },
    'handlers': {
        'console': {
            'class': 'logging.StreamHandler',
            'formatter': 'simple',
        },
    },
    'root': {
        'handlers': ['console'],
        'level': 'WARNING',
    },
    'loggers': {
        'store': {
            'handlers': ['console'],
            'level': os.getenv('LOG_LEVEL', 'INFO'),
            'propagate': False,
        },
    },
}
