import os
from pathlib import Path
from urllib.parse import urlparse

from dotenv import load_dotenv

BASE_DIR = Path(__file__).resolve().parent.parent
load_dotenv(BASE_DIR / ".env")


def env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


def env_int(name: str, default: int) -> int:
    raw = os.getenv(name, "").strip()
    return int(raw) if raw else default


def env_list(name: str, default: str = "") -> list[str]:
    return [item.strip() for item in os.getenv(name, default).split(",") if item.strip()]


SECRET_KEY = os.getenv("DJANGO_SECRET_KEY", "dev-key")
DEBUG = env_bool("DJANGO_DEBUG", True)
ALLOWED_HOSTS = env_list("DJANGO_ALLOWED_HOSTS") or ["*"]
CSRF_TRUSTED_ORIGINS = env_list("CSRF_TRUSTED_ORIGINS", "http://localhost:8000")
SECURE_PROXY_SSL_HEADER = ("HTTP_X_FORWARDED_PROTO", "https")

INSTALLED_APPS = [
    "django.contrib.admin",
    "django.contrib.auth",
    "django.contrib.contenttypes",
    "django.contrib.sessions",
    "django.contrib.messages",
    "django.contrib.staticfiles",
    "django_htmx",
    "apps.common",
    "apps.restaurants",
    "apps.accounts",
    "apps.menu",
    "apps.drivers",
    "apps.orders",
    "apps.notifications",
]

MIDDLEWARE = [
    "django.middleware.security.SecurityMiddleware",
    "whitenoise.middleware.WhiteNoiseMiddleware",
    "django.contrib.sessions.middleware.SessionMiddleware",
    "django.middleware.common.CommonMiddleware",
    "django.middleware.csrf.CsrfViewMiddleware",
    "django.contrib.auth.middleware.AuthenticationMiddleware",
    "django.contrib.messages.middleware.MessageMiddleware",
    "django.middleware.clickjacking.XFrameOptionsMiddleware",
    "django_htmx.middleware.HtmxMiddleware",
]

ROOT_URLCONF = "config.urls"
WSGI_APPLICATION = "config.wsgi.application"

TEMPLATES = [
    {
        "BACKEND": "django.template.backends.django.DjangoTemplates",
        "DIRS": [BASE_DIR / "templates"],
        "APP_DIRS": True,
        "OPTIONS": {
            "context_processors": [
                "django.template.context_processors.debug",
                "django.template.context_processors.request",
                "django.contrib.auth.context_processors.auth",
                "django.contrib.messages.context_processors.messages",
            ],
            "libraries": {"currency": "apps.common.templatetags.currency"},
        },
    },
]

# PostgreSQL: DATABASE_URL wins over the POSTGRES_* variables
_db_url = urlparse(os.getenv("DATABASE_URL", ""))
DATABASES = {
    "default": {
        "ENGINE": "django.db.backends.postgresql",
        "NAME": _db_url.path.lstrip("/") or os.getenv("POSTGRES_DB", "pedidos"),
        "USER": _db_url.username or os.getenv("POSTGRES_USER", "pedidos"),
        "PASSWORD": _db_url.password or os.getenv("POSTGRES_PASSWORD", "pedidos"),
        "HOST": _db_url.hostname or os.getenv("POSTGRES_HOST", "127.0.0.1"),
        "PORT": str(_db_url.port or os.getenv("POSTGRES_PORT", "5432")),
        "CONN_MAX_AGE": env_int("DB_CONN_MAX_AGE", 600),
        "OPTIONS": {"options": "-c client_encoding=UTF8 -c timezone=UTC"},
    }
}
DEFAULT_AUTO_FIELD = "django.db.models.BigAutoField"

AUTH_USER_MODEL = "accounts.User"
AUTH_PASSWORD_VALIDATORS = [
    {"NAME": "django.contrib.auth.password_validation.UserAttributeSimilarityValidator"},
    {"NAME": "django.contrib.auth.password_validation.MinimumLengthValidator"},
    {"NAME": "django.contrib.auth.password_validation.CommonPasswordValidator"},
]
LOGIN_URL = "/auth/login"
LOGIN_REDIRECT_URL = "/restaurant/orders/"
LOGOUT_REDIRECT_URL = "/auth/login"

LANGUAGE_CODE = "es"
# validity windows and order days are evaluated in restaurant local time
TIME_ZONE = os.getenv("TIME_ZONE", "America/Guatemala")
USE_I18N = True
USE_TZ = True

STATIC_URL = "/static/"
STATIC_ROOT = BASE_DIR / "staticfiles"
MEDIA_URL = "/media/"
MEDIA_ROOT = BASE_DIR / "media"
STORAGES = {
    "default": {"BACKEND": "django.core.files.storage.FileSystemStorage"},
    "staticfiles": {"BACKEND": "whitenoise.storage.CompressedManifestStaticFilesStorage"},
}

# Menu images
ALLOWED_IMAGE_MIME_TYPES = {"image/jpeg", "image/png", "image/webp"}
MAX_UPLOAD_BYTES = env_int("MAX_UPLOAD_BYTES", 2 * 1024 * 1024)

# Redis backs the cache (throttles), the Celery broker and order-update pub/sub
REDIS_URL = os.getenv("REDIS_URL", "redis://localhost:6379/0")
CACHES = {
    "default": {
        "BACKEND": "django_redis.cache.RedisCache",
        "LOCATION": REDIS_URL,
        "OPTIONS": {"CLIENT_CLASS": "django_redis.client.DefaultClient"},
        "KEY_PREFIX": "pedidos",
    }
}

CELERY_BROKER_URL = os.getenv("CELERY_BROKER_URL") or REDIS_URL
CELERY_RESULT_BACKEND = os.getenv("CELERY_RESULT_BACKEND") or CELERY_BROKER_URL
CELERY_TIMEZONE = TIME_ZONE
CELERY_TASK_ALWAYS_EAGER = False

# Customer and driver messages
NOTIF_DEV_MODE = env_bool("NOTIF_DEV_MODE", True)
TWILIO_ACCOUNT_SID = os.getenv("TWILIO_ACCOUNT_SID", "")
TWILIO_AUTH_TOKEN = os.getenv("TWILIO_AUTH_TOKEN", "")
TWILIO_FROM = os.getenv("TWILIO_FROM", "")
SENDGRID_API_KEY = os.getenv("SENDGRID_API_KEY", "")
SENDGRID_FROM = os.getenv("SENDGRID_FROM", "pedidos@example.com")
DEFAULT_PHONE_REGION = os.getenv("DEFAULT_PHONE_REGION", "GT")

# Restaurant order screens
RESTAURANT_ORDERS_PER_PAGE = env_int("RESTAURANT_ORDERS_PER_PAGE", 20)
RESTAURANT_ORDERS_MAX_PER_PAGE = env_int("RESTAURANT_ORDERS_MAX_PER_PAGE", 100)

# Real-time order updates, read by the websocket gateway
ORDER_UPDATES_ENABLED = env_bool("ORDER_UPDATES_ENABLED", True)
ORDER_UPDATES_CHANNEL_PREFIX = os.getenv("ORDER_UPDATES_CHANNEL_PREFIX", "orders.restaurant.")

# Kitchen tickets
AUTO_PRINT_NEW_ORDERS = env_bool("AUTO_PRINT_NEW_ORDERS", False)
PRINT_SERVICE_URL = os.getenv("PRINT_SERVICE_URL", "")
PRINT_SERVICE_TOKEN = os.getenv("PRINT_SERVICE_TOKEN", "")
PRINT_SERVICE_TIMEOUT = env_int("PRINT_SERVICE_TIMEOUT", 10)

# Driver app
DRIVER_MAX_DELIVERY_DISTANCE_M = env_int("DRIVER_MAX_DELIVERY_DISTANCE_M", 500)
DRIVER_TOKEN_MAX_AGE = env_int("DRIVER_TOKEN_MAX_AGE", 60 * 60 * 24 * 30)
DRIVER_IDLE_MINUTES = env_int("DRIVER_IDLE_MINUTES", 30)

MENU_PRICE_DISCLAIMER = os.getenv(
    "MENU_PRICE_DISCLAIMER",
    "Los precios pueden variar según el restaurante y el tipo de servicio.",
)

LOGGING = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "simple": {"format": "[%(levelname)s] %(asctime)s %(name)s: %(message)s"},
    },
    "handlers": {
        "console": {"class": "logging.StreamHandler", "formatter": "simple"},
    },
    "loggers": {
        "apps": {"handlers": ["console"], "level": os.getenv("APP_LOG_LEVEL", "INFO"), "propagate": False},
        "django": {"handlers": ["console"], "level": "WARNING", "propagate": False},
        "celery": {"handlers": ["console"], "level": "INFO", "propagate": False},
    },
}

SESSION_COOKIE_SECURE = env_bool("SESSION_COOKIE_SECURE", True)
CSRF_COOKIE_SECURE = env_bool("CSRF_COOKIE_SECURE", True)
SECURE_HSTS_SECONDS = env_int("SECURE_HSTS_SECONDS", 0)
