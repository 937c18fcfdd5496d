"""
Django settings for the telemetry hub backend.

Process configuration (secrets, broker endpoints, database) is supplied through the
environment; every value has a development default.
"""

from __future__ import annotations

import os
import sys
from pathlib import Path

BASE_DIR = Path(__file__).resolve().parent.parent


def _env_bool(name: str, default: bool = False) -> bool:
    raw = os.environ.get(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


def _env_int(name: str, default: int) -> int:
    raw = os.environ.get(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _env_list(name: str, default: list[str]) -> list[str]:
    raw = os.environ.get(name)
    if raw is None:
        return default
    return [item.strip() for item in raw.split(",") if item.strip()]


IS_TESTING = (len(sys.argv) > 1 and sys.argv[1] == "test") or "pytest" in sys.modules

SECRET_KEY = os.environ.get("DJANGO_SECRET_KEY", "dev-insecure-telemetry-hub-key")
DEBUG = _env_bool("DJANGO_DEBUG", default=False)
ALLOWED_HOSTS = _env_list("DJANGO_ALLOWED_HOSTS", ["localhost", "127.0.0.1", "[::1]"])

INSTALLED_APPS = [
    "django.contrib.contenttypes",
    "django.contrib.auth",
    "django.contrib.staticfiles",
    "rest_framework",
    "channels",
    "transports_mqtt",
    "realtime",
    "devices",
    "telemetry",
    "automation",
    "commands",
    "notifications",
]

MIDDLEWARE = [
    "django.middleware.security.SecurityMiddleware",
    "django.middleware.common.CommonMiddleware",
]

ROOT_URLCONF = "config.urls"

TEMPLATES = [
    {
        "BACKEND": "django.template.backends.django.DjangoTemplates",
        "DIRS": [],
        "APP_DIRS": True,
        "OPTIONS": {"context_processors": []},
    }
]

ASGI_APPLICATION = "config.asgi.application"

if os.environ.get("POSTGRES_DB"):
    DATABASES = {
        "default": {
            "ENGINE": "django.db.backends.postgresql",
            "NAME": os.environ["POSTGRES_DB"],
            "USER": os.environ.get("POSTGRES_USER", ""),
            "PASSWORD": os.environ.get("POSTGRES_PASSWORD", ""),
            "HOST": os.environ.get("POSTGRES_HOST", "localhost"),
            "PORT": os.environ.get("POSTGRES_PORT", "5432"),
            "CONN_MAX_AGE": _env_int("POSTGRES_CONN_MAX_AGE", 60),
        }
    }
else:
    DATABASES = {
        "default": {
            "ENGINE": "django.db.backends.sqlite3",
            "NAME": os.environ.get("SQLITE_PATH", str(BASE_DIR / "db.sqlite3")),
        }
    }

DEFAULT_AUTO_FIELD = "django.db.models.BigAutoField"

LANGUAGE_CODE = "en-us"
TIME_ZONE = "UTC"
USE_I18N = True
USE_TZ = True

STATIC_URL = "static/"

# Identity is owned by an external service; users are opaque string references.
REST_FRAMEWORK = {
    "DEFAULT_RENDERER_CLASSES": ["config.renderers.EnvelopeJSONRenderer"],
    "DEFAULT_PARSER_CLASSES": ["rest_framework.parsers.JSONParser"],
    "DEFAULT_AUTHENTICATION_CLASSES": [],
    "DEFAULT_PERMISSION_CLASSES": ["rest_framework.permissions.AllowAny"],
    "UNAUTHENTICATED_USER": None,
    "EXCEPTION_HANDLER": "config.exception_handler.custom_exception_handler",
    "DEFAULT_PAGINATION_CLASS": "config.pagination.EnvelopePagination",
    "PAGE_SIZE": 50,
}

CHANNEL_LAYERS = {
    "default": {
        "BACKEND": "channels.layers.InMemoryChannelLayer",
    }
}

MQTT_CONNECTION = {
    "enabled": _env_bool("MQTT_ENABLED", default=False),
    "host": os.environ.get("MQTT_HOST", "localhost"),
    "port": _env_int("MQTT_PORT", 1883),
    "username": os.environ.get("MQTT_USERNAME", ""),
    "password": os.environ.get("MQTT_PASSWORD", ""),
    "use_tls": _env_bool("MQTT_USE_TLS", default=False),
    "tls_insecure": _env_bool("MQTT_TLS_INSECURE", default=False),
    "client_id": os.environ.get("MQTT_CLIENT_ID", "telemetry-hub"),
    "keepalive_seconds": _env_int("MQTT_KEEPALIVE_SECONDS", 30),
}

DEVICE_TRANSPORT = {
    "telemetry_topic": os.environ.get("DEVICE_TELEMETRY_TOPIC", "devices/+/telemetry"),
    "command_topic_template": os.environ.get("DEVICE_COMMAND_TOPIC_TEMPLATE", "devices/{device_id}/commands"),
    "command_ack_topic": os.environ.get("DEVICE_COMMAND_ACK_TOPIC", "devices/+/commands/ack"),
    "qos": _env_int("DEVICE_TRANSPORT_QOS", 1),
}

RULE_EVALUATOR = {
    "max_workers": _env_int("RULE_EVALUATOR_MAX_WORKERS", 4),
    "queue_max_depth": _env_int("RULE_EVALUATOR_QUEUE_MAX_DEPTH", 1000),
    # Evaluate inline on the ingesting thread (used by the test suite).
    "eager": _env_bool("RULE_EVALUATOR_EAGER", default=IS_TESTING),
}

NOTIFICATIONS = {
    "provider_type": os.environ.get("NOTIFICATION_PROVIDER", "log"),
    "config": {
        "url": os.environ.get("NOTIFICATION_WEBHOOK_URL", ""),
        "method": os.environ.get("NOTIFICATION_WEBHOOK_METHOD", "POST"),
    },
}

TELEMETRY_QUERY_DEFAULT_HOURS = _env_int("TELEMETRY_QUERY_DEFAULT_HOURS", 24)

LOG_LEVEL = os.environ.get("LOG_LEVEL", "WARNING" if IS_TESTING else "INFO").upper()

LOGGING = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "verbose": {
            "format": "%(asctime)s %(levelname)-8s %(name)s: %(message)s",
        },
    },
    "handlers": {
        "console": {
            "class": "logging.StreamHandler",
            "formatter": "verbose",
        },
    },
    "root": {
        "handlers": ["console"],
        "level": "WARNING",
    },
    "loggers": {
        "django": {"handlers": ["console"], "level": "WARNING", "propagate": False},
        **{
            app: {"handlers": ["console"], "level": LOG_LEVEL, "propagate": False}
            for app in (
                "config",
                "devices",
                "telemetry",
                "automation",
                "commands",
                "realtime",
                "notifications",
                "transports_mqtt",
            )
        },
    },
}
