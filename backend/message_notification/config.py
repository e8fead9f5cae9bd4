import os
from dataclasses import dataclass
from typing import Optional

DEFAULT_REGION = 'asia-southeast1'
DEFAULT_AUDIO_PLACEHOLDER = 'New audio message'
DEFAULT_TITLE_TEMPLATE = 'Message from {sender_id}'

_TRUE_VALUES = {'1', 'true', 'yes', 'on'}
_FALSE_VALUES = {'0', 'false', 'no', 'off'}


def _env_flag(environ, name, default):
    value = environ.get(name)
    if value is None or value.strip() == '':
        return default
    value = value.strip().lower()
    if value in _TRUE_VALUES:
        return True
    if value in _FALSE_VALUES:
        return False
    raise ValueError(f"{name} must be a boolean flag, got {value!r}")


@dataclass(frozen=True)
class Settings:
    project_id: Optional[str] = None
    database: str = '(default)'
    region: str = DEFAULT_REGION
    messages_collection: str = 'messages'
    matches_collection: str = 'matches'
    users_collection: str = 'users'
    audio_placeholder: str = DEFAULT_AUDIO_PLACEHOLDER
    title_template: str = DEFAULT_TITLE_TEMPLATE
    enable_test_trigger: bool = True
    credentials_secret: Optional[str] = None
    enable_cloud_logging: bool = False
    log_level: str = 'INFO'

    def notification_title(self, sender_id):
        return self.title_template.format(sender_id=sender_id)


def load_settings(environ=None) -> Settings:
    """Build Settings from environment variables set on the deployed function."""
    if environ is None:
        environ = os.environ

    return Settings(
        project_id=environ.get('GOOGLE_CLOUD_PROJECT') or None,
        database=environ.get('FIRESTORE_DATABASE') or '(default)',
        region=environ.get('FUNCTION_REGION') or DEFAULT_REGION,
        messages_collection=environ.get('MESSAGES_COLLECTION') or 'messages',
        matches_collection=environ.get('MATCHES_COLLECTION') or 'matches',
        users_collection=environ.get('USERS_COLLECTION') or 'users',
        audio_placeholder=environ.get('AUDIO_MESSAGE_PLACEHOLDER') or DEFAULT_AUDIO_PLACEHOLDER,
        title_template=environ.get('NOTIFICATION_TITLE_TEMPLATE') or DEFAULT_TITLE_TEMPLATE,
        enable_test_trigger=_env_flag(environ, 'ENABLE_TEST_TRIGGER', True),
        credentials_secret=environ.get('FIREBASE_CREDENTIALS_SECRET') or None,
        # K_SERVICE is only set inside the Cloud Functions / Cloud Run runtime
        enable_cloud_logging=_env_flag(environ, 'ENABLE_CLOUD_LOGGING', bool(environ.get('K_SERVICE'))),
        log_level=environ.get('LOG_LEVEL') or 'INFO',
    )
