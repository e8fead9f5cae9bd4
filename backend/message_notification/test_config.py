from __future__ import annotations

import pytest

from message_notification.config import Settings, load_settings


def test_defaults_from_empty_environment() -> None:
    settings = load_settings({})

    assert settings == Settings()
    assert settings.region == "asia-southeast1"
    assert settings.enable_test_trigger is True
    assert settings.enable_cloud_logging is False
    assert settings.notification_title("u1") == "Message from u1"


def test_overrides_from_environment() -> None:
    settings = load_settings({
        "GOOGLE_CLOUD_PROJECT": "demo",
        "FIRESTORE_DATABASE": "chat-db",
        "FUNCTION_REGION": "us-central1",
        "AUDIO_MESSAGE_PLACEHOLDER": "Tin nhắn mới qua âm thanh",
        "NOTIFICATION_TITLE_TEMPLATE": "{sender_id} sent you a message",
        "ENABLE_TEST_TRIGGER": "false",
        "FIREBASE_CREDENTIALS_SECRET": "projects/demo/secrets/firebase-admin-sdk/versions/latest",
        "LOG_LEVEL": "debug",
    })

    assert settings.project_id == "demo"
    assert settings.database == "chat-db"
    assert settings.region == "us-central1"
    assert settings.audio_placeholder == "Tin nhắn mới qua âm thanh"
    assert settings.notification_title("u1") == "u1 sent you a message"
    assert settings.enable_test_trigger is False
    assert settings.credentials_secret.endswith("/versions/latest")
    assert settings.log_level == "debug"


def test_cloud_logging_follows_runtime_unless_overridden() -> None:
    assert load_settings({"K_SERVICE": "message-notification"}).enable_cloud_logging is True
    assert load_settings({"K_SERVICE": "x", "ENABLE_CLOUD_LOGGING": "0"}).enable_cloud_logging is False


def test_invalid_flag_is_rejected() -> None:
    with pytest.raises(ValueError):
        load_settings({"ENABLE_TEST_TRIGGER": "maybe"})
