# Firebase loads functions from main.py at the root of the functions source
# directory, so re-export the triggers defined in the package.
from message_notification.main import message_notification, message_notification_event, settings

__all__ = ["message_notification", "message_notification_event"]

if settings.enable_test_trigger:
    from message_notification.main import test

    __all__.append("test")
