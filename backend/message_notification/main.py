# message_notification/main.py
import base64

import functions_framework
from firebase_functions import firestore_fn

from message_notification.config import load_settings
from message_notification.dispatcher import NotificationDispatcher
from utils.firebase_client import create_clients
from utils.logging_utils import configure_logging, create_logger, log_function_call

settings = load_settings()
configure_logging(settings.enable_cloud_logging, settings.log_level)

# Create structured logger
log = create_logger('message_notification')

_dispatcher = None


def get_dispatcher():
    """Create the Firebase clients and dispatcher once per process."""
    global _dispatcher
    if _dispatcher is None:
        clients = create_clients(settings)
        _dispatcher = NotificationDispatcher(clients.db, clients, settings, log)
    return _dispatcher


@log_function_call(log)
def handle_message_created(event, log=log):
    """Send a push notification for a newly created message document.

    ``event`` is a firebase-functions Firestore event whose ``data`` is the
    created DocumentSnapshot (or None).
    """
    snapshot = event.data
    data = snapshot.to_dict() if snapshot is not None else None
    return get_dispatcher().dispatch(event.params.get('id'), data, log=log)


@log_function_call(log)
def handle_message_cloud_event(cloud_event, log=log):
    """Same as handle_message_created, for a raw Firestore CloudEvent."""
    data = cloud_event.data
    if not isinstance(data, dict):
        log.warning(f"Unsupported event payload type: {type(data).__name__}")
        return None

    event_value = data.get("value") or {}
    resource_path = event_value.get("name", "")
    # projects/{project}/databases/{database}/documents/{collection}/{id}
    message_id = resource_path.rsplit('/', 1)[-1] if resource_path else None

    fields = event_value.get("fields")
    document_data = decode_firestore_fields(fields) if fields else None
    return get_dispatcher().dispatch(message_id, document_data, log=log)


@firestore_fn.on_document_created(
    document=f"{settings.messages_collection}/{{id}}",
    region=settings.region,
)
def message_notification(event: firestore_fn.Event[firestore_fn.DocumentSnapshot | None]) -> None:
    handle_message_created(event)


if settings.enable_test_trigger:
    @firestore_fn.on_document_created(document="_test/{id}", region=settings.region)
    def test(event: firestore_fn.Event[firestore_fn.DocumentSnapshot | None]) -> None:
        log.info(f"It worked: [{event.params.get('id')}]")


@functions_framework.cloud_event
def message_notification_event(cloud_event):
    handle_message_cloud_event(cloud_event)


# Helpers to turn Firestore REST typed values into plain Python values
def decode_firestore_value(value):
    """Decode one Firestore typed value, e.g. {"stringValue": "hi"}."""
    if not isinstance(value, dict):
        return value
    if "stringValue" in value:
        return value["stringValue"]
    if "integerValue" in value:
        return int(value["integerValue"])
    if "doubleValue" in value:
        return float(value["doubleValue"])
    if "booleanValue" in value:
        return bool(value["booleanValue"])
    if "nullValue" in value:
        return None
    if "timestampValue" in value:
        return value["timestampValue"]
    if "referenceValue" in value:
        return value["referenceValue"]
    if "bytesValue" in value:
        return base64.b64decode(value["bytesValue"])
    if "geoPointValue" in value:
        geo_point = value["geoPointValue"]
        return {
            "latitude": float(geo_point.get("latitude", 0.0)),
            "longitude": float(geo_point.get("longitude", 0.0)),
        }
    if "arrayValue" in value:
        return [decode_firestore_value(item) for item in value["arrayValue"].get("values", [])]
    if "mapValue" in value:
        return decode_firestore_fields(value["mapValue"].get("fields", {}))
    # unknown value kinds
    return None


def decode_firestore_fields(fields):
    return {key: decode_firestore_value(value) for key, value in (fields or {}).items()}
