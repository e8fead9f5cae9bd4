import json
import logging

import firebase_admin
from firebase_admin import credentials, firestore, messaging
from google.cloud import secretmanager

logger = logging.getLogger('chat-notifications')


def get_firebase_credentials(secret_name):
    """Load a service account JSON stored in Secret Manager.

    ``secret_name`` is the full resource name, e.g.
    ``projects/<project>/secrets/firebase-admin-sdk/versions/latest``.
    """
    client = secretmanager.SecretManagerServiceClient()
    response = client.access_secret_version(name=secret_name)
    return json.loads(response.payload.data.decode("UTF-8"))


def initialize_firebase(settings):
    """Return the default Firebase app, initializing it on first use."""
    try:
        app = firebase_admin.get_app()
        logger.info(f"Firebase already initialized: {app.name}")
        return app
    except ValueError:
        pass

    options = {'projectId': settings.project_id} if settings.project_id else None

    if settings.credentials_secret:
        cred = credentials.Certificate(get_firebase_credentials(settings.credentials_secret))
        app = firebase_admin.initialize_app(cred, options)
        logger.info("Firebase initialized with service account from Secret Manager")
    else:
        app = firebase_admin.initialize_app(options=options)
        logger.info("Firebase initialized with application default credentials")

    return app


class FirebaseClients:
    """Firestore and FCM handles bound to one Firebase app."""

    def __init__(self, app, db):
        self.app = app
        self.db = db

    def send_each_for_multicast(self, message):
        return messaging.send_each_for_multicast(message, app=self.app)


def create_clients(settings):
    app = initialize_firebase(settings)
    db = firestore.client(app=app, database_id=settings.database)
    return FirebaseClients(app, db)
