"""Forward new chat messages to the other participant of a match over FCM."""
from dataclasses import dataclass
from typing import Optional

from firebase_admin import messaging

CHAT_NOTIFICATION_TYPE = 'chat'


@dataclass(frozen=True)
class MessageEvent:
    message_id: str
    match_id: Optional[str]
    sender_id: Optional[str]
    display_message: Optional[str]


def read_message_event(message_id, data, settings):
    """Extract sender, match and display text from a new message document.

    Returns None when the event carries no document data.
    """
    if not data:
        return None

    if data.get('type') == 'text':
        display_message = data.get('text')
    else:
        display_message = settings.audio_placeholder

    return MessageEvent(
        message_id=message_id,
        match_id=data.get('matchId'),
        sender_id=data.get('senderId'),
        display_message=display_message,
    )


def select_recipient(users, sender_id):
    """First participant that is not the sender, or None.

    The match must list the sender and at least one other member. When the
    first non-sender entry is empty there is no recipient.
    """
    if not isinstance(users, (list, tuple)) or len(users) < 2 or sender_id not in users:
        return None
    recipient_id = next((user_id for user_id in users if user_id != sender_id), None)
    return recipient_id or None


def clean_push_tokens(push_tokens):
    if not isinstance(push_tokens, (list, tuple)):
        return []
    return [token for token in push_tokens if isinstance(token, str) and token.strip()]


def build_multicast_message(tokens, event, settings):
    """Build the FCM multicast message for one chat message."""
    data = None
    if event.display_message:
        data = {
            'matchId': str(event.match_id),
            'type': CHAT_NOTIFICATION_TYPE,
        }

    return messaging.MulticastMessage(
        tokens=list(tokens),
        notification=messaging.Notification(
            title=settings.notification_title(event.sender_id),
            body=event.display_message or None,
        ),
        data=data,
    )


def collect_failures(tokens, batch_response):
    """Pair every rejected token with the provider's error message."""
    failures = []
    for token, send_response in zip(tokens, batch_response.responses):
        if send_response.success:
            continue
        error = send_response.exception
        failures.append((token, str(error) if error is not None else 'unknown error'))
    return failures


class NotificationDispatcher:
    """Runs message -> match -> recipient -> multicast for one new message.

    ``db`` is a Firestore client and ``messenger`` anything exposing
    ``send_each_for_multicast(message)``. Both are created once per process
    and only read here, so one dispatcher serves every invocation.
    """

    def __init__(self, db, messenger, settings, log):
        self.db = db
        self.messenger = messenger
        self.settings = settings
        self.log = log

    def dispatch(self, message_id, data, log=None):
        log = log or self.log
        event = read_message_event(message_id, data, self.settings)
        if event is None:
            log.info(f"Message {message_id} has no data, nothing to send")
            return None

        log.info(f"We got new message: [{message_id}]", {
            "match_id": event.match_id,
            "sender_id": event.sender_id,
        })

        tokens = self.resolve_recipient_tokens(event, log)
        if not tokens:
            return None

        return self.send_chat_notification(tokens, event, log)

    def resolve_recipient_tokens(self, event, log=None):
        log = log or self.log

        if not event.match_id:
            log.info(f"Message {event.message_id} has no matchId")
            return None

        match_doc = self.db.collection(self.settings.matches_collection).document(event.match_id).get()
        if not match_doc.exists:
            log.info(f"Match {event.match_id} not found")
            return None

        match_data = match_doc.to_dict() or {}
        recipient_id = select_recipient(match_data.get('users'), event.sender_id)
        log.info(f"We got receiveUser: {recipient_id}")
        if not recipient_id:
            return None

        user_doc = self.db.collection(self.settings.users_collection).document(recipient_id).get()
        if not user_doc.exists:
            log.info(f"User {recipient_id} not found")
            return None

        user_data = user_doc.to_dict() or {}
        tokens = clean_push_tokens(user_data.get('pushTokens'))
        if not tokens:
            log.info(f"No push tokens for user {recipient_id}")
            return None

        return tokens

    def send_chat_notification(self, tokens, event, log=None):
        log = log or self.log
        message = build_multicast_message(tokens, event, self.settings)

        log.info(f"Pushing {len(tokens)} tokens to user", {"match_id": event.match_id})
        response = self.messenger.send_each_for_multicast(message)

        if response.failure_count > 0:
            failures = collect_failures(tokens, response)
            failed_tokens = [token for token, _ in failures]
            log.warning(
                f"List of tokens that caused failures: {', '.join(failed_tokens)}",
                {"failures": [{"token": token, "error": error} for token, error in failures]},
            )
        else:
            log.info(f"Notification delivered to {response.success_count} devices")

        return response
