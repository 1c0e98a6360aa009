"""
Post or delete messages in a Webex Teams room.
"""
import json
import logging
import mimetypes
import os
from collections import namedtuple

from webex_notify.exception import ConfigError

LOG = logging.getLogger(__name__)

DEFAULT_FILE_CONTENT_TYPE = "application/octet-stream"


class MessageTarget(namedtuple('_MessageTarget', ['room_id', 'person_email'])):
    """
    Where a message goes: a resolved group room, or a person for a direct message.
    """
    __slots__ = ()

    def __new__(cls, room_id=None, person_email=None):
        if bool(room_id) == bool(person_email):
            raise ConfigError("a message goes either to a room or to a person")
        return super().__new__(cls, room_id, person_email)

    def as_fields(self):
        if self.room_id:
            return {'roomId': self.room_id}
        return {'toPersonEmail': self.person_email}


def parse_card(card_json):
    """
    Parse a card attachment given on the command line. Beyond being a JSON object,
    the payload is not inspected.

    Raises:
        ConfigError: if ``card_json`` is not valid JSON or not an object.
    """
    try:
        card = json.loads(card_json)
    except ValueError as exc:
        raise ConfigError(f"card attachment is not valid JSON: {exc}") from exc
    if not isinstance(card, dict):
        raise ConfigError(f"card attachment must be a JSON object, not {card_json}")
    return card


def read_markdown(lines):
    """
    Join input lines into a message body, each line ending with a newline.

    Raises:
        ConfigError: if the input cannot be decoded.
    """
    try:
        return ''.join(line.rstrip('\r\n') + '\n' for line in lines)
    except UnicodeDecodeError as exc:
        raise ConfigError(f"cannot read message text: {exc}") from exc


class MessageDispatcher:
    """
    Performs exactly one message operation per run.
    """
    def __init__(self, api):
        self.api = api

    def delete_message(self, message_id):
        self.api.delete_message(message_id)
        LOG.info("Deleted message %s", message_id)

    def send_card(self, target, markdown, card):
        """
        Post ``markdown`` with ``card`` as the only attachment.
        """
        body = dict(target.as_fields(), markdown=markdown, attachments=[card])
        return self._log_created(self.api.create_message(json_body=body))

    def send_file(self, target, markdown, file_path):
        """
        Post ``markdown`` with the file at ``file_path`` as a multipart upload.

        Raises:
            ConfigError: if the file is missing or unreadable. Nothing is sent in that case.
        """
        if not os.path.isfile(file_path):
            raise ConfigError(f"cannot attach file >>{file_path}<<: no such file")
        try:
            attachment = open(file_path, 'rb')
        except OSError as exc:
            raise ConfigError(f"cannot attach file >>{file_path}<<: {exc}") from exc

        fields = dict(target.as_fields(), markdown=markdown)
        if target.room_id:
            fields['roomType'] = 'group'
        content_type = mimetypes.guess_type(file_path)[0] or DEFAULT_FILE_CONTENT_TYPE
        with attachment:
            files = {'files': (os.path.basename(file_path), attachment, content_type)}
            message = self.api.create_message(fields=fields, files=files)
        return self._log_created(message)

    def send_text(self, target, markdown):
        body = dict(target.as_fields(), markdown=markdown)
        return self._log_created(self.api.create_message(json_body=body))

    def dispatch(self, target, markdown, card=None, file_path=None, message_id=None):
        """
        Pick the operation from the inputs given. Deletion wins over everything,
        then a card, then a file, then plain text.

        Returns:
            Message: The created message, or None after a deletion.
        """
        if message_id:
            self.delete_message(message_id)
            return None
        if card is not None:
            return self.send_card(target, markdown, card)
        if file_path:
            return self.send_file(target, markdown, file_path)
        return self.send_text(target, markdown)

    @staticmethod
    def _log_created(message):
        LOG.info("Created message %s at %s", message.id, message.created)
        return message
