"""Payload normalization and chat placeholder expansion.

Templates arrive as JSON documents (``bytes``, or ``str`` for chat prompts),
generic mappings, template models or, for text prompts, bare strings.
Everything is converted to TextTemplate / ChatTemplate before any dialect
code runs.
"""

import json
from collections.abc import Mapping, Sequence
from typing import Any

from pydantic_core import PydanticSerializationError, to_jsonable_python

from prompt_dialect_core.exceptions import InvalidTemplateError, InvalidTemplateFormatError

from .models import ChatMessage, ChatTemplate, TextTemplate
from .types import ChatRole, MessageType, PromptType

_MESSAGE_FIELDS = ("type", "role", "content", "name")


def coerce_prompt_type(prompt_type: PromptType | str) -> PromptType:
    try:
        return PromptType(prompt_type)
    except ValueError:
        raise InvalidTemplateError(f"invalid prompt type: {prompt_type!r}") from None


def _decode_document(document: str | bytes | bytearray) -> Any:
    try:
        return json.loads(document)
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise InvalidTemplateFormatError(str(e)) from e


def message_from_record(record: Mapping[str, Any], default_type: str = "") -> ChatMessage:
    """Build a ChatMessage from a generic record, keeping only string fields."""
    fields = {key: record[key] for key in _MESSAGE_FIELDS if isinstance(record.get(key), str)}
    if default_type and not fields.get("type"):
        fields["type"] = default_type
    return ChatMessage(**fields)


def parse_text_template(template: Any) -> TextTemplate:
    """Normalize a text payload.

    A ``str`` is always the template content, even when it looks like JSON.
    ``bytes`` are decoded as a ``{"content": ...}`` document.

    Raises:
        InvalidTemplateFormatError: The payload is an undecodable document.
        InvalidTemplateError: The payload has no string ``content`` field.
    """
    if isinstance(template, TextTemplate):
        return template
    if isinstance(template, str):
        return TextTemplate(content=template)
    if isinstance(template, (bytes, bytearray)):
        template = _decode_document(template)
        if not isinstance(template, Mapping):
            raise InvalidTemplateFormatError("text template document must be a JSON object")

    if isinstance(template, Mapping):
        content = template.get("content")
        if not isinstance(content, str):
            raise InvalidTemplateError("text template must have 'content' field")
        return TextTemplate(content=content)

    raise InvalidTemplateError(f"unsupported text template payload: {type(template).__name__}")


def parse_chat_template(template: Any) -> ChatTemplate:
    """Normalize a chat payload.

    Entries of ``messages`` that are not records are skipped; non-string
    fields of a record are ignored.

    Raises:
        InvalidTemplateFormatError: The payload is an undecodable document.
        InvalidTemplateError: ``messages`` is missing or is not an array.
    """
    if isinstance(template, ChatTemplate):
        return template
    if isinstance(template, (str, bytes, bytearray)):
        template = _decode_document(template)
        if not isinstance(template, Mapping):
            raise InvalidTemplateFormatError("chat template document must be a JSON object")

    if not isinstance(template, Mapping):
        raise InvalidTemplateError(f"unsupported chat template payload: {type(template).__name__}")
    if "messages" not in template:
        raise InvalidTemplateError("chat template must have 'messages' field")

    entries = template["messages"]
    if isinstance(entries, (str, bytes)) or not isinstance(entries, Sequence):
        raise InvalidTemplateError("messages must be an array")

    messages: list[ChatMessage] = []
    for entry in entries:
        if isinstance(entry, ChatMessage):
            messages.append(entry)
        elif isinstance(entry, Mapping):
            messages.append(message_from_record(entry))
    return ChatTemplate(messages=tuple(messages))


def parse_template(template: Any, prompt_type: PromptType | str) -> TextTemplate | ChatTemplate:
    if coerce_prompt_type(prompt_type) is PromptType.CHAT:
        return parse_chat_template(template)
    return parse_text_template(template)


def representative_content(template: TextTemplate | ChatTemplate) -> str:
    """Text used for detection and syntax validation: chat contents joined by newlines."""
    if isinstance(template, TextTemplate):
        return template.content
    return "\n".join(message.content for message in template.messages)


def check_structure(template: TextTemplate | ChatTemplate) -> None:
    """Enforce non-empty content and the per-message rules of chat templates.

    Raises:
        InvalidTemplateError: With the offending message index where relevant.
    """
    if isinstance(template, TextTemplate):
        if not template.content:
            raise InvalidTemplateError("content cannot be empty")
        return

    if not template.messages:
        raise InvalidTemplateError("messages cannot be empty")

    roles = {role.value for role in ChatRole}
    for i, message in enumerate(template.messages):
        if message.is_placeholder:
            if not message.name:
                raise InvalidTemplateError(f"placeholder at index {i} must have a name")
        elif message.is_message:
            if message.role not in roles:
                raise InvalidTemplateError(f"invalid role at index {i}: {message.role}")
            if not message.content:
                raise InvalidTemplateError(f"empty content at index {i}")
        else:
            raise InvalidTemplateError(f"invalid message type at index {i}: {message.type}")


def expand_placeholder(value: Any) -> list[ChatMessage]:
    """Turn a placeholder's bound value into zero or more chat messages.

    - None, empty strings and empty lists produce nothing.
    - A string becomes one ``user`` message.
    - A list of ChatMessage is spliced in unchanged.
    - Any other list is mapped item by item: records become messages whose
      type defaults to ``message`` (dropped when their content is empty,
      unless they are placeholders), non-empty strings become ``user``
      messages, other items are dropped.
    - Any other value is serialized to JSON into one ``user`` message, unless
      it serializes to nothing or ``null``.
    """
    if value is None:
        return []
    if isinstance(value, str):
        return [ChatMessage(type=MessageType.MESSAGE, role=ChatRole.USER, content=value)] if value else []

    if isinstance(value, (list, tuple)):
        if all(isinstance(item, ChatMessage) for item in value):
            return list(value)
        messages: list[ChatMessage] = []
        for item in value:
            if isinstance(item, ChatMessage):
                messages.append(item)
            elif isinstance(item, Mapping):
                message = message_from_record(item, default_type=MessageType.MESSAGE)
                if message.content or message.is_placeholder:
                    messages.append(message)
            elif isinstance(item, str) and item:
                messages.append(ChatMessage(type=MessageType.MESSAGE, role=ChatRole.USER, content=item))
        return messages

    try:
        encoded = json.dumps(value, default=to_jsonable_python, ensure_ascii=False, separators=(",", ":"))
    except (TypeError, ValueError, PydanticSerializationError):
        return []
    if not encoded or encoded == "null":
        return []
    return [ChatMessage(type=MessageType.MESSAGE, role=ChatRole.USER, content=encoded)]


__all__ = [
    "check_structure",
    "coerce_prompt_type",
    "expand_placeholder",
    "message_from_record",
    "parse_chat_template",
    "parse_template",
    "parse_text_template",
    "representative_content",
]
