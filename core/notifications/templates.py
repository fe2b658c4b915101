"""
Notification message templates.

messages.yaml maps a message type to a subject and a body, both rendered
with str.format. The subject is the email subject and the SMS prefix; the
body is what every channel delivers and what gets stored on the
notification row.
"""

from dataclasses import dataclass
from pathlib import Path

import yaml

TEMPLATES_PATH = Path(__file__).parent / "messages.yaml"


@dataclass(frozen=True)
class Message:
    subject: str
    body: str


_templates: dict[str, Message] | None = None


def load_templates() -> dict[str, Message]:
    """
    Parse messages.yaml into Message templates, once per process.

    Raises:
        ValueError: An entry lacks a subject or a body
    """
    global _templates
    if _templates is not None:
        return _templates

    with open(TEMPLATES_PATH) as f:
        raw = yaml.safe_load(f) or {}

    templates = {}
    for message_type, parts in raw.items():
        missing = sorted({"subject", "body"} - set(parts))
        if missing:
            raise ValueError(
                f"Message template {message_type!r} is missing {', '.join(missing)}"
            )
        templates[message_type] = Message(str(parts["subject"]), str(parts["body"]))

    _templates = templates
    return _templates


def get_subject_and_body(message_type: str, context: dict | None = None) -> Message:
    """
    Render the subject and body of one message type.

    Raises:
        KeyError: Unknown message type, or a placeholder missing from context
    """
    template = load_templates()[message_type]
    context = context or {}
    return Message(
        subject=template.subject.format(**context).strip(),
        body=template.body.format(**context).strip(),
    )
