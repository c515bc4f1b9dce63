"""
kuu.engine.payloads — Button custom_id Encoding
================================================

Every button Kuu sends carries a ``custom_id`` of the form::

    {action}-{entity_id}[-{sub_index}]

- ``verify-123456789012345678`` — committee verifies a member
- ``reject-123456789012345678`` — committee rejects a member
- ``revision-123456789012345678-4`` — treasurer answer for prompt 4

Anything else (old buttons from a previous version, other bots' payloads,
hand-crafted ids) parses to ``None`` and is ignored by the dispatchers.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass

__all__ = ["ActionType", "ButtonPayload", "build_payload", "parse_payload"]


class ActionType(enum.StrEnum):
    """Known button actions."""
    VERIFY = "verify"
    REJECT = "reject"
    # Treasurer answers
    ACCEPTED = "accepted"
    REVISION = "revision"
    REJECTED = "rejected"


VERIFICATION_ACTIONS = frozenset({ActionType.VERIFY, ActionType.REJECT})
ANSWER_ACTIONS = frozenset({ActionType.ACCEPTED, ActionType.REVISION, ActionType.REJECTED})


@dataclass(frozen=True, slots=True)
class ButtonPayload:
    action: ActionType
    entity_id: int
    sub_index: int | None = None

    @property
    def custom_id(self) -> str:
        return build_payload(self.action, self.entity_id, self.sub_index)


def build_payload(action: ActionType, entity_id: int, sub_index: int | None = None) -> str:
    """Encode a button ``custom_id``."""
    if sub_index is None:
        return f"{action.value}-{entity_id}"
    return f"{action.value}-{entity_id}-{sub_index}"


def _is_number(text: str) -> bool:
    return text.isascii() and text.isdigit()


def parse_payload(custom_id: str | None) -> ButtonPayload | None:
    """Decode a ``custom_id``; ``None`` for anything malformed or unknown."""
    if not custom_id:
        return None

    parts = custom_id.split("-")
    if len(parts) not in (2, 3):
        return None

    try:
        action = ActionType(parts[0])
    except ValueError:
        return None

    entity = parts[1]
    if not _is_number(entity) or int(entity) <= 0:
        return None

    sub_index = None
    if len(parts) == 3:
        if not _is_number(parts[2]):
            return None
        sub_index = int(parts[2])

    return ButtonPayload(action=action, entity_id=int(entity), sub_index=sub_index)
