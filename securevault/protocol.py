"""
Cross-context message protocol.

Every message kind is its own model with a literal ``type`` tag. Inbound
messages are validated against the closed union at the boundary; anything
else is rejected with ``ProtocolError``.

Security Note:
    ``AutofillResponse`` and ``DomainMatch`` carry a secret. A receiving
    context should use it for a single fill and not keep it.
"""
from typing import Annotated, Any, Literal, Optional, Union

import orjson
from pydantic import BaseModel, ConfigDict, Field, TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from .models import VaultRecord
from .exceptions import ProtocolError


class _Message(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)


# ---------------------------------------------------------------------------
# Events (published by the owning context, fanned out to listeners)
# ---------------------------------------------------------------------------

class LoginEvent(_Message):
    type: Literal["login"] = "login"
    email: str


class LogoutEvent(_Message):
    type: Literal["logout"] = "logout"


class EntriesChangedEvent(_Message):
    type: Literal["entries_changed"] = "entries_changed"
    entries: list[VaultRecord] = Field(default_factory=list)


# ---------------------------------------------------------------------------
# Requests
# ---------------------------------------------------------------------------

class StatusQuery(_Message):
    type: Literal["status_query"] = "status_query"


class DomainQuery(_Message):
    type: Literal["domain_query"] = "domain_query"
    hostname: str


class AutofillRequest(_Message):
    type: Literal["autofill_request"] = "autofill_request"
    hostname: str


# ---------------------------------------------------------------------------
# Replies and broadcasts
# ---------------------------------------------------------------------------

class Ack(_Message):
    type: Literal["ack"] = "ack"


class StatusSnapshot(_Message):
    type: Literal["status"] = "status"
    is_logged_in: bool
    account_email: Optional[str] = None
    entry_count: int = 0


class DomainMatch(_Message):
    type: Literal["domain_match"] = "domain_match"
    record: Optional[VaultRecord] = None


class AutofillResult(_Message):
    platform: str
    username: str
    secret: str = Field(repr=False)


class AutofillResponse(_Message):
    type: Literal["autofill"] = "autofill"
    result: Optional[AutofillResult] = None


class VaultSnapshot(_Message):
    """State pushed to every listener after a publish."""
    type: Literal["vault_snapshot"] = "vault_snapshot"
    is_logged_in: bool
    entries: list[VaultRecord] = Field(default_factory=list)


Event = Union[LoginEvent, LogoutEvent, EntriesChangedEvent]
Request = Union[StatusQuery, DomainQuery, AutofillRequest]
Reply = Union[Ack, StatusSnapshot, DomainMatch, AutofillResponse]

InboundMessage = Annotated[
    Union[
        LoginEvent,
        LogoutEvent,
        EntriesChangedEvent,
        StatusQuery,
        DomainQuery,
        AutofillRequest,
    ],
    Field(discriminator="type"),
]

_EVENT_TYPES = (LoginEvent, LogoutEvent, EntriesChangedEvent)
_REQUEST_TYPES = (StatusQuery, DomainQuery, AutofillRequest)

_inbound_adapter: TypeAdapter = TypeAdapter(InboundMessage)


def is_event(message: Any) -> bool:
    return isinstance(message, _EVENT_TYPES)


def parse_message(raw: Any) -> Union[Event, Request]:
    """Validate an inbound message.

    Args:
        raw: An already-built message model, a mapping, or JSON text/bytes.

    Returns:
        The typed message.

    Raises:
        ProtocolError: If ``raw`` is not one of the known message kinds.
    """
    if isinstance(raw, _EVENT_TYPES + _REQUEST_TYPES):
        return raw
    try:
        if isinstance(raw, (str, bytes, bytearray)):
            return _inbound_adapter.validate_json(raw)
        return _inbound_adapter.validate_python(raw)
    except PydanticValidationError as err:
        raise ProtocolError(f"Invalid message: {err.error_count()} error(s)") from err


def dump_message(message: _Message) -> bytes:
    """Encode a message as JSON bytes for a transport."""
    return orjson.dumps(message.model_dump(mode="json"))
