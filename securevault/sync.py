"""
SyncCoordinator: shares the unlocked state with every listening context.

The coordinator mirrors what the VaultStore publishes (who is logged in and
the current entry list), pushes a ``VaultSnapshot`` to registered listeners
after each publish, and answers point queries from contexts that were not
listening at the time.

Delivery is at-most-once: a listener that raises simply misses that update
and is expected to re-query with ``query_status`` / ``query_for_domain``.

Security Note:
    The cached entries hold secrets in memory while a user is logged in.
    Never log entries; log counts, emails and hostnames only.
"""
import inspect
import logging
from typing import Any, Awaitable, Callable, Optional, Union

from .models import VaultRecord
from .matcher import match_domain
from .exceptions import ProtocolError
from .protocol import (
    Ack,
    AutofillRequest,
    AutofillResponse,
    AutofillResult,
    DomainMatch,
    DomainQuery,
    EntriesChangedEvent,
    Event,
    LoginEvent,
    LogoutEvent,
    Reply,
    StatusQuery,
    StatusSnapshot,
    VaultSnapshot,
    is_event,
    parse_message,
)

logger = logging.getLogger("securevault.sync")

Listener = Callable[[VaultSnapshot], Union[Awaitable[None], None]]


class Subscription:
    """Handle returned by ``SyncCoordinator.subscribe``."""

    def __init__(self, coordinator: "SyncCoordinator", listener: Listener):
        self._coordinator = coordinator
        self._listener = listener
        self._active = True

    @property
    def active(self) -> bool:
        return self._active

    def unsubscribe(self) -> None:
        """Stop receiving broadcasts. Safe to call more than once."""
        if self._active:
            self._coordinator._remove_listener(self._listener)
            self._active = False

    def __enter__(self) -> "Subscription":
        return self

    def __exit__(self, *exc_info) -> None:
        self.unsubscribe()


class SyncCoordinator:
    """Process-wide mirror of the vault state with publish/subscribe."""

    def __init__(self) -> None:
        self._is_logged_in: bool = False
        self._account_email: Optional[str] = None
        self._entries: list[VaultRecord] = []
        self._listeners: list[Listener] = []

    def __repr__(self) -> str:
        return (
            f'<SyncCoordinator [logged_in:{self._is_logged_in}, '
            f'entries:{len(self._entries)}, listeners:{len(self._listeners)}]>'
        )

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    @property
    def is_logged_in(self) -> bool:
        return self._is_logged_in

    @property
    def account_email(self) -> Optional[str]:
        return self._account_email

    @property
    def entries(self) -> list[VaultRecord]:
        return list(self._entries)

    def snapshot(self) -> VaultSnapshot:
        return VaultSnapshot(
            is_logged_in=self._is_logged_in,
            entries=list(self._entries),
        )

    # ------------------------------------------------------------------
    # Publish / subscribe
    # ------------------------------------------------------------------

    def subscribe(self, listener: Listener) -> Subscription:
        """Register a callable that receives every ``VaultSnapshot``.

        The listener may be a plain function or a coroutine function.
        """
        self._listeners.append(listener)
        logger.debug("Listener subscribed (%d total)", len(self._listeners))
        return Subscription(self, listener)

    def _remove_listener(self, listener: Listener) -> None:
        try:
            self._listeners.remove(listener)
        except ValueError:
            pass

    def _apply(self, event: Event) -> None:
        if isinstance(event, LoginEvent):
            if self._account_email != event.email:
                # entries of a previous account never leak into a new login
                self._entries = []
            self._is_logged_in = True
            self._account_email = event.email
        elif isinstance(event, LogoutEvent):
            self._is_logged_in = False
            self._account_email = None
            self._entries = []
        elif isinstance(event, EntriesChangedEvent):
            self._entries = list(event.entries)

    async def publish(self, event: Any) -> None:
        """Apply an event to the mirrored state and broadcast the snapshot.

        Args:
            event: ``LoginEvent``, ``LogoutEvent`` or ``EntriesChangedEvent``
                (or its raw mapping/JSON form).

        Raises:
            ProtocolError: If ``event`` is not a known event.
        """
        event = parse_message(event)
        if not is_event(event):
            raise ProtocolError(f"Not an event: {event.type}")
        self._apply(event)
        logger.debug(
            "Published %s: logged_in=%s entries=%d",
            event.type, self._is_logged_in, len(self._entries),
        )
        await self._broadcast(self.snapshot())

    async def _broadcast(self, snapshot: VaultSnapshot) -> None:
        for listener in list(self._listeners):
            try:
                result = listener(snapshot)
                if inspect.isawaitable(result):
                    await result
            except Exception as err:  # pylint: disable=W0703
                logger.warning(
                    "Broadcast dropped for listener %r: %s", listener, err,
                )

    # ------------------------------------------------------------------
    # Point queries
    # ------------------------------------------------------------------

    def query_status(self) -> StatusSnapshot:
        return StatusSnapshot(
            is_logged_in=self._is_logged_in,
            account_email=self._account_email,
            entry_count=len(self._entries) if self._is_logged_in else 0,
        )

    def query_for_domain(self, hostname: str) -> Optional[VaultRecord]:
        """Matching entry for ``hostname``; ``None`` whenever logged out."""
        if not self._is_logged_in:
            return None
        return match_domain(self._entries, hostname)

    def autofill(self, hostname: str) -> Optional[AutofillResult]:
        """Credentials for a single fill on ``hostname``."""
        record = self.query_for_domain(hostname)
        if record is None:
            return None
        logger.debug("Autofill match for host=%s platform=%s", hostname, record.platform)
        return AutofillResult(
            platform=record.platform,
            username=record.username,
            secret=record.secret,
        )

    def page_hint(self, hostname: str) -> Optional[str]:
        """Platform name to offer on a freshly loaded page, without the secret."""
        record = self.query_for_domain(hostname)
        return record.platform if record is not None else None

    # ------------------------------------------------------------------
    # Boundary dispatch
    # ------------------------------------------------------------------

    async def handle(self, message: Any) -> Reply:
        """Validate and dispatch one inbound message.

        Returns:
            ``Ack`` for events, otherwise the reply for the request.

        Raises:
            ProtocolError: If the message is malformed or unknown.
        """
        message = parse_message(message)
        if is_event(message):
            await self.publish(message)
            return Ack()
        if isinstance(message, StatusQuery):
            return self.query_status()
        if isinstance(message, DomainQuery):
            return DomainMatch(record=self.query_for_domain(message.hostname))
        if isinstance(message, AutofillRequest):
            return AutofillResponse(result=self.autofill(message.hostname))
        raise ProtocolError(f"Unhandled message type: {message.type}")
