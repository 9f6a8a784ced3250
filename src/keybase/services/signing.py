"""
Signing Channels - External signatures for watch-only keys.

A watch-only key has no private key on this host. Signing it means handing
the message to an operator (or an offline machine) and waiting for the
signature to come back.

Flow:
1. Keybase builds a SigningRequest and hands it to the configured channel
2. The channel shows the request to the operator
3. The operator responds with a hex signature, or rejects the request
4. The channel returns the reply, or raises on rejection/timeout

Channels:
- StreamChannel: prints the message and reads one reply line (console)
- PendingRequestChannel: thread-safe queue, operator calls respond()/reject()
- AsyncPendingRequestChannel: the same flow on asyncio futures
"""

import asyncio
import logging
import queue
import sys
import threading
import uuid
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Callable, Optional, TextIO

from ..errors import SigningCancelled, SigningTimeout

logger = logging.getLogger(__name__)

# Request status values
STATUS_PENDING = "pending"
STATUS_SIGNED = "signed"
STATUS_REJECTED = "rejected"
STATUS_CANCELLED = "cancelled"
STATUS_EXPIRED = "expired"


@dataclass
class SigningRequest:
    """A request for an external signature over message."""
    name: str
    message: bytes
    pub_key: bytes
    id: str = field(default_factory=lambda: uuid.uuid4().hex)
    created_at: str = field(
        default_factory=lambda: datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")
    )
    status: str = STATUS_PENDING
    reason: Optional[str] = None


class SignatureChannel(ABC):
    """Synchronous operator channel. Returns the raw reply (hex text or bytes)."""

    @abstractmethod
    def request_signature(self, request: SigningRequest, timeout: Optional[float] = None):
        """Return the operator's reply. Raises SigningTimeout or SigningCancelled."""


class AsyncSignatureChannel(ABC):
    """Asynchronous operator channel."""

    @abstractmethod
    async def request_signature(self, request: SigningRequest, timeout: Optional[float] = None):
        """Return the operator's reply. Raises SigningTimeout or SigningCancelled."""


# ============================================
# Console
# ============================================

class StreamChannel(SignatureChannel):
    """
    Print the bytes to sign and read the signature from a text stream.

    Defaults to stdin/stdout. An empty reply or end of input rejects the
    request.
    """

    def __init__(self, input: TextIO = None, output: TextIO = None):
        self._input = input
        self._output = output

    def request_signature(self, request: SigningRequest, timeout: Optional[float] = None):
        output = self._output or sys.stdout
        output.write(f"Bytes to sign for '{request.name}':\n{request.message.hex()}\n")
        output.write("\nEnter hex-encoded signature:\n")
        output.flush()

        replies: "queue.Queue[str]" = queue.Queue(maxsize=1)
        stream = self._input or sys.stdin

        # Daemon thread: a blocked readline must not outlive a timed-out request
        reader = threading.Thread(target=lambda: replies.put(stream.readline()),
                                  name="keybase-signature-reader", daemon=True)
        reader.start()
        try:
            line = replies.get(timeout=timeout)
        except queue.Empty:
            request.status = STATUS_EXPIRED
            raise SigningTimeout(f"no signature entered for '{request.name}' within {timeout}s")

        line = line.strip()
        if not line:
            request.status = STATUS_CANCELLED
            raise SigningCancelled(f"no signature entered for '{request.name}'")
        request.status = STATUS_SIGNED
        return line


# ============================================
# Pending request queue (threads)
# ============================================

@dataclass
class _Pending:
    request: SigningRequest
    done: threading.Event = field(default_factory=threading.Event)
    reply: object = None


class PendingRequestChannel(SignatureChannel):
    """
    Queue of signing requests awaiting an operator.

    request_signature() blocks the calling thread until respond() or reject()
    is called for the request (from any other thread), or until the timeout.
    on_request is invoked with each new request so a UI can show it.
    """

    def __init__(self, on_request: Callable[[SigningRequest], None] = None):
        self.on_request = on_request
        self._pending: dict[str, _Pending] = {}
        self._lock = threading.Lock()

    def request_signature(self, request: SigningRequest, timeout: Optional[float] = None):
        entry = _Pending(request)
        with self._lock:
            self._pending[request.id] = entry
        logger.info(f"Signature requested for '{request.name}' (request {request.id}) - awaiting operator")

        try:
            if self.on_request is not None:
                self.on_request(request)

            if not entry.done.wait(timeout):
                request.status = STATUS_EXPIRED
                raise SigningTimeout(f"no signature for '{request.name}' within {timeout}s")
        finally:
            with self._lock:
                self._pending.pop(request.id, None)

        if request.status != STATUS_SIGNED:
            raise SigningCancelled(request.reason or "Signing request rejected")
        return entry.reply

    def _finish(self, request_id: str, status: str, reply=None, reason: str = None) -> None:
        with self._lock:
            entry = self._pending.get(request_id)
            if entry is None or entry.request.status != STATUS_PENDING:
                raise KeyError(f"Request not found or already processed: {request_id}")
            entry.reply = reply
            entry.request.status = status
            entry.request.reason = reason
        entry.done.set()

    def respond(self, request_id: str, signature) -> None:
        """Complete a pending request with a signature (hex text or bytes)."""
        self._finish(request_id, STATUS_SIGNED, reply=signature)

    def reject(self, request_id: str, reason: str = "User rejected") -> None:
        """Reject a pending request; the waiting signer raises SigningCancelled."""
        self._finish(request_id, STATUS_REJECTED, reason=reason)

    def get_pending_requests(self) -> list[SigningRequest]:
        """Get all requests awaiting the operator."""
        with self._lock:
            return [e.request for e in self._pending.values()
                    if e.request.status == STATUS_PENDING]


# ============================================
# Pending request queue (asyncio)
# ============================================

class AsyncPendingRequestChannel(AsyncSignatureChannel):
    """
    asyncio variant of PendingRequestChannel.

    respond() and reject() are safe to call from other threads. Cancelling the
    awaiting task cancels the request.
    """

    def __init__(self, on_request: Callable[[SigningRequest], None] = None):
        self.on_request = on_request
        self._pending: dict[str, tuple[SigningRequest, asyncio.Future, asyncio.AbstractEventLoop]] = {}
        self._lock = threading.Lock()

    async def request_signature(self, request: SigningRequest, timeout: Optional[float] = None):
        loop = asyncio.get_running_loop()
        future = loop.create_future()
        with self._lock:
            self._pending[request.id] = (request, future, loop)
        logger.info(f"Signature requested for '{request.name}' (request {request.id}) - awaiting operator")

        try:
            if self.on_request is not None:
                self.on_request(request)
            return await asyncio.wait_for(future, timeout)
        except asyncio.TimeoutError:
            request.status = STATUS_EXPIRED
            raise SigningTimeout(f"no signature for '{request.name}' within {timeout}s") from None
        except asyncio.CancelledError:
            if request.status == STATUS_PENDING:
                request.status = STATUS_CANCELLED
            raise
        finally:
            with self._lock:
                self._pending.pop(request.id, None)

    def _finish(self, request_id: str, status: str, reply=None, reason: str = None) -> None:
        with self._lock:
            entry = self._pending.get(request_id)
            if entry is None or entry[0].status != STATUS_PENDING:
                raise KeyError(f"Request not found or already processed: {request_id}")
            request, future, loop = entry
            request.status = status
            request.reason = reason

        def settle():
            if future.done():
                return
            if status == STATUS_SIGNED:
                future.set_result(reply)
            else:
                future.set_exception(SigningCancelled(reason or "Signing request rejected"))

        loop.call_soon_threadsafe(settle)

    def respond(self, request_id: str, signature) -> None:
        self._finish(request_id, STATUS_SIGNED, reply=signature)

    def reject(self, request_id: str, reason: str = "User rejected") -> None:
        self._finish(request_id, STATUS_REJECTED, reason=reason)

    def get_pending_requests(self) -> list[SigningRequest]:
        with self._lock:
            return [request for request, _, _ in self._pending.values()
                    if request.status == STATUS_PENDING]
