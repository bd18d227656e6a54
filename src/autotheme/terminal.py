"""Querying the terminal for its background color.

The terminal answers ``ESC ] 11 ; ?`` (OSC 11) with the current background
as ``ESC ] 11 ; rgb:RRRR/GGGG/BBBB`` terminated by BEL or ST.  Replies are
fanned out to listeners through :class:`BackgroundReplyChannel`; nothing
here waits for an answer on the event loop thread.
"""

from __future__ import annotations

import asyncio
import logging
import os
import re
import select
from collections.abc import Callable

from autotheme.colors import RGBColor, parse_color_reply

logger = logging.getLogger(__name__)

OSC11_QUERY = "\x1b]11;?\x07"

_REPLY_RE = re.compile(r"\x1b\]11;([^\x07\x1b]*)(?:\x07|\x1b\\)")

ReplyListener = Callable[[str], None]


def extract_background_replies(data: str) -> list[str]:
    """Return the payload of every complete OSC 11 reply in *data*."""
    return _REPLY_RE.findall(data)


class BackgroundReplyChannel:
    """Listener list for raw background replies.

    Dispatch is synchronous on the caller's thread.  A listener removed while
    a reply is being delivered is not called for that reply.
    """

    def __init__(self) -> None:
        self._listeners: list[ReplyListener] = []

    def subscribe(self, listener: ReplyListener) -> None:
        """Add *listener*; subscribing twice is a no-op."""
        if listener not in self._listeners:
            self._listeners.append(listener)

    def unsubscribe(self, listener: ReplyListener) -> None:
        """Remove *listener*; it gets no further replies."""
        if listener in self._listeners:
            self._listeners.remove(listener)

    @property
    def listener_count(self) -> int:
        return len(self._listeners)

    def publish(self, reply: str) -> None:
        for listener in list(self._listeners):
            if listener not in self._listeners:
                continue
            try:
                listener(reply)
            except Exception:
                logger.exception("Background reply listener %r failed", listener)


def query_tty_background(timeout: float = 2.0) -> str | None:
    """Ask the controlling terminal for its background color.

    Blocks for up to *timeout* seconds.

    Returns:
        The reply payload (e.g. ``rgb:1e1e/1e1e/1e1e``), or ``None`` if
        there is no terminal or it did not answer in time.
    """
    try:
        import termios
    except ImportError:
        return None

    try:
        fd = os.open("/dev/tty", os.O_RDWR | os.O_NOCTTY)
    except OSError:
        return None
    try:
        old = termios.tcgetattr(fd)
        new = old[:]
        new[3] &= ~(termios.ICANON | termios.ECHO)
        termios.tcsetattr(fd, termios.TCSANOW, new)
        try:
            os.write(fd, OSC11_QUERY.encode("ascii"))
            buf = b""
            for _ in range(max(1, int(timeout / 0.02))):
                r, _, _ = select.select([fd], [], [], 0.02)
                if not r:
                    continue
                buf += os.read(fd, 4096)
                if b"\a" in buf or b"\033\\" in buf:  # BEL or ST terminator
                    break
        finally:
            termios.tcsetattr(fd, termios.TCSANOW, old)
    except (OSError, termios.error):
        return None
    finally:
        os.close(fd)

    replies = extract_background_replies(buf.decode("ascii", "ignore"))
    return replies[0] if replies else None


def detect_terminal_background(timeout: float = 2.0) -> RGBColor | None:
    """Startup probe: the terminal background, or ``None`` if undetectable."""
    reply = query_tty_background(timeout)
    logger.debug("startup background reply=%r", reply)
    return parse_color_reply(reply) if reply is not None else None


class TtyTerminal:
    """Terminal transport backed by ``/dev/tty``.

    :meth:`query_terminal_background` returns immediately; the blocking
    round trip runs in the loop's default executor and its reply, if any, is
    published on the channel from the loop thread.  At most one query is in
    flight, further requests are dropped until it completes.
    """

    def __init__(
        self,
        channel: BackgroundReplyChannel | None = None,
        query: Callable[[], str | None] = query_tty_background,
    ) -> None:
        self.channel = channel or BackgroundReplyChannel()
        self._query = query
        self._pending: asyncio.Future | None = None

    def subscribe(self, listener: ReplyListener) -> None:
        """Register *listener* on the reply channel."""
        self.channel.subscribe(listener)

    def unsubscribe(self, listener: ReplyListener) -> None:
        """Drop *listener* from the reply channel."""
        self.channel.unsubscribe(listener)

    def query_terminal_background(self) -> None:
        """Send the background query without waiting for the answer."""
        if self._pending is not None and not self._pending.done():
            return
        loop = asyncio.get_running_loop()
        self._pending = loop.run_in_executor(None, self._query)
        self._pending.add_done_callback(self._on_reply)

    def _on_reply(self, future: asyncio.Future) -> None:
        if future.cancelled():
            return
        exc = future.exception()
        if exc is not None:
            logger.debug("background query failed: %s", exc)
            return
        reply = future.result()
        if reply is not None:
            self.channel.publish(reply)
