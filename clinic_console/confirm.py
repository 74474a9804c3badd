"""Confirmation and notice callback registry for user interactions."""

from __future__ import annotations

from collections.abc import Callable

from .log import logger

ConfirmCallback = Callable[[str], bool]
NoticeCallback = Callable[[str], None]

_callback: ConfirmCallback | None = None
_notice_callback: NoticeCallback | None = None


def set_confirm(callback: ConfirmCallback | None) -> None:
    """Register confirmation *callback* returning True to proceed."""
    global _callback
    _callback = callback


def confirm(message: str) -> bool:
    """Invoke registered confirmation callback with *message*.

    Raises ``RuntimeError`` if no callback configured.
    """
    if _callback is None:
        raise RuntimeError("Confirmation callback not configured")
    return _callback(message)


def set_notify(callback: NoticeCallback | None) -> None:
    """Register *callback* that shows short notices to the user."""
    global _notice_callback
    _notice_callback = callback


def notify(message: str) -> None:
    """Show *message* through the registered notice callback.

    Without a registered callback the notice is written to the log so it is
    never lost.
    """
    if _notice_callback is None:
        logger.warning("%s", message)
        return
    _notice_callback(message)


def auto_confirm(_message: str) -> bool:
    """Return ``True`` for every confirmation request."""
    return True


def auto_decline(_message: str) -> bool:
    """Return ``False`` for every confirmation request."""
    return False


def console_confirm(message: str) -> bool:
    """Ask for a yes/no answer on the terminal."""
    from .i18n import _

    try:
        answer = input(f"{message} [{_('y/N')}] ")
    except EOFError:
        return False
    return answer.strip().lower() in {"y", "yes", "s", "si", "sí"}


def print_notice(message: str) -> None:
    """Print *message* on standard output."""
    print(message)
