"""Selection-gated record actions for list views."""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable, Mapping, Sequence
from enum import Enum
from typing import Any, Protocol

from .. import confirm as interaction
from ..core.model import Record
from ..core.outcome import LoadOutcome, LoadStatus
from ..i18n import _, ngettext
from ..telemetry import log_event
from .collection import CollectionLoadController
from .cycle import WriteCycle

logger = logging.getLogger(__name__)

DEFAULT_WRITE_WATCHDOG_MS = 5000


class EditorMode(str, Enum):
    """How a record editor should open."""

    NEW = "new"
    EDIT = "edit"
    VIEW = "view"


class Navigator(Protocol):
    """Opens the editor of a record; supplied by the frontend."""

    def open_record(
        self, kind: str, record_id: str | None, mode: EditorMode
    ) -> None:
        """Show the editor for ``record_id`` of ``kind`` in ``mode``."""
        raise NotImplementedError


class RecordWriter(Protocol):
    """Mutating calls of :class:`~clinic_console.api.client.ApiClient`."""

    async def create_record(self, kind: str, body: Mapping[str, Any]) -> Any:
        raise NotImplementedError

    async def update_record(
        self, kind: str, record_id: str, body: Mapping[str, Any]
    ) -> Any:
        raise NotImplementedError

    async def delete_record(self, kind: str, record_id: str) -> None:
        raise NotImplementedError

    async def delete_records(self, kind: str, record_ids: Sequence[str]) -> None:
        raise NotImplementedError


class BulkActionGate:
    """Check selection preconditions before dispatching record actions.

    Refused actions show a notice and return a falsy value instead of raising.
    Successful mutations reload the collection; failed ones leave it alone.
    Writes race a watchdog of ``watchdog_ms`` just like record form saves.
    """

    def __init__(
        self,
        controller: CollectionLoadController,
        client: RecordWriter,
        navigator: Navigator | None = None,
        *,
        confirm: Callable[[str], bool] | None = None,
        notify: Callable[[str], None] | None = None,
        watchdog_ms: int = DEFAULT_WRITE_WATCHDOG_MS,
    ) -> None:
        self.controller = controller
        self.client = client
        self.navigator = navigator
        self._confirm = confirm
        self._notify = notify
        self._writer = WriteCycle(
            name=f"{controller.kind.name}-actions", watchdog_ms=watchdog_ms
        )

    @property
    def kind(self):
        return self.controller.kind

    # interaction helpers ---------------------------------------------
    def _ask(self, message: str) -> bool:
        confirmed = (self._confirm or interaction.confirm)(message)
        log_event(
            "CONFIRM_RESULT",
            {"view": self.kind.name, "message": message, "confirmed": confirmed},
        )
        return confirmed

    def _tell(self, message: str) -> None:
        (self._notify or interaction.notify)(message)

    def _open(self, record_id: str | None, mode: EditorMode) -> None:
        if self.navigator is None:
            logger.debug("No navigator for %s %s %s", self.kind.name, mode.value, record_id)
            return
        self.navigator.open_record(self.kind.name, record_id, mode)

    def _single_selection(self, message: str) -> str | None:
        ids = self.controller.selected_ids()
        if len(ids) != 1:
            self._tell(message)
            return None
        return ids[0]

    # navigation ------------------------------------------------------
    def create_new(self) -> None:
        self._open(None, EditorMode.NEW)

    def edit_row(self, record_id: str) -> None:
        self._open(record_id, EditorMode.EDIT)

    def view_row(self, record_id: str) -> None:
        self._open(record_id, EditorMode.VIEW)

    def edit_selected(self) -> bool:
        """Open the editor for the single selected record."""
        record_id = self._single_selection(
            _("Select exactly one {label} to edit.").format(label=self.kind.display_label())
        )
        if record_id is None:
            return False
        self._open(record_id, EditorMode.EDIT)
        return True

    def inspect_selected(self) -> bool:
        """Open the read-only editor for the single selected record."""
        record_id = self._single_selection(
            _("Select exactly one {label} to inspect.").format(
                label=self.kind.display_label()
            )
        )
        if record_id is None:
            return False
        self._open(record_id, EditorMode.VIEW)
        return True

    def view_selected(self) -> list[Record]:
        """Present a summary of the selected records and return them."""
        records = self.controller.selected_records()
        if not records:
            self._tell(_("No items selected."))
            return []
        self._tell("\n".join(self.kind.summarize(record) for record in records))
        return records

    # mutations -------------------------------------------------------
    async def _mutate(
        self,
        action: str,
        call: Callable[[], Awaitable[Any]],
        failure_message: str,
    ) -> bool:
        outcome = await self._writer.run(call)
        if outcome.status is LoadStatus.SUPERSEDED:
            logger.debug("%s %s superseded by a newer write", action, self.kind.name)
            return False
        if not outcome.ok:
            detail = outcome.error.message if outcome.error is not None else ""
            logger.warning("%s %s failed: %s", action, self.kind.name, detail)
            log_event(
                "ACTION_FAILED",
                {
                    "view": self.kind.name,
                    "action": action,
                    "error": outcome.error.kind.value if outcome.error else None,
                },
                level=logging.WARNING,
            )
            self._tell(failure_message)
            return False
        log_event("ACTION_DONE", {"view": self.kind.name, "action": action})
        await self.controller.load()
        return True

    async def delete_one(self, record_id: str) -> bool:
        """Delete ``record_id`` after confirmation, then reload."""
        label = self.kind.display_label()
        if not self._ask(_("Delete this {label}?").format(label=label)):
            return False
        return await self._mutate(
            "delete",
            lambda: self.client.delete_record(self.kind.name, record_id),
            _("Could not delete the {label}.").format(label=label),
        )

    async def delete_selected(self) -> bool:
        """Bulk-delete the selection after confirmation, then reload."""
        ids = self.controller.selected_ids()
        if not ids:
            self._tell(
                _("Select at least one {label} to delete.").format(
                    label=self.kind.display_label()
                )
            )
            return False
        label = self.kind.display_label_plural()
        question = ngettext(
            "Delete {count} selected item of {label}?",
            "Delete {count} selected items of {label}?",
            len(ids),
        ).format(count=len(ids), label=label)
        if not self._ask(question):
            return False
        return await self._mutate(
            "delete_many",
            lambda: self.client.delete_records(self.kind.name, ids),
            _("Could not delete the selected {label}.").format(label=label),
        )

    async def create(self, record: Record) -> bool:
        """Create ``record`` on the server, then reload."""
        body = self.kind.to_wire(record, include_id=False)
        return await self._mutate(
            "create",
            lambda: self.client.create_record(self.kind.name, body),
            _("Could not save."),
        )

    async def update(self, record_id: str, record: Record) -> bool:
        """Replace ``record_id`` with ``record``, then reload."""
        body = self.kind.to_wire(record)
        body["id"] = record_id
        return await self._mutate(
            "update",
            lambda: self.client.update_record(self.kind.name, record_id, body),
            _("Could not update."),
        )

    async def refresh(self) -> LoadOutcome:
        """Clear the query and reload."""
        self.controller.set_query("")
        return await self.controller.load()

    def close(self) -> None:
        """Cancel a pending write; its reply is ignored."""
        self._writer.close()
