"""Composition root building shared dependencies for the clinic console."""
from __future__ import annotations

from collections.abc import Callable

import httpx

from .api.client import ApiClient
from .confirm import ConfirmCallback, NoticeCallback, set_confirm, set_notify
from .controllers.actions import BulkActionGate, EditorMode, Navigator
from .controllers.collection import CollectionLoadController
from .controllers.overview import TreatmentOverviewController
from .controllers.record_form import RecordFormController
from .core.kinds import ResourceKind, get_kind
from .core.outcome import TimeoutPolicy
from .settings import AppSettings


class ApplicationContext:
    """Central dependency registry shared by frontends.

    Controllers are created on demand and cached per kind so that every
    frontend talking to the same context sees one Collection per kind.
    """

    def __init__(
        self,
        settings: AppSettings | None = None,
        *,
        confirm_callback: ConfirmCallback,
        notify_callback: NoticeCallback | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
        client_factory: Callable[[AppSettings], ApiClient] | None = None,
    ) -> None:
        self._settings = settings or AppSettings()
        self._transport = transport
        self._client_factory = client_factory
        self._client: ApiClient | None = None
        self._collections: dict[str, CollectionLoadController] = {}
        self._forms: list[RecordFormController] = []
        self._overviews: list[TreatmentOverviewController] = []
        self._gates: list[BulkActionGate] = []

        set_confirm(confirm_callback)
        set_notify(notify_callback)

    @property
    def settings(self) -> AppSettings:
        return self._settings

    @property
    def client(self) -> ApiClient:
        """Return lazily initialised :class:`ApiClient`."""
        if self._client is None:
            if self._client_factory is not None:
                self._client = self._client_factory(self._settings)
            else:
                self._client = ApiClient(self._settings.api, transport=self._transport)
        return self._client

    @staticmethod
    def _kind(kind: ResourceKind | str) -> ResourceKind:
        return kind if isinstance(kind, ResourceKind) else get_kind(kind)

    def collection(self, kind: ResourceKind | str) -> CollectionLoadController:
        """Return the shared list controller for ``kind``."""
        resolved = self._kind(kind)
        controller = self._collections.get(resolved.name)
        if controller is None:
            controller = CollectionLoadController(
                self.client,
                resolved,
                watchdog_ms=self._settings.resources.watchdog_for(resolved.name),
                timeout_policy=TimeoutPolicy.CLEAR,
            )
            self._collections[resolved.name] = controller
        return controller

    def actions(
        self, kind: ResourceKind | str, navigator: Navigator | None = None
    ) -> BulkActionGate:
        """Return an action gate bound to the shared controller of ``kind``."""
        gate = BulkActionGate(
            self.collection(kind),
            self.client,
            navigator,
            watchdog_ms=self._settings.resources.form,
        )
        self._gates.append(gate)
        return gate

    def record_form(
        self,
        kind: ResourceKind | str,
        *,
        mode: EditorMode = EditorMode.NEW,
        record_id: str | None = None,
    ) -> RecordFormController:
        """Return a new form controller for one record of ``kind``."""
        form = RecordFormController(
            self.client,
            self._kind(kind),
            mode=mode,
            record_id=record_id,
            watchdog_ms=self._settings.resources.form,
        )
        self._forms.append(form)
        return form

    def treatment_overview(
        self, patient_id: str | None = None
    ) -> TreatmentOverviewController:
        """Return a new treatment overview, optionally limited to one patient."""
        overview = TreatmentOverviewController(
            self.client,
            watchdog_ms=self._settings.resources.aggregate,
            patient_id=patient_id,
        )
        self._overviews.append(overview)
        return overview

    def close(self) -> None:
        """Tear down every controller created by this context."""
        for controller in (
            *self._gates,
            *self._collections.values(),
            *self._forms,
            *self._overviews,
        ):
            controller.close()
        self._collections.clear()
        self._forms.clear()
        self._overviews.clear()
        self._gates.clear()

    @classmethod
    def for_cli(
        cls, settings: AppSettings | None = None, *, assume_yes: bool = False
    ) -> "ApplicationContext":
        """Return context configured for terminal usage."""
        from .confirm import auto_confirm, console_confirm, print_notice

        return cls(
            settings,
            confirm_callback=auto_confirm if assume_yes else console_confirm,
            notify_callback=print_notice,
        )
