"""Controllers coordinating loads, selections and actions of the console views."""

from .actions import BulkActionGate, EditorMode
from .collection import CollectionLoadController
from .cycle import LoadCycleController, WriteCycle
from .overview import TreatmentOverviewController
from .record_form import RecordFormController
from .watchdog import Watchdog, WatchdogHandle

__all__ = [
    "BulkActionGate",
    "CollectionLoadController",
    "EditorMode",
    "LoadCycleController",
    "RecordFormController",
    "TreatmentOverviewController",
    "Watchdog",
    "WatchdogHandle",
    "WriteCycle",
]
