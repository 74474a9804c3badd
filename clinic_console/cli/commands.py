"""Command implementations for the CLI interface."""

from __future__ import annotations

import argparse
import asyncio
import json
import sys
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any, TypeVar

from ..api.errors import ApiError
from ..application import ApplicationContext
from ..controllers.actions import EditorMode
from ..core.kinds import KINDS, PATIENTS, ResourceKind, get_kind
from ..core.model import Patient, record_to_dict, wire_name
from ..core.outcome import LoadOutcome
from ..i18n import _

T = TypeVar("T")

KIND_CHOICES = sorted(KINDS)

SEED_PATIENTS: tuple[Patient, ...] = (
    Patient(name="Juan Perez", age=30, medical_history="Ninguno"),
    Patient(name="Maria Gomez", age=25, medical_history="Asma"),
    Patient(name="Carlos Lopez", age=45, medical_history="Diabetes"),
    Patient(name="Ana Rodriguez", age=50, medical_history="Hipertension"),
)


@dataclass
class Command:
    """Describe a CLI command and its argument handler."""

    func: Callable[[argparse.Namespace], int | None]
    help: str
    add_arguments: Callable[[argparse.ArgumentParser], None]


def build_context(args: argparse.Namespace) -> ApplicationContext:
    """Return the application context used by a single command run."""
    return ApplicationContext.for_cli(args.app_settings, assume_yes=args.yes)


def _run(args: argparse.Namespace, body: Callable[[ApplicationContext], Awaitable[T]]) -> T:
    context = build_context(args)

    async def _main() -> T:
        try:
            return await body(context)
        finally:
            context.close()

    return asyncio.run(_main())


def _write_json(data: Any) -> None:
    sys.stdout.write(json.dumps(data, ensure_ascii=False, indent=2, sort_keys=True) + "\n")


def _write_status(outcome: LoadOutcome | None, message: str) -> int:
    """Write ``message`` to stderr and return the exit code for ``outcome``."""
    if message:
        sys.stderr.write(f"{message}\n")
    return 0 if outcome is not None and outcome.ok else 1


def parse_assignments(pairs: list[str] | None) -> dict[str, str]:
    """Turn ``key=value`` arguments into a mapping."""
    values: dict[str, str] = {}
    for pair in pairs or []:
        key, sep, value = pair.partition("=")
        key = key.strip()
        if not sep or not key:
            raise ValueError(_("invalid assignment: {pair}").format(pair=pair))
        values[key] = value
    return values


def kind_argument(value: str) -> ResourceKind:
    """Resolve a command-line resource name."""
    try:
        return get_kind(value)
    except KeyError:
        raise argparse.ArgumentTypeError(
            _("unknown kind {value!r}; choose from {kinds}").format(
                value=value, kinds=", ".join(KIND_CHOICES)
            )
        ) from None


def _add_kind_argument(p: argparse.ArgumentParser) -> None:
    p.add_argument("kind", type=kind_argument, metavar="KIND", help=_("resource kind"))


def _add_set_argument(p: argparse.ArgumentParser) -> None:
    p.add_argument(
        "--set",
        dest="assignments",
        action="append",
        default=[],
        metavar="KEY=VALUE",
        help=_("field value; repeat for several fields"),
    )


# list ----------------------------------------------------------------------
def cmd_list(args: argparse.Namespace) -> int:
    """Load a collection and print the records matching ``--query``."""
    kind: ResourceKind = args.kind

    async def body(context: ApplicationContext) -> int:
        controller = context.collection(kind)
        controller.server_query = args.server_query
        outcome = await controller.load()
        controller.set_query(args.query)
        if args.json:
            _write_json([record_to_dict(record) for record in controller.visible])
        else:
            for record in controller.visible:
                sys.stdout.write(f"{record.id}\t{kind.summarize(record)}\n")
        return _write_status(outcome, controller.status_message)

    return _run(args, body)


def add_list_arguments(p: argparse.ArgumentParser) -> None:
    """Configure parser for the ``list`` command."""
    _add_kind_argument(p)
    p.add_argument("--query", default="", help=_("filter loaded records by text"))
    p.add_argument("--server-query", help=_("forward a search term to the server"))
    p.add_argument("--json", action="store_true", help=_("print records as JSON"))


# show ----------------------------------------------------------------------
def cmd_show(args: argparse.Namespace) -> int:
    """Print a single record as JSON."""

    async def body(context: ApplicationContext) -> int:
        form = context.record_form(args.kind, mode=EditorMode.VIEW, record_id=args.id)
        outcome = await form.load()
        if outcome.ok and outcome.data is not None:
            _write_json(record_to_dict(form.record))
        return _write_status(outcome, form.status_message)

    return _run(args, body)


def add_show_arguments(p: argparse.ArgumentParser) -> None:
    """Configure parser for the ``show`` command."""
    _add_kind_argument(p)
    p.add_argument("id", help=_("record identifier"))


# add / update --------------------------------------------------------------
def cmd_add(args: argparse.Namespace) -> int:
    """Create a record from ``--set`` assignments."""
    kind: ResourceKind = args.kind
    try:
        values = parse_assignments(args.assignments)
    except ValueError as exc:
        sys.stderr.write(f"{exc}\n")
        return 2
    record = kind.from_wire(values, strict=True)

    async def body(context: ApplicationContext) -> int:
        form = context.record_form(kind, mode=EditorMode.NEW)
        outcome = await form.save(record)
        if outcome is not None and outcome.ok:
            sys.stdout.write(f"{form.record_id or ''}\n")
        return _write_status(outcome, form.status_message)

    return _run(args, body)


def cmd_update(args: argparse.Namespace) -> int:
    """Load a record, apply ``--set`` assignments and write it back."""
    kind: ResourceKind = args.kind
    try:
        values = parse_assignments(args.assignments)
    except ValueError as exc:
        sys.stderr.write(f"{exc}\n")
        return 2

    async def body(context: ApplicationContext) -> int:
        form = context.record_form(kind, mode=EditorMode.EDIT, record_id=args.id)
        loaded = await form.load()
        if not loaded.ok or loaded.data is None:
            return _write_status(None, form.status_message)
        merged = record_to_dict(form.record)
        merged.update({wire_name(key): value for key, value in values.items()})
        outcome = await form.save(kind.from_wire(merged, strict=True))
        if outcome is not None and outcome.ok:
            sys.stdout.write(f"{args.id}\n")
        return _write_status(outcome, form.status_message)

    return _run(args, body)


def add_add_arguments(p: argparse.ArgumentParser) -> None:
    """Configure parser for the ``add`` command."""
    _add_kind_argument(p)
    _add_set_argument(p)


def add_update_arguments(p: argparse.ArgumentParser) -> None:
    """Configure parser for the ``update`` command."""
    _add_kind_argument(p)
    p.add_argument("id", help=_("record identifier"))
    _add_set_argument(p)


# delete --------------------------------------------------------------------
def cmd_delete(args: argparse.Namespace) -> int:
    """Select the given records and delete them after confirmation."""

    async def body(context: ApplicationContext) -> int:
        controller = context.collection(args.kind)
        outcome = await controller.load()
        if not outcome.ok:
            return _write_status(outcome, controller.status_message)
        for record_id in args.ids:
            if not controller.toggle(record_id):
                sys.stderr.write(_("record not found: {id}\n").format(id=record_id))
        selected = controller.selected_ids()
        gate = context.actions(args.kind)
        if not await gate.delete_selected():
            return 1
        for record_id in selected:
            if controller.get_by_id(record_id) is None:
                sys.stdout.write(f"{record_id}\n")
        return 0

    return _run(args, body)


def add_delete_arguments(p: argparse.ArgumentParser) -> None:
    """Configure parser for the ``delete`` command."""
    _add_kind_argument(p)
    p.add_argument("ids", nargs="+", metavar="ID", help=_("record identifiers"))


# treatments ----------------------------------------------------------------
def cmd_treatments(args: argparse.Namespace) -> int:
    """Print treatments with patient, staff and medicine names resolved."""

    async def body(context: ApplicationContext) -> int:
        overview = context.treatment_overview(args.patient)
        outcome = await overview.load()
        if args.json:
            _write_json(overview.rows())
        else:
            for row in overview.rows():
                sys.stdout.write(
                    "\t".join(
                        (row["id"], row["date"], row["patient"], row["staff"],
                         row["medicine"], row["description"])
                    )
                    + "\n"
                )
        for name in overview.failed:
            sys.stderr.write(_("could not load {kind}\n").format(kind=name))
        return _write_status(outcome, overview.status_message)

    return _run(args, body)


def add_treatments_arguments(p: argparse.ArgumentParser) -> None:
    """Configure parser for the ``treatments`` command."""
    p.add_argument("--patient", help=_("only treatments of this patient"))
    p.add_argument("--json", action="store_true", help=_("print rows as JSON"))


# probe ---------------------------------------------------------------------
def cmd_probe(args: argparse.Namespace) -> int:
    """Describe the raw response of a list endpoint."""

    async def body(context: ApplicationContext) -> int:
        try:
            report = await context.client.probe(args.kind.name)
        except ApiError as exc:
            sys.stderr.write(f"{exc.to_load_error().message}\n")
            return 1
        _write_json(report)
        return 0

    return _run(args, body)


def add_probe_arguments(p: argparse.ArgumentParser) -> None:
    """Configure parser for the ``probe`` command."""
    p.add_argument(
        "kind",
        nargs="?",
        type=kind_argument,
        default=PATIENTS,
        metavar="KIND",
        help=_("resource to probe (default: patients)"),
    )


# seed ----------------------------------------------------------------------
def cmd_seed(args: argparse.Namespace) -> int:
    """Insert a few sample patients."""

    async def body(context: ApplicationContext) -> int:
        client = context.client
        try:
            await client.list_records(PATIENTS.name)
        except ApiError as exc:
            sys.stderr.write(
                _("cannot reach the server: {error}\n").format(error=exc.to_load_error().message)
            )
            return 1
        failures = 0
        for patient in SEED_PATIENTS:
            try:
                await client.create_record(
                    PATIENTS.name, PATIENTS.to_wire(patient, include_id=False)
                )
            except ApiError as exc:
                failures += 1
                sys.stderr.write(
                    _("could not insert {name}: {error}\n").format(name=patient.name, error=exc)
                )
            else:
                sys.stdout.write(_("inserted: {name}\n").format(name=patient.name))
        return 1 if failures else 0

    return _run(args, body)


def add_seed_arguments(p: argparse.ArgumentParser) -> None:
    """The ``seed`` command takes no arguments."""


COMMANDS: dict[str, Command] = {
    "list": Command(cmd_list, _("list records of a kind"), add_list_arguments),
    "show": Command(cmd_show, _("show one record"), add_show_arguments),
    "add": Command(cmd_add, _("create a record"), add_add_arguments),
    "update": Command(cmd_update, _("update a record"), add_update_arguments),
    "delete": Command(cmd_delete, _("delete records"), add_delete_arguments),
    "treatments": Command(cmd_treatments, _("list treatments with names"), add_treatments_arguments),
    "probe": Command(cmd_probe, _("inspect the raw list response"), add_probe_arguments),
    "seed": Command(cmd_seed, _("insert sample patients"), add_seed_arguments),
}
