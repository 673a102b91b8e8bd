"""
Command-line interface for PVM, the patient visit manager.

`pvm shell` runs the interactive clinic console: add, update and delete
visits with undo/redo, search, reports, and save. The other subcommands do
one thing against the data file and exit; they have no undo because history
only lives for the duration of a shell session.
"""

import logging
import pathlib
import random
import sys
import typing
from datetime import date, datetime

import click
from stairval.notepad import create_notepad

from .history import (
    DEFAULT_UNDO_CAPACITY,
    EmptyHistoryError,
    HistoryEngine,
    RecordNotFoundError,
    describe_command,
)
from .mock import generate_mock_records
from .record import DISPLAY_DATE_FORMAT, VISIT_TYPES, VisitRecord, visit_type_from_choice
from .reports import (
    MonthlyStatistics,
    WeeklySummary,
    individual_summary,
    monthly_statistics,
    visit_count_by_type,
    weekly_summary,
)
from . import search
from .store import RecordStore

LOGGER = logging.getLogger(__name__)

DEFAULT_DATA_FILE = "patient_visits.csv"
MONTH_FORMAT = "%m/%Y"


@click.group()
@click.option(
    "-f",
    "--data-file",
    "data_file",
    default=DEFAULT_DATA_FILE,
    envvar="PVM_DATA_FILE",
    show_default=True,
    type=click.Path(dir_okay=False),
    help="visit data file (env: PVM_DATA_FILE)",
)
@click.option("--verbose-logging", is_flag=True, help="Also emit debug logs to stderr")
@click.option(
    "--log-file-path",
    type=click.Path(dir_okay=False, writable=True),
    help="Append timestamped logs to this file",
)
@click.pass_context
def main(ctx: click.Context, data_file: str, verbose_logging: bool, log_file_path: typing.Optional[str]):
    """PVM: patient visit manager for a single-operator clinic console."""
    _configure_logging(verbose_logging, log_file_path)
    ctx.obj = pathlib.Path(data_file)


# ---------------
# Shared helpers
# ---------------


def _configure_logging(verbose_logging: bool, log_file_path: typing.Optional[str]) -> None:
    handlers: list[logging.Handler] = []
    if log_file_path:
        handlers.append(logging.FileHandler(log_file_path, mode="a", encoding="utf-8"))
    if verbose_logging:
        handlers.append(logging.StreamHandler(sys.stderr))
    if handlers:
        logging.basicConfig(
            level=logging.DEBUG if verbose_logging else logging.INFO,
            format="%(asctime)s %(levelname)s %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
            handlers=handlers,
        )


def _report_issues(notepad) -> None:
    # skipped lines are warnings; the load itself carries on
    if notepad.has_errors(include_subsections=True):
        click.echo("Errors found while loading:")
        for err in notepad.errors():
            click.echo(f"- {err}")
    if notepad.has_warnings(include_subsections=True):
        click.echo("Warnings found while loading:")
        for w in notepad.warnings():
            click.echo(f"- {w}")


def _load_store(data_file: pathlib.Path) -> RecordStore:
    store = RecordStore()
    if not data_file.is_file():
        click.echo("No existing data file found. Starting with empty database.")
        return store

    notepad = create_notepad("load")
    try:
        count = store.load(data_file, notepad)
    except OSError as e:
        raise click.ClickException(f"Error loading data from file: {e}")
    _report_issues(notepad)
    click.echo(f"Loaded {count} patient records from file.")
    return store


def _parse_date(text: str) -> date:
    return datetime.strptime(text.strip(), DISPLAY_DATE_FORMAT).date()


def _parse_month(text: str) -> date:
    return datetime.strptime(text.strip(), MONTH_FORMAT).date()


def _date_option(ctx, param, value: typing.Optional[str]) -> typing.Optional[date]:
    if value is None:
        return None
    try:
        return _parse_date(value)
    except ValueError:
        raise click.BadParameter("use DD/MM/YYYY")


def _notify(message: str, level: str = "info") -> None:
    colors = {"info": "green", "warn": "yellow", "error": "red"}
    click.echo("")
    click.echo(click.style(f"*** {message} ***", fg=colors[level]))
    click.echo("")


def _display_results(results: typing.Sequence[VisitRecord]) -> None:
    if not results:
        click.echo("No patients found matching the search criteria.")
        return
    click.echo(f"\nFound {len(results)} patient(s):")
    click.echo("-" * 100)
    for record in results:
        click.echo(record.summary())


def _print_individual(record: VisitRecord) -> None:
    click.echo("\n=== INDIVIDUAL VISIT SUMMARY ===")
    for line in individual_summary(record):
        click.echo(line)


def _print_type_counts(records: typing.Sequence[VisitRecord]) -> None:
    click.echo("\n=== VISIT COUNT BY TYPE ===")
    for visit_type, count in visit_count_by_type(records).items():
        click.echo(f"{visit_type}: {count} visits")
    click.echo(f"\nTotal Visits: {len(records)}")


def _print_weekly(summary: WeeklySummary) -> None:
    click.echo(
        f"\n=== WEEKLY VISIT SUMMARY ({summary.week_start.strftime(DISPLAY_DATE_FORMAT)} - "
        f"{summary.week_end.strftime(DISPLAY_DATE_FORMAT)}) ==="
    )
    click.echo(f"Total visits this week: {summary.total}")
    for day, count in summary.per_day.items():
        click.echo(f"{day.strftime(DISPLAY_DATE_FORMAT)}: {count} visits")


def _print_monthly(stats: MonthlyStatistics) -> None:
    click.echo(f"\n=== MONTHLY STATISTICS ({stats.month:02d}/{stats.year}) ===")
    click.echo(f"Total visits: {stats.total}")
    if not stats.total:
        return
    click.echo("\nVisits by type:")
    for visit_type, count in stats.by_type.items():
        click.echo(f"  {visit_type}: {count}")
    if len(stats.by_doctor):
        click.echo("\nVisits by doctor:")
        for doctor, count in stats.by_doctor.items():
            click.echo(f"  {doctor}: {count}")


# ------------------
# Interactive shell
# ------------------


class ConsoleSession:
    """
    The menu-driven console. Every add/update/delete goes through the
    HistoryEngine so it can be undone; nothing is written until save/exit.
    """

    MENU = (
        "=== PATIENT VISIT MANAGER ===",
        "1. Add New Patient Visit",
        "2. Update Patient Visit",
        "3. Delete Patient Visit",
        "4. Search Patient Visits",
        "5. Generate Reports",
        "6. Undo Last Operation",
        "7. Redo Last Undone Operation",
        "8. Save Data",
        "9. Exit",
    )

    def __init__(self, history: HistoryEngine, data_file: pathlib.Path):
        self.history = history
        self.store = history.store
        self.data_file = data_file

    def run(self) -> None:
        actions = {
            "1": self.add_visit,
            "2": self.update_visit,
            "3": self.delete_visit,
            "4": self.search_visits,
            "5": self.generate_reports,
            "6": self.undo,
            "7": self.redo,
            "8": self.save,
        }
        while True:
            click.clear()
            for line in self.MENU:
                click.echo(line)
            choice = self._ask("Choose an option (1-9)")
            click.clear()

            if choice == "9":
                if not self.save(quiet=True) and not click.confirm(
                    "Exit without saving? Unsaved changes will be lost", default=False
                ):
                    continue
                click.echo("Thank you for using Patient Visit Manager!")
                return
            action = actions.get(choice)
            if action is None:
                _notify("Invalid choice. Please try again.", "warn")
            else:
                action()
            click.pause()

    @staticmethod
    def _ask(text: str) -> str:
        return click.prompt(text, default="", show_default=False).strip()

    @staticmethod
    def _ask_visit_type(default: str, current: typing.Optional[str] = None) -> str:
        click.echo("Select visit type:")
        for number, label in enumerate(VISIT_TYPES, start=1):
            click.echo(f"{number}. {label}")
        suffix = f" (current: {current})" if current else ""
        return visit_type_from_choice(ConsoleSession._ask(f"Enter choice (1-4){suffix}"), default)

    def _ask_record(self, action: str) -> typing.Optional[VisitRecord]:
        raw = self._ask(f"Enter patient ID to {action}")
        try:
            record_id = int(raw)
        except ValueError:
            _notify("Invalid patient ID!", "error")
            return None
        record = self.store.get(record_id)
        if record is None:
            _notify("Patient not found!", "error")
        return record

    def add_visit(self) -> None:
        click.echo("=== ADD NEW PATIENT VISIT ===")
        patient_name = self._ask("Enter patient name")
        if not patient_name:
            _notify("Patient name cannot be empty!", "error")
            return

        date_input = self._ask("Enter visit date (DD/MM/YYYY) or press Enter for today")
        if date_input:
            try:
                visit_date = _parse_date(date_input)
            except ValueError:
                _notify("Invalid date format! Please use DD/MM/YYYY", "error")
                return
        else:
            visit_date = date.today()

        visit_type = self._ask_visit_type(default="Consultation")
        description = self._ask("Enter description/notes")
        doctor_name = self._ask("Enter doctor name (optional)")

        record = self.history.apply_add(patient_name, visit_date, visit_type, description, doctor_name)
        _notify(f"Patient visit added successfully! ID: {record.record_id}")

    def update_visit(self) -> None:
        click.echo("=== UPDATE PATIENT VISIT ===")
        existing = self._ask_record("update")
        if existing is None:
            return
        click.echo(f"Current details: {existing.summary()}\n")

        changes: dict[str, typing.Any] = {}
        new_name = self._ask(f"Enter new patient name (current: {existing.patient_name})")
        if new_name:
            changes["patient_name"] = new_name

        date_input = self._ask(
            f"Enter new visit date (DD/MM/YYYY) (current: {existing.visit_date.strftime(DISPLAY_DATE_FORMAT)})"
        )
        if date_input:
            try:
                changes["visit_date"] = _parse_date(date_input)
            except ValueError:
                _notify("Invalid date format! Keeping current date.", "warn")

        changes["visit_type"] = self._ask_visit_type(default=existing.visit_type, current=existing.visit_type)

        new_description = self._ask(f"Enter new description (current: {existing.description})")
        if new_description:
            changes["description"] = new_description
        new_doctor = self._ask(f"Enter new doctor name (current: {existing.doctor_name})")
        if new_doctor:
            changes["doctor_name"] = new_doctor

        self.history.apply_update(existing.record_id, **changes)
        _notify("Patient visit updated successfully!")

    def delete_visit(self) -> None:
        click.echo("=== DELETE PATIENT VISIT ===")
        existing = self._ask_record("delete")
        if existing is None:
            return
        click.echo(f"Patient details: {existing.summary()}")
        if click.confirm("Are you sure you want to delete this patient visit?", default=False):
            self.history.apply_delete(existing.record_id)
            _notify("Patient visit deleted successfully!")
        else:
            _notify("Delete operation cancelled.", "warn")

    def search_visits(self) -> None:
        click.echo("=== SEARCH PATIENT VISITS ===")
        click.echo("1. Search by Patient Name")
        click.echo("2. Search by Doctor Name")
        click.echo("3. Search by Visit Type")
        click.echo("4. Search by Date")
        click.echo("5. View All Patients")
        choice = self._ask("Choose search option (1-5)")
        records = self.store.records

        if choice == "1":
            results = search.by_patient_name(records, self._ask("Enter patient name (partial match)"))
        elif choice == "2":
            results = search.by_doctor_name(records, self._ask("Enter doctor name (partial match)"))
        elif choice == "3":
            results = search.by_visit_type(records, self._ask_visit_type(default="Consultation"))
        elif choice == "4":
            try:
                visit_date = _parse_date(self._ask("Enter date (DD/MM/YYYY)"))
            except ValueError:
                _notify("Invalid date format!", "error")
                return
            results = search.by_visit_date(records, visit_date)
        elif choice == "5":
            results = search.all_visits(records)
        else:
            _notify("Invalid choice!", "warn")
            return
        _display_results(results)

    def generate_reports(self) -> None:
        click.echo("=== REPORTS AND STATISTICS ===")
        click.echo("1. Individual Visit Summary")
        click.echo("2. Visit Count by Type")
        click.echo("3. Weekly Visit Summary")
        click.echo("4. Monthly Statistics")
        choice = self._ask("Choose report option (1-4)")
        records = self.store.records

        if choice == "1":
            record = self._ask_record("summarize")
            if record is not None:
                _print_individual(record)
        elif choice == "2":
            _print_type_counts(records)
        elif choice == "3":
            try:
                week_start = _parse_date(self._ask("Enter week start date (DD/MM/YYYY)"))
            except ValueError:
                _notify("Invalid date format!", "error")
                return
            _print_weekly(weekly_summary(records, week_start))
        elif choice == "4":
            try:
                month = _parse_month(self._ask("Enter month (MM/YYYY)"))
            except ValueError:
                _notify("Invalid month format! Use MM/YYYY", "error")
                return
            _print_monthly(monthly_statistics(records, month.year, month.month))
        else:
            _notify("Invalid choice!", "warn")

    def undo(self) -> None:
        try:
            command = self.history.undo()
        except EmptyHistoryError:
            _notify("No operations to undo!", "warn")
            return
        _notify(f"Last operation undone successfully! ({describe_command(command)})")

    def redo(self) -> None:
        try:
            command = self.history.redo()
        except EmptyHistoryError:
            _notify("No operations to redo!", "warn")
            return
        _notify(f"Operation redone successfully! ({describe_command(command)})")

    def save(self, quiet: bool = False) -> bool:
        try:
            self.store.save(self.data_file)
        except OSError as e:
            LOGGER.error("Saving %s failed: %s", self.data_file, e)
            _notify(f"Error saving data to file: {e}", "error")
            return False
        if not quiet:
            _notify("Data saved successfully!")
        return True


@main.command(name="shell")
@click.option("--mock/--no-mock", default=False, help="Seed an empty data file with random visits")
@click.option(
    "--undo-capacity",
    default=DEFAULT_UNDO_CAPACITY,
    show_default=True,
    type=click.IntRange(min=1),
    help="How many operations can be undone",
)
@click.pass_obj
def shell(data_file: pathlib.Path, mock: bool, undo_capacity: int):
    """Run the interactive patient visit console."""
    store = _load_store(data_file)
    if mock:
        generated = generate_mock_records(store)
        if generated:
            _save_or_fail(store, data_file)
            click.echo(f"Generated {generated} mock patient records for testing.")
    ConsoleSession(HistoryEngine(store, capacity=undo_capacity), data_file).run()


# -------------------
# One-shot commands
# -------------------


def _save_or_fail(store: RecordStore, data_file: pathlib.Path) -> None:
    try:
        store.save(data_file)
    except OSError as e:
        raise click.ClickException(f"Error saving data to file: {e}")


def _visit_type_option(default: typing.Optional[str]):
    return click.option(
        "-t",
        "--type",
        "visit_type",
        default=default,
        type=click.Choice(VISIT_TYPES, case_sensitive=False),
        help="visit type",
    )


@main.command(name="add")
@click.option("-n", "--name", "patient_name", required=True, help="patient name")
@click.option("-d", "--date", "visit_date", callback=_date_option, help="visit date DD/MM/YYYY (default: today)")
@_visit_type_option("Consultation")
@click.option("--description", default="", help="description/notes")
@click.option("--doctor", "doctor_name", default="", help="doctor name")
@click.pass_obj
def add(data_file, patient_name, visit_date, visit_type, description, doctor_name):
    """Add one patient visit and save."""
    if not patient_name.strip():
        raise click.BadParameter("patient name cannot be empty", param_hint="--name")
    store = _load_store(data_file)
    record = HistoryEngine(store).apply_add(
        patient_name, visit_date or date.today(), visit_type, description, doctor_name
    )
    _save_or_fail(store, data_file)
    click.echo(f"Patient visit added successfully! ID: {record.record_id}")


@main.command(name="update")
@click.argument("record_id", type=int)
@click.option("-n", "--name", "patient_name", help="new patient name")
@click.option("-d", "--date", "visit_date", callback=_date_option, help="new visit date DD/MM/YYYY")
@_visit_type_option(None)
@click.option("--description", help="new description/notes")
@click.option("--doctor", "doctor_name", help="new doctor name")
@click.pass_obj
def update(data_file, record_id, **fields):
    """Change fields of one patient visit and save."""
    changes = {k: v for k, v in fields.items() if v is not None}
    store = _load_store(data_file)
    try:
        record = HistoryEngine(store).apply_update(record_id, **changes)
    except RecordNotFoundError as e:
        raise click.ClickException(str(e))
    _save_or_fail(store, data_file)
    click.echo(f"Patient visit updated successfully! {record.summary()}")


@main.command(name="delete")
@click.argument("record_id", type=int)
@click.option("-y", "--yes", is_flag=True, help="do not ask for confirmation")
@click.pass_obj
def delete(data_file, record_id, yes):
    """Delete one patient visit and save."""
    store = _load_store(data_file)
    record = store.get(record_id)
    if record is None:
        raise click.ClickException(str(RecordNotFoundError(record_id)))
    click.echo(f"Patient details: {record.summary()}")
    if not yes and not click.confirm("Are you sure you want to delete this patient visit?"):
        click.echo("Delete operation cancelled.")
        return
    HistoryEngine(store).apply_delete(record_id)
    _save_or_fail(store, data_file)
    click.echo("Patient visit deleted successfully!")


@main.command(name="search")
@click.option("-n", "--name", "patient_name", help="patient name (partial match)")
@click.option("--doctor", "doctor_name", help="doctor name (partial match)")
@_visit_type_option(None)
@click.option("-d", "--date", "visit_date", callback=_date_option, help="visit date DD/MM/YYYY")
@click.pass_obj
def search_command(data_file, patient_name, doctor_name, visit_type, visit_date):
    """Search visits; filters combine, no filter lists everything."""
    results = search.all_visits(_load_store(data_file).records)
    if patient_name is not None:
        results = search.by_patient_name(results, patient_name)
    if doctor_name is not None:
        results = search.by_doctor_name(results, doctor_name)
    if visit_type is not None:
        results = search.by_visit_type(results, visit_type)
    if visit_date is not None:
        results = search.by_visit_date(results, visit_date)
    _display_results(results)


@main.group(name="report")
def report():
    """Reports and statistics."""


@report.command(name="visit")
@click.argument("record_id", type=int)
@click.pass_obj
def report_visit(data_file, record_id):
    """Summary of one visit."""
    record = _load_store(data_file).get(record_id)
    if record is None:
        raise click.ClickException(str(RecordNotFoundError(record_id)))
    _print_individual(record)


@report.command(name="types")
@click.pass_obj
def report_types(data_file):
    """Visit count by type."""
    _print_type_counts(_load_store(data_file).records)


@report.command(name="weekly")
@click.option("-s", "--week-start", required=True, callback=_date_option, help="first day DD/MM/YYYY")
@click.pass_obj
def report_weekly(data_file, week_start):
    """Per-day visit counts for one week."""
    _print_weekly(weekly_summary(_load_store(data_file).records, week_start))


@report.command(name="monthly")
@click.option("-m", "--month", "month_text", required=True, help="month MM/YYYY")
@click.pass_obj
def report_monthly(data_file, month_text):
    """Visit totals by type and doctor for one month."""
    try:
        month = _parse_month(month_text)
    except ValueError:
        raise click.BadParameter("use MM/YYYY", param_hint="--month")
    _print_monthly(monthly_statistics(_load_store(data_file).records, month.year, month.month))


@main.command(name="generate-mock")
@click.option("-c", "--count", type=click.IntRange(min=1), help="number of visits (default: random 300-500)")
@click.option("--seed", type=int, help="random seed for reproducible data")
@click.pass_obj
def generate_mock(data_file, count, seed):
    """Fill an empty data file with random visits."""
    store = _load_store(data_file)
    generated = generate_mock_records(store, count=count, rng=random.Random(seed))
    if not generated:
        click.echo("Data file already holds records; nothing generated.")
        return
    _save_or_fail(store, data_file)
    click.echo(f"Generated {generated} mock patient records for testing.")


if __name__ == "__main__":
    main()
