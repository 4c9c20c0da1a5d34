"""Command-line interface for the snapshot tracker."""
from __future__ import annotations

import sys
from contextlib import contextmanager
from dataclasses import asdict, dataclass
from datetime import date, datetime
from pathlib import Path
from typing import Iterator, Optional, Sequence

import typer
from rich import print
from rich.console import Console
from rich.table import Table
from zoneinfo import ZoneInfo

from ..config import Config, ensure_config, load_config
from ..core import analytics
from ..core.holdings import HoldingsEditor, pop_holdings_changes
from ..core.ranges import RANGE_MONTHS
from ..core.state import AppState
from ..core.store import SnapshotStore
from ..core.targets import TargetsBook, targets_indicator
from ..data import BaseRepository, RepositoryError, open_repository
from ..logging_utils import configure_logging
from ..notify import ConsoleNotifier
from ..reports import csv_renderer, md_renderer
from ..sync import SyncClient, SyncService

console = Console()


@dataclass
class Services:
    config: Config
    repo: BaseRepository
    notifier: ConsoleNotifier
    sync: SyncService
    state: AppState

    @property
    def store(self) -> SnapshotStore:
        return self.state.store

    @property
    def targets(self) -> TargetsBook:
        return self.state.targets


def _build_services(config: Config) -> Services:
    try:
        repo = open_repository(config.storage.backend, config.storage_path)
    except RepositoryError as exc:
        raise typer.BadParameter(str(exc)) from exc
    notifier = ConsoleNotifier(console)
    client = (
        SyncClient(config.sync.url, timeout=config.sync.timeout_seconds) if config.sync.enabled else None
    )
    sync = SyncService(repo, client, notifier=notifier)
    store = SnapshotStore(repo, notifier=notifier, sync=sync, currency_symbol=config.currency_symbol)
    targets = TargetsBook(repo, notifier=notifier, sync=sync)
    state = AppState(
        store=store,
        targets=targets,
        range_token=config.analytics.default_range,
        timezone=config.timezone,
        opportunity_range_months=config.analytics.opportunity_range_months,
        composition_compare_months=config.analytics.composition_compare_months,
    )
    return Services(config, repo, notifier, sync, state.load())


@contextmanager
def _session(
    category: Optional[str] = None,
    range_token: Optional[str] = None,
) -> Iterator[Services]:
    """Open the repository, load state and apply per-command view options.

    Exits with status 1 when the command reported an error notification.
    """

    services = _build_services(load_config())
    try:
        if range_token is not None:
            if range_token not in RANGE_MONTHS:
                raise typer.BadParameter(f"Range must be one of: {', '.join(RANGE_MONTHS)}")
            services.state.set_range(range_token)
        if category is not None:
            if category not in services.state.categories():
                raise typer.BadParameter(f"Unknown category: {category}")
            services.state.selected_category = category
        before = len(services.notifier.errors)
        yield services
        failed = len(services.notifier.errors) > before
    finally:
        services.sync.close()
        services.repo.close()
    if failed:
        raise typer.Exit(code=1)


def _format_console_value(value: object) -> str:
    if value is None:
        return "[dim]N/A[/dim]"
    if isinstance(value, bool):
        return "yes" if value else "no"
    if isinstance(value, float):
        return f"{value:,.2f}"
    if isinstance(value, datetime):
        return value.date().isoformat()
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, (list, tuple)):
        return ", ".join(str(item) for item in value)
    return str(value)


def _render_table(
    rows: Sequence[dict[str, object]],
    columns: Sequence[tuple[str, str]],
    *,
    title: str | None = None,
) -> None:
    table = Table(title=title, show_header=True, header_style="bold")
    for _, heading in columns:
        table.add_column(heading)
    for row in rows:
        table.add_row(*[_format_console_value(row.get(key)) for key, _ in columns])
    console.print(table)


def _handle_export(
    export: tuple[str, Path] | None,
    rows: Sequence[dict[str, object]],
    *,
    fieldnames: Sequence[str],
) -> None:
    if not export or not rows:
        return
    fmt_raw, target = export
    fmt = (fmt_raw or "").lower()
    if fmt == "csv":
        csv_renderer.write(rows, target, fieldnames)
    elif fmt == "md":
        md_renderer.write(rows, target, fieldnames)
    else:
        raise typer.BadParameter("Export format must be 'csv' or 'md'")
    print(f"[green]Exported report to {target}")


def _read_input(source: Optional[Path]) -> str:
    if source is None or str(source) == "-":
        return sys.stdin.read()
    return Path(source).read_text(encoding="utf-8")


def _view_label(state: AppState) -> str:
    scope = state.selected_category or "Portfolio"
    return f"{scope} ({state.range_token})"


CATEGORY_OPTION = typer.Option(None, "--category", "-c", help="Restrict to one category.")
RANGE_OPTION = typer.Option(None, "--range", "-r", help="Range: all, 6m, 1y or 3y.")
EXPORT_OPTION = typer.Option(
    None,
    "--export",
    metavar="FORMAT PATH",
    help="Export the report to CSV or Markdown.",
)

HISTORY_COLUMNS = [
    ("id", "ID"),
    ("date", "Date"),
    ("tag", "Tag"),
    ("value", "Value"),
    ("invested", "Invested"),
    ("variation", "Variation"),
    ("roi_pct", "ROI %"),
    ("note", "Note"),
]

ASSET_COLUMNS = [
    ("name", "Asset"),
    ("term", "Term"),
    ("category", "Category"),
    ("purchase_price", "Buy price"),
    ("quantity", "Qty"),
    ("current_price", "Price"),
    ("purchase_value", "Invested"),
    ("current_value", "Value"),
]

ROI_COLUMNS = [("date", "Date"), ("pct", "ROI %"), ("gain", "Gain")]

PERFORMANCE_COLUMNS = [
    ("name", "Name"),
    ("invested", "Invested"),
    ("value", "Value"),
    ("roi_pct", "ROI %"),
    ("volatility", "Volatility %"),
    ("drawdown", "Drawdown %"),
]

OPPORTUNITY_COLUMNS = [
    ("label", "Item"),
    ("last_return", "Last %"),
    ("trend", "Trend %"),
    ("net_flow_pct", "Net flow %"),
    ("drawdown", "Drawdown %"),
    ("z_score", "Z"),
    ("score", "Score"),
    ("tags", "Signals"),
]

COMPOSITION_COLUMNS = [
    ("name", "Name"),
    ("percent", "Weight %"),
    ("prev_percent", "Previous %"),
    ("change", "Change pp"),
]

TERM_COLUMNS = [
    ("term", "Term"),
    ("value", "Value"),
    ("percent", "Weight %"),
]

TARGET_COLUMNS = [
    ("name", "Category"),
    ("current_pct", "Current %"),
    ("target", "Target %"),
    ("diff", "Gap pp"),
    ("base_monthly", "Base monthly"),
    ("monthly", "Monthly"),
    ("impact", "Impact pp"),
]

ASSET_TARGET_COLUMNS = [
    ("name", "Asset"),
    ("current_pct", "Current %"),
    ("target", "Target %"),
    ("diff", "Gap pp"),
]

HOLDINGS_COLUMNS = [
    ("index", "#"),
    ("name", "Asset"),
    ("category", "Category"),
    ("term", "Term"),
    ("quantity", "Qty"),
    ("purchase_price", "Buy price"),
    ("current_price", "Price"),
    ("purchase_value", "Invested"),
    ("current_value", "Value"),
    ("roi_pct", "ROI %"),
]


app = typer.Typer(help="Patrimony: personal portfolio snapshot tracker")
targets_app = typer.Typer(help="Target allocation per category and asset")
holdings_app = typer.Typer(help="Edit the latest snapshot's holdings")
sync_app = typer.Typer(help="Cloud sync")
app.add_typer(targets_app, name="targets")
app.add_typer(holdings_app, name="holdings")
app.add_typer(sync_app, name="sync")


@app.callback(invoke_without_command=True)
def main(ctx: typer.Context) -> None:
    """Application entrypoint that ensures configuration and logging are present."""

    config_path = ensure_config()
    configure_logging(config_path.parent / "logs")
    if ctx.invoked_subcommand is None:
        print(ctx.get_help())


@app.command()
def version() -> None:
    """Print the CLI version."""

    print("patrimony 0.1.0")


# --- snapshots ---------------------------------------------------------
@app.command()
def capture(
    source: Optional[Path] = typer.Option(None, "--file", "-f", help="Tabular input file; stdin when omitted."),
    when: Optional[str] = typer.Option(None, "--date", "-d", help="Snapshot date (YYYY-MM-DD or ISO timestamp)."),
    tag: str = typer.Option("", "--tag", help="Short label for the snapshot."),
    note: str = typer.Option("", "--note", help="Free-form note."),
) -> None:
    """Record a snapshot from eight tab-separated columns per asset."""

    raw_text = _read_input(source)
    with _session() as services:
        if when is None:
            when = datetime.now(ZoneInfo(services.config.timezone)).date().isoformat()
        snapshot = services.store.capture(raw_text, when, tag, note)
        if snapshot is not None:
            print(
                f"Captured snapshot {snapshot.id}: {len(snapshot.assets)} assets, "
                f"value {snapshot.total_current_value:,.2f}"
            )


@app.command()
def edit(
    snapshot_id: int = typer.Argument(..., help="Snapshot identifier."),
    source: Optional[Path] = typer.Option(None, "--file", "-f", help="Tabular input file; stdin when omitted."),
    when: Optional[str] = typer.Option(None, "--date", "-d", help="New date; keeps the current one when omitted."),
    tag: Optional[str] = typer.Option(None, "--tag"),
    note: Optional[str] = typer.Option(None, "--note"),
) -> None:
    """Replace a snapshot's assets, date, tag and note."""

    raw_text = _read_input(source)
    with _session() as services:
        current = services.store.get(snapshot_id)
        if current is None:
            raise typer.BadParameter(f"Snapshot {snapshot_id} not found")
        updated = services.store.edit(
            snapshot_id,
            raw_text,
            when or current.date,
            current.tag if tag is None else tag,
            current.note if note is None else note,
        )
        if updated is not None:
            print(f"Updated snapshot {snapshot_id}")


@app.command()
def delete(
    snapshot_id: int = typer.Argument(..., help="Snapshot identifier."),
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip confirmation."),
) -> None:
    """Delete a snapshot."""

    with _session() as services:
        if services.store.get(snapshot_id) is None:
            print(f"[yellow]Snapshot {snapshot_id} not found[/yellow]")
            return
        if not yes and not typer.confirm(f"Delete snapshot {snapshot_id}?"):
            raise typer.Abort()
        services.store.delete(snapshot_id)


@app.command()
def history(export: tuple[str, Path] | None = EXPORT_OPTION) -> None:
    """List every snapshot, newest first."""

    with _session() as services:
        rows = [
            {
                "id": s.id,
                "date": s.date,
                "tag": s.tag,
                "note": s.note,
                "value": s.total_current_value,
                "invested": s.total_purchase_value,
                "variation": s.variation,
                "roi_pct": analytics.roi_pct(s.total_current_value, s.total_purchase_value),
            }
            for s in reversed(services.store.snapshots)
        ]
        if rows:
            _render_table(rows, HISTORY_COLUMNS, title="History")
        else:
            print("[yellow]No snapshots yet[/yellow]")
        _handle_export(export, rows, fieldnames=[key for key, _ in HISTORY_COLUMNS])


@app.command()
def show(
    snapshot_id: Optional[int] = typer.Argument(None, help="Snapshot identifier; latest when omitted."),
    tabular: bool = typer.Option(False, "--tabular", help="Print the tab-separated export instead."),
) -> None:
    """Show the assets of one snapshot."""

    with _session() as services:
        store = services.store
        snapshot = store.latest() if snapshot_id is None else store.get(snapshot_id)
        if snapshot is None:
            print("[yellow]Snapshot not found[/yellow]")
            return
        if tabular:
            text = store.export_one(snapshot.id)
            if text is not None:
                sys.stdout.write(text + "\n")
            return
        rows = [asset._asdict() for asset in snapshot.assets]
        _render_table(rows, ASSET_COLUMNS, title=f"Snapshot {snapshot.id} ({snapshot.date.date().isoformat()})")


@app.command("export")
def export_json(target: Path = typer.Argument(..., help="Destination JSON file.")) -> None:
    """Write every snapshot to a JSON backup file."""

    with _session() as services:
        payload = services.store.export_all()
        if payload is not None:
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_text(payload, encoding="utf-8")
            print(f"[green]Exported {len(services.store.snapshots)} snapshots to {target}")


@app.command("import")
def import_json(
    source: Path = typer.Argument(..., exists=True, dir_okay=False, help="JSON backup file."),
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip confirmation."),
) -> None:
    """Replace the whole history with the contents of a JSON backup."""

    payload = source.read_text(encoding="utf-8")
    with _session() as services:
        if services.store.snapshots and not yes and not typer.confirm("Replace the current history?"):
            raise typer.Abort()
        count = services.store.import_batch(payload)
        if count is not None:
            print(f"Imported {count} snapshots")


@app.command()
def select(category: Optional[str] = typer.Argument(None, help="Category to remember; clears when omitted.")) -> None:
    """Remember a category selection for later report commands."""

    with _session() as services:
        if not services.state.select_category(category):
            raise typer.BadParameter(f"Unknown category: {category}")
        print(f"Selected {services.state.selected_category or 'whole portfolio'}")


# --- analytics ---------------------------------------------------------
@app.command()
def summary(category: Optional[str] = CATEGORY_OPTION) -> None:
    """Headline totals and profit changes."""

    with _session(category) as services:
        state = services.state
        result = analytics.portfolio_summary(state.snapshots, state.selected_category, state.timezone)
        rows = [{"metric": key.replace("_", " "), "value": value} for key, value in asdict(result).items()]
        _render_table(rows, [("metric", "Metric"), ("value", "Value")], title=_view_label(state))
        message = pop_holdings_changes(services.repo)
        if message:
            console.print(message, style="cyan")


@app.command()
def dashboard(
    category: Optional[str] = CATEGORY_OPTION,
    range_token: Optional[str] = RANGE_OPTION,
) -> None:
    """Every KPI for the current view."""

    with _session(category, range_token) as services:
        state = services.state
        board = analytics.build_dashboard(state)
        rate = board.win_rate
        rows = [
            {"metric": "Total value", "value": board.summary.total_value},
            {"metric": "Invested", "value": board.summary.total_invested},
            {"metric": "Accumulated ROI %", "value": board.summary.accumulated_roi},
            {"metric": "Period ROI %", "value": board.summary.period_roi},
            {"metric": "Max drawdown pp", "value": board.max_drawdown},
            {"metric": "Win rate %", "value": rate.win_rate},
            {"metric": "Best", "value": f"{rate.best_name} ({rate.best_roi * 100:.1f}%)"},
            {"metric": "Worst", "value": f"{rate.worst_name} ({rate.worst_roi * 100:.1f}%)"},
            {"metric": "CAGR %", "value": board.projection.cagr * 100},
            {"metric": "Projected value", "value": board.projection.value},
            {"metric": "Volatility %", "value": board.volatility},
            {
                "metric": "Best month",
                "value": (
                    f"{board.best_month.date.date().isoformat()} ({board.best_month.value:+.1f}%)"
                    if board.best_month
                    else None
                ),
            },
        ]
        _render_table(rows, [("metric", "Metric"), ("value", "Value")], title=_view_label(state))
        top = analytics.top_items(state.latest, state.selected_category)
        if top:
            _render_table(
                top,
                [("name", "Name"), ("value", "Value"), ("invested", "Invested"), ("roi_pct", "ROI %")],
                title="Top holdings",
            )


@app.command()
def roi(
    mode: str = typer.Option("cumulative", "--mode", "-m", help="cumulative, periodic or annualized."),
    category: Optional[str] = CATEGORY_OPTION,
    range_token: Optional[str] = RANGE_OPTION,
    export: tuple[str, Path] | None = EXPORT_OPTION,
) -> None:
    """ROI series for the current view."""

    with _session(category, range_token) as services:
        state = services.state
        if mode == "cumulative":
            points = analytics.cumulative_roi_series(state.range_snapshots(), state.selected_category)
        elif mode == "periodic":
            points = analytics.periodic_roi_series(state.monthly_snapshots(), state.selected_category)
        elif mode == "annualized":
            points = analytics.annualized_roi_series(state.range_snapshots(), state.selected_category)
        else:
            raise typer.BadParameter("Mode must be cumulative, periodic or annualized")
        rows = [asdict(point) for point in points]
        if rows:
            _render_table(rows, ROI_COLUMNS, title=f"{mode.title()} ROI: {_view_label(state)}")
        else:
            print("[yellow]No snapshots in range[/yellow]")
        _handle_export(export, rows, fieldnames=[key for key, _ in ROI_COLUMNS])


@app.command()
def categories(
    category: Optional[str] = CATEGORY_OPTION,
    range_token: Optional[str] = RANGE_OPTION,
    export: tuple[str, Path] | None = EXPORT_OPTION,
) -> None:
    """Performance per category, or per asset of one category."""

    with _session(category, range_token) as services:
        state = services.state
        rows = analytics.category_performance(state.latest, state.monthly_snapshots(), state.selected_category)
        columns = PERFORMANCE_COLUMNS if not state.selected_category else PERFORMANCE_COLUMNS[:4]
        if rows:
            _render_table(rows, columns, title=_view_label(state))
        else:
            print("[yellow]No snapshots yet[/yellow]")
        _handle_export(export, rows, fieldnames=[key for key, _ in columns])


@app.command()
def opportunities(
    category: Optional[str] = CATEGORY_OPTION,
    range_token: Optional[str] = RANGE_OPTION,
    months: Optional[int] = typer.Option(None, "--months", min=1, help="Trailing months compared."),
    export: tuple[str, Path] | None = EXPORT_OPTION,
) -> None:
    """Assets whose recent movement stands out."""

    with _session(category, range_token) as services:
        state = services.state
        items = analytics.opportunities(
            state.monthly_snapshots(),
            state.latest,
            state.selected_category,
            months or state.opportunity_range_months,
        )
        rows = [
            {"label": item.label, "score": item.score, "tags": item.tags, **asdict(item.stats)}
            for item in items
        ]
        if rows:
            _render_table(rows, OPPORTUNITY_COLUMNS, title=f"Signals: {_view_label(state)}")
        else:
            print("[yellow]No notable signals in the period[/yellow]")
        _handle_export(export, rows, fieldnames=[key for key, _ in OPPORTUNITY_COLUMNS])


@app.command()
def composition(
    category: Optional[str] = CATEGORY_OPTION,
    compare_months: Optional[int] = typer.Option(None, "--compare-months", min=1, help="Months back to compare."),
    export: tuple[str, Path] | None = EXPORT_OPTION,
) -> None:
    """Current weights against an earlier snapshot."""

    with _session(category) as services:
        state = services.state
        rows = analytics.composition(
            state.snapshots,
            state.selected_category,
            compare_months or state.composition_compare_months,
            state.timezone,
        )
        if rows:
            _render_table(rows, COMPOSITION_COLUMNS, title=f"Composition: {state.selected_category or 'Portfolio'}")
        else:
            print("[yellow]No snapshots yet[/yellow]")
        _handle_export(export, rows, fieldnames=[key for key, _ in COMPOSITION_COLUMNS])


@app.command()
def terms(
    category: Optional[str] = CATEGORY_OPTION,
    export: tuple[str, Path] | None = EXPORT_OPTION,
) -> None:
    """Latest value split by investment term."""

    with _session(category) as services:
        state = services.state
        rows = analytics.term_distribution(state.latest, state.selected_category)
        if rows:
            _render_table(rows, TERM_COLUMNS, title=f"Terms: {state.selected_category or 'Portfolio'}")
        else:
            print("[yellow]No snapshots yet[/yellow]")
        _handle_export(export, rows, fieldnames=[key for key, _ in TERM_COLUMNS])


# --- targets -----------------------------------------------------------
@targets_app.command("show")
def targets_show(
    category: Optional[str] = CATEGORY_OPTION,
    export: tuple[str, Path] | None = EXPORT_OPTION,
) -> None:
    """Current weights against targets."""

    with _session(category) as services:
        state = services.state
        book = services.targets
        if state.selected_category:
            rows = book.asset_rows(state.latest, state.selected_category)
            columns = ASSET_TARGET_COLUMNS
        else:
            rows = book.category_rows(state.latest)
            columns = TARGET_COLUMNS
        if not rows:
            print("[yellow]No snapshots yet[/yellow]")
            return
        _render_table(rows, columns, title=f"Targets: {state.selected_category or 'Portfolio'}")
        indicator = targets_indicator(rows)
        word = "missing" if indicator["delta_to_100"] >= 0 else "over"
        print(f"Targets: {indicator['sum_targets']:.1f}% ({abs(indicator['delta_to_100']):.1f}% {word})")
        if not state.selected_category:
            print(
                f"Monthly total: {book.monthly_total(state.latest):,.2f} "
                f"of budget {book.meta.monthly_budget:,.2f}"
            )
        _handle_export(export, rows, fieldnames=[key for key, _ in columns])


@targets_app.command("set")
def targets_set(category: str, value: float = typer.Argument(..., help="Target percentage (0-100).")) -> None:
    """Set a category's target weight."""

    with _session() as services:
        stored = services.targets.set_target(category, value)
        print(f"{category} target set to {stored:.1f}%")


@targets_app.command("asset")
def targets_asset(category: str, asset: str, value: float = typer.Argument(..., help="Target percentage (0-100).")) -> None:
    """Set an asset's target weight within its category."""

    with _session() as services:
        stored = services.targets.set_asset_target(category, asset, value)
        print(f"{asset} target in {category} set to {stored:.1f}%")


@targets_app.command("monthly")
def targets_monthly(category: str, amount: float = typer.Argument(..., help="Planned monthly contribution.")) -> None:
    """Set a category's planned monthly contribution."""

    with _session() as services:
        stored = services.targets.set_monthly(category, amount)
        print(f"{category} monthly contribution set to {stored:,.2f}")


@targets_app.command("budget")
def targets_budget(amount: float = typer.Argument(..., help="Total monthly budget.")) -> None:
    """Set the monthly budget used by auto-balance."""

    with _session() as services:
        stored = services.targets.set_monthly_budget(amount)
        print(f"Monthly budget set to {stored:,.2f}")


@targets_app.command("auto-balance")
def targets_auto_balance() -> None:
    """Spread the monthly budget across categories towards their targets."""

    with _session() as services:
        allocation = services.targets.auto_balance(services.state.latest)
        if not allocation:
            print("[yellow]Set a monthly budget and capture a snapshot first[/yellow]")
            return
        rows = [{"name": name, "monthly": amount} for name, amount in allocation.items()]
        _render_table(rows, [("name", "Category"), ("monthly", "Monthly")], title="Auto-balance")


# --- holdings ----------------------------------------------------------
def _holding_rows(editor: HoldingsEditor) -> list[dict[str, object]]:
    rows = []
    for index, asset in enumerate(editor.edited):
        row = asset._asdict()
        row["index"] = index
        row["roi_pct"] = analytics.roi_pct(asset.current_value, asset.purchase_value)
        rows.append(row)
    return rows


@holdings_app.command("show")
def holdings_show() -> None:
    """List the holdings of the latest snapshot."""

    with _session() as services:
        editor = HoldingsEditor.from_store(services.store, currency_symbol=services.config.currency_symbol)
        if editor is None:
            print("[yellow]No snapshots yet[/yellow]")
            return
        _render_table(_holding_rows(editor), HOLDINGS_COLUMNS, title="Holdings")


@holdings_app.command("set")
def holdings_set(
    asset: str = typer.Argument(..., help="Asset name or row number."),
    quantity: Optional[float] = typer.Option(None, "--quantity", "-q", min=0),
    purchase_price: Optional[float] = typer.Option(None, "--buy-price", min=0),
    current_price: Optional[float] = typer.Option(None, "--price", min=0),
    yes: bool = typer.Option(False, "--yes", "-y", help="Save without confirmation."),
) -> None:
    """Change one holding and save it to today's snapshot or a new one."""

    if quantity is None and purchase_price is None and current_price is None:
        raise typer.BadParameter("Provide --quantity, --buy-price or --price")
    with _session() as services:
        editor = HoldingsEditor.from_store(
            services.store,
            currency_symbol=services.config.currency_symbol,
            tz=services.config.timezone,
        )
        if editor is None:
            raise typer.BadParameter("No snapshots to edit")
        index = editor.find(asset)
        if index is None and asset.isdigit():
            index = int(asset)
        if index is None or not 0 <= index < len(editor.edited):
            raise typer.BadParameter(f"Unknown holding: {asset}")
        editor.update(index, quantity=quantity, purchase_price=purchase_price, current_price=current_price)
        preview = editor.change_summary()
        console.print(preview.message)
        if not yes and not typer.confirm(preview.title + "?"):
            raise typer.Abort()
        mode, _ = editor.save()
        print(f"[green]Holdings saved ({mode.value})")


@holdings_app.command("changes")
def holdings_changes() -> None:
    """Show the summary of the last holdings save, once."""

    with _session() as services:
        message = pop_holdings_changes(services.repo)
        print(message or "[yellow]No pending changes summary[/yellow]")


# --- sync --------------------------------------------------------------
@sync_app.command("pull")
def sync_pull() -> None:
    """Download snapshots and targets from the cloud, replacing local copies."""

    with _session() as services:
        if not services.sync.enabled:
            raise typer.BadParameter("Configure [sync] url in config.toml first")
        services.sync.pull()


@sync_app.command("push")
def sync_push() -> None:
    """Upload snapshots and targets to the cloud."""

    with _session() as services:
        if not services.sync.enabled:
            raise typer.BadParameter("Configure [sync] url in config.toml first")
        services.sync.push()


if __name__ == "__main__":
    app()
