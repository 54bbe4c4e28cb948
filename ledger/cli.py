"""
CLI for the Staffing Ledger.

Usage:
    ledger init --data-dir ./data
    ledger add-cost-center --data-dir ./data --code eng-01 --name "Platform Engineering" --manager "Jane Doe"
    ledger tree --data-dir ./data
    ledger report --data-dir ./data --members
    ledger budget CC-001 --data-dir ./data

Commands:
    init                Seed the data directory with default data
    recalc              Recalculate allocations and refresh their snapshots
    add-cost-center     Create a cost center
    delete-cost-center  Delete a cost center
    tree                Show the cost-center hierarchy
    report              Show spend vs. budget per cost center
    budget              Show the budget status of one cost center
"""
import json
import logging
import uuid
from pathlib import Path
from typing import List, Optional, Tuple

import click
import pandas as pd

from ledger import __version__
from ledger.domain.entities import BudgetEnforcement
from ledger.domain.exceptions import RecordNotFoundError
from ledger.domain.services import BudgetService, build_tree, detect_allocation_changes
from ledger.domain.services.budget import format_currency
from ledger.domain.services.reports import cost_center_summary, member_workloads
from ledger.infrastructure import CURRENT_VERSION, JsonFileStorage
from ledger.store import (
    AddRecord,
    Collection,
    DeleteRecord,
    LedgerStore,
    RefreshSnapshots,
    ResetToDefaults,
    bootstrap_store,
)

logger = logging.getLogger(__name__)

data_dir_option = click.option(
    '--data-dir',
    default='data',
    show_default=True,
    help='Directory holding the JSON data files',
    type=click.Path(file_okay=False, path_type=Path),
)


def _open_store(data_dir: Path) -> Tuple[JsonFileStorage, LedgerStore]:
    """Migrate, load and wire persistence for one command run."""
    storage = JsonFileStorage(data_dir)
    store = bootstrap_store(storage, migrator=storage)
    store.subscribe(storage.save)
    return storage, store


def _fail(message: str) -> None:
    click.echo(click.style(message, fg='red'), err=True)
    raise SystemExit(1)


@click.group()
@click.version_option(version=__version__)
@click.option('--verbose', is_flag=True, help='Enable debug logging')
def cli(verbose: bool):
    """Staffing Ledger CLI.

    Manage cost centers and review allocation cost and budget usage
    for a team's resource plan.
    """
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )


@cli.command()
@data_dir_option
@click.option('--force', is_flag=True, help='Overwrite existing data with defaults')
def init(data_dir: Path, force: bool):
    """Seed the data directory with default data.

    Example:
        ledger init --data-dir ./data
    """
    click.echo(click.style('Staffing Ledger - Init', fg='cyan', bold=True))
    storage = JsonFileStorage(data_dir)

    existing = storage.load()
    if existing.get('members') and not force:
        click.echo(click.style(f"Data already present in {data_dir}", fg='yellow'))
        click.echo("Use --force to reset it to defaults")
        return

    store = LedgerStore()
    snapshot = store.dispatch_or_raise(ResetToDefaults())
    storage.save(snapshot.to_collections())
    storage.write_version(CURRENT_VERSION)

    click.echo(click.style("Defaults written", fg='green'))
    click.echo(f"  Members:       {len(snapshot.members):>4}")
    click.echo(f"  Tasks:         {len(snapshot.tasks):>4}")
    click.echo(f"  Cost centers:  {len(snapshot.cost_centers):>4}")
    click.echo(f"  Accounts:      {len(snapshot.coa):>4}")
    click.echo(f"  Holidays:      {len(snapshot.holidays):>4}")


@cli.command()
@data_dir_option
@click.option('--json', 'output_json', is_flag=True, help='Output changes as JSON')
def recalc(data_dir: Path, output_json: bool):
    """Recalculate every allocation and re-capture cost-center/COA snapshots."""
    _, store = _open_store(data_dir)
    before = store.snapshot.allocations
    after = store.dispatch_or_raise(RefreshSnapshots()).allocations
    report = detect_allocation_changes(before, after)

    if output_json:
        click.echo(json.dumps(report.to_dict(), indent=2))
        return

    click.echo(click.style('Staffing Ledger - Recalculation', fg='cyan', bold=True))
    if not report.has_changes:
        click.echo(f"No changes across {len(after)} allocations")
        return

    click.echo(f"{len(report.changed_allocation_ids)} of {len(after)} allocations changed:")
    for change in report.changes:
        click.echo(f"  {change.allocation_id}  {change.field}: {change.old_value} -> {change.new_value}")


@cli.command('add-cost-center')
@data_dir_option
@click.option('--id', 'center_id', default=None, help='Identifier (generated when omitted)')
@click.option('--code', required=True, help='Short code, e.g. ENG-01')
@click.option('--name', required=True, help='Display name')
@click.option('--manager', required=True, help='Manager name')
@click.option('--description', default='', help='Free-text description')
@click.option('--monthly-budget', type=float, default=None, help='Monthly budget')
@click.option('--yearly-budget', type=float, default=None, help='Yearly budget')
@click.option('--budget-period', default=None, help='Budget year, e.g. 2026')
@click.option('--parent', 'parent_id', default=None, help='Parent cost center ID')
@click.option(
    '--enforcement',
    type=click.Choice([e.value for e in BudgetEnforcement]),
    default=None,
    help='Budget enforcement mode'
)
@click.option('--inactive', is_flag=True, help='Create the cost center as inactive')
def add_cost_center(data_dir: Path, center_id: Optional[str], code: str, name: str, manager: str,
                    description: str, monthly_budget: Optional[float], yearly_budget: Optional[float],
                    budget_period: Optional[str], parent_id: Optional[str],
                    enforcement: Optional[str], inactive: bool):
    """Create a cost center.

    Example:
        ledger add-cost-center --code eng-01 --name "Platform Engineering" \\
            --manager "Jane Doe" --parent CC-001 --monthly-budget 50000000
    """
    _, store = _open_store(data_dir)
    record = {
        'id': center_id or f"CC-{uuid.uuid4().hex[:8].upper()}",
        'code': code,
        'name': name,
        'manager': manager,
        'description': description,
        'monthly_budget': monthly_budget,
        'yearly_budget': yearly_budget,
        'budget_period': budget_period,
        'parent_cost_center_id': parent_id,
        'is_active': not inactive,
        'budget_enforcement': enforcement,
    }

    result = store.dispatch(AddRecord(Collection.COST_CENTERS, record))
    if not result.is_ok:
        _fail(result.error.message)

    created = result.value.find(Collection.COST_CENTERS, record['id'])
    click.echo(click.style(f"✓ Created cost center {created.code} ({created.id})", fg='green'))


@cli.command('delete-cost-center')
@data_dir_option
@click.argument('center_id')
def delete_cost_center(data_dir: Path, center_id: str):
    """Delete a cost center that has no children and no assigned members."""
    _, store = _open_store(data_dir)
    if store.snapshot.find(Collection.COST_CENTERS, center_id) is None:
        _fail(RecordNotFoundError("cost_centers", center_id).message)

    result = store.dispatch(DeleteRecord(Collection.COST_CENTERS, center_id))
    if not result.is_ok:
        _fail(result.error.message)
    click.echo(click.style(f"✓ Deleted cost center {center_id}", fg='green'))


def _tree_lines(nodes: List[dict], prefix: str = "") -> List[str]:
    lines = []
    for i, node in enumerate(nodes):
        last = i == len(nodes) - 1
        center = node['cost_center']
        marker = "" if center.is_active else " (inactive)"
        lines.append(f"{prefix}{'└── ' if last else '├── '}{center.code}  {center.name}{marker}")
        lines.extend(_tree_lines(node['children'], prefix + ("    " if last else "│   ")))
    return lines


@cli.command()
@data_dir_option
def tree(data_dir: Path):
    """Show the cost-center hierarchy."""
    _, store = _open_store(data_dir)
    roots = build_tree(store.snapshot.cost_centers)
    if not roots:
        click.echo("No cost centers")
        return
    for line in _tree_lines(roots):
        click.echo(line)


@cli.command()
@data_dir_option
@click.option('--members', is_flag=True, help='Also show workload per team member')
def report(data_dir: Path, members: bool):
    """Show spend vs. budget per cost center."""
    _, store = _open_store(data_dir)
    snapshot = store.snapshot

    with pd.option_context('display.max_columns', None, 'display.width', 200):
        click.echo(click.style('COST CENTER SUMMARY', fg='green', bold=True))
        summary = cost_center_summary(snapshot)
        click.echo(summary.to_string(index=False) if not summary.empty else "No cost centers")

        if members:
            click.echo("")
            click.echo(click.style('MEMBER WORKLOAD', fg='green', bold=True))
            workloads = member_workloads(snapshot)
            click.echo(workloads.to_string(index=False) if not workloads.empty else "No team members")


@cli.command()
@data_dir_option
@click.argument('center_id')
@click.option('--json', 'output_json', is_flag=True, help='Output as JSON')
def budget(data_dir: Path, center_id: str, output_json: bool):
    """Show the budget status of one cost center."""
    _, store = _open_store(data_dir)
    snapshot = store.snapshot
    service = BudgetService(snapshot.cost_centers, snapshot.allocations)

    try:
        status = service.get_budget_status(center_id)
    except RecordNotFoundError as e:
        _fail(e.message)

    if output_json:
        click.echo(json.dumps(status.to_dict(), indent=2))
        return

    currency = snapshot.settings.currency
    click.echo(f"\n{'=' * 50}")
    click.echo(click.style(f"BUDGET STATUS - {status.cost_center_name}", fg='green', bold=True))
    click.echo(f"{'=' * 50}")
    click.echo(f"Status:              {status.status.value}")
    click.echo(f"Monthly budget:      {format_currency(status.monthly_budget, currency)}")
    click.echo(f"Monthly projected:   {format_currency(status.monthly_projected, currency)}")
    click.echo(f"Monthly utilization: {status.monthly_utilization:.2f}%")
    click.echo(f"Yearly budget:       {format_currency(status.yearly_budget, currency)}")
    click.echo(f"Yearly projected:    {format_currency(status.yearly_projected, currency)}")
    click.echo(f"Yearly utilization:  {status.yearly_utilization:.2f}%")


if __name__ == '__main__':
    cli()
