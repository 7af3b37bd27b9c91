# ledger_tracker/cli.py
import json
import logging
from datetime import date

import click
from dotenv import load_dotenv

from ledger_tracker.config import load_config
from ledger_tracker.core.errors import LedgerError, StorageUnavailable
from ledger_tracker.outputs import get_output
from ledger_tracker.session import LedgerSession
from ledger_tracker.store import LedgerStore


def _fail(exc):
    if isinstance(exc, StorageUnavailable):
        raise click.ClickException("Storage unavailable")
    raise click.ClickException(str(exc))


def _entry_line(entry):
    sign = '-' if entry['kind'] == 'expense' else '+'
    line = f"{entry['date']}  {entry['id']}  {entry['category']:<15} {sign}{entry['amount']:.2f}"
    if entry['description']:
        line += f"  {entry['description']}"
    return line


@click.group()
@click.option(
    '--config', 'config_path',
    default='config.yaml',
    type=click.Path(dir_okay=False),
    help='Path to config.yaml (defaults are used when it is missing)'
)
@click.option(
    '--env-file', 'env_file',
    default=None,
    type=click.Path(exists=True, dir_okay=False),
    help='Optional .env file with LEDGER_* overrides'
)
@click.option(
    '--data-file', 'data_file',
    default=None,
    type=click.Path(dir_okay=False),
    help='Ledger JSON file (overrides config)'
)
@click.pass_context
def main(ctx, config_path, env_file, data_file):
    """
    Track income and expenses against a starting balance, stored in a single
    JSON file.
    """
    if env_file:
        load_dotenv(env_file)

    cfg = load_config(config_path)
    if data_file:
        cfg['data_file'] = data_file
    logging.basicConfig(level=str(cfg['log_level']).upper())

    ctx.obj = {
        'config': cfg,
        'session': LedgerSession(LedgerStore(cfg['data_file'])),
    }


@main.command()
@click.pass_obj
def show(obj):
    """Print the whole ledger as JSON."""
    try:
        ledger = obj['session'].refresh()
    except LedgerError as exc:
        _fail(exc)
    click.echo(json.dumps(ledger.to_dict(), indent=2, ensure_ascii=False))


@main.command('set-balance', context_settings={'ignore_unknown_options': True})
@click.argument('amount', type=float)
@click.pass_obj
def set_balance(obj, amount):
    """Set the starting balance."""
    try:
        balance = obj['session'].set_starting_balance(amount)
    except LedgerError as exc:
        _fail(exc)
    click.echo(f"Starting balance set to {balance:.2f}")


@main.command()
@click.option('--kind', type=click.Choice(['expense', 'income']), default='expense', show_default=True)
@click.option('--amount', type=float, required=True)
@click.option('--category', required=True)
@click.option('--description', default='')
@click.option('--date', 'entry_date', default=None, help='YYYY-MM-DD (default: today)')
@click.pass_obj
def add(obj, kind, amount, category, description, entry_date):
    """Record a new income or expense entry."""
    fields = {
        'kind': kind,
        'amount': amount,
        'category': category,
        'description': description,
        'date': entry_date or date.today().isoformat(),
    }
    try:
        entry = obj['session'].create_entry(fields)
    except LedgerError as exc:
        _fail(exc)
    click.echo(f"Added entry {entry.id}")


@main.command()
@click.argument('entry_id')
@click.option('--kind', type=click.Choice(['expense', 'income']), default=None)
@click.option('--amount', type=float, default=None)
@click.option('--category', default=None)
@click.option('--description', default=None)
@click.option('--date', 'entry_date', default=None, help='YYYY-MM-DD')
@click.pass_obj
def edit(obj, entry_id, kind, amount, category, description, entry_date):
    """Change only the given fields of an entry."""
    fields = {
        'kind': kind,
        'amount': amount,
        'category': category,
        'description': description,
        'date': entry_date,
    }
    try:
        obj['session'].update_entry(entry_id, fields)
    except LedgerError as exc:
        _fail(exc)
    click.echo(f"Updated entry {entry_id}")


@main.command()
@click.argument('entry_id')
@click.pass_obj
def remove(obj, entry_id):
    """Delete an entry."""
    try:
        obj['session'].delete_entry(entry_id)
    except LedgerError as exc:
        _fail(exc)
    click.echo(f"Deleted entry {entry_id}")


@main.command()
@click.option('--month', default=None, help='YYYY-MM (takes precedence over --year)')
@click.option('--year', default=None, help='YYYY')
@click.pass_obj
def summary(obj, month, year):
    """Show the balance, period totals and the filtered entry list."""
    session = obj['session']
    try:
        session.apply_filter(month=month, year=year)
        board = session.dashboard()
    except LedgerError as exc:
        _fail(exc)

    cards = board['summary']
    click.echo(f"Balance:            {board['balance']:.2f}")
    click.echo(f"Spent today:        {cards['expenseToday']:.2f}")
    click.echo(f"Spent this month:   {cards['expenseThisMonth']:.2f}")
    click.echo(f"Spent this year:    {cards['expenseThisYear']:.2f}")
    click.echo(f"Total income:       {cards['incomeTotal']:.2f}")
    click.echo("")
    if board['empty']:
        click.echo("No entries found.")
        return
    for entry in board['entries']:
        click.echo(_entry_line(entry))
    if board['categories']:
        click.echo("")
        click.echo("Expenses by category:")
        for name, total in board['categories'].items():
            click.echo(f"  {name:<15} {total:.2f}")


@main.command()
@click.option('--month', default=None, help='YYYY-MM (takes precedence over --year)')
@click.option('--year', default=None, help='YYYY')
@click.option('--output', 'output_path', default=None, type=click.Path(dir_okay=False),
              help='Destination file (default: <export_dir>/entries_<today>.csv)')
@click.option('--format', 'output_format', default='csv', type=click.Choice(['csv']))
@click.pass_obj
def export(obj, month, year, output_path, output_format):
    """Export the entries matching the filter."""
    session = obj['session']
    try:
        session.apply_filter(month=month, year=year)
        entries = session.export_entries()
    except LedgerError as exc:
        _fail(exc)
    if not entries:
        raise click.ClickException("No entries to export")

    outputter = get_output(output_format, obj['config'])
    path = outputter.write(entries, output_path)
    click.echo(f"Exported {len(entries)} entr{'y' if len(entries) == 1 else 'ies'} to {path}")


@main.command()
@click.option('--host', default=None, help='Host to bind (default from config)')
@click.option('--port', default=None, type=int, help='Port to bind (default from config)')
@click.pass_obj
def serve(obj, host, port):
    """Run the JSON API."""
    import uvicorn

    from ledger_tracker.web import create_app

    cfg = obj['config']
    app = create_app(obj['session'].store)
    uvicorn.run(app, host=host or cfg['host'], port=port or int(cfg['port']),
                log_level=str(cfg['log_level']).lower())
