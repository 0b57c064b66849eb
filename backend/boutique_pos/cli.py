# Overview: Flask CLI command groups for bootstrap, catalog files, cash and reports.

# backend/boutique_pos/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP (PowerShell: $env:FLASK_APP="boutique_pos:create_app").
# - Use: python -m flask <group> <command> [options]
#
# System bootstrap/repair:
# - python -m flask system init-db
#   Create any missing tables (use `flask db upgrade` for migrated databases).
# - python -m flask system reset-db --yes
#   DEV/TEST only: drop and recreate all tables (deletes all data).
#
# Catalog files:
# - python -m flask catalog import-csv productos.csv
#   Create products from SKU?,Nombre,Precio,Stock? rows.
# - python -m flask catalog upsert inventario.xlsx
#   Upsert by SKU from the export column layout (.xlsx or .csv).
# - python -m flask catalog export inventario.xlsx
#   Write the catalog (.xlsx or .csv by extension).
# - python -m flask catalog restock [--threshold 3]
#   List products that need restocking.
#
# Cash reconciliation:
# - python -m flask cash float 2024-02-10 [--set 1500.00]
#   Show (or save) the opening float for a day.
# - python -m flask cash expected 2024-02-10
#   Opening float + cash sales for the day.
# - python -m flask cash close 2024-02-10 1830.50
#   Record the counted cash and close the day.
#
# Reports:
# - python -m flask reports sales month 2024-02 [--export ventas.xlsx]
#   Sales in a day/month/year window, totals by payment method.

import click
from flask.cli import with_appcontext

from .extensions import db
from .services import closing_service, import_service, products_service, reporting_service
from .services.import_service import EXPORT_HEADERS
from .validation import ConflictError, ValidationError, amount_to_cents


def _money(cents: int | None) -> str:
    if cents is None:
        return "-"
    return f"{cents / 100:,.2f}"


def _cents_arg(value: str) -> int:
    try:
        cents = amount_to_cents(value)
    except ValidationError as e:
        raise click.BadParameter(str(e))
    if cents is None:
        raise click.BadParameter("amount is required")
    return cents


@click.group('system')
def system_group():
    """System bootstrap and repair commands."""


@system_group.command('init-db')
@with_appcontext
def init_db():
    """Create all tables that do not exist yet."""
    db.create_all()
    click.echo("PASS Database schema ready")


@system_group.command('reset-db')
@click.option('--yes', is_flag=True, help='Skip confirmation')
@with_appcontext
def reset_db(yes):
    """
    DANGER: Drop all tables and recreate schema.

    This will DELETE ALL DATA!
    """
    if not yes:
        click.confirm("WARN This will DELETE ALL DATA. Are you sure?", abort=True)

    click.echo("DELETE  Dropping all tables...")
    db.drop_all()
    db.create_all()
    click.echo("PASS Database reset")


@click.group('catalog')
def catalog_group():
    """Catalog import, export and stock checks."""


@catalog_group.command('import-csv')
@click.argument('path', type=click.Path(exists=True, dir_okay=False))
@with_appcontext
def import_csv_cli(path):
    """Create products from a CSV file (SKU?, Nombre, Precio, Stock?)."""
    try:
        with open(path, "rb") as fh:
            rows = import_service.read_rows(fh, path)
        result = import_service.import_csv_rows(rows)
    except (import_service.ImportFileError, ValidationError, ConflictError) as e:
        raise click.ClickException(str(e))
    click.echo(f"PASS Imported {result['created']} products ({result['skipped']} rows skipped)")


@catalog_group.command('upsert')
@click.argument('path', type=click.Path(exists=True, dir_okay=False))
@with_appcontext
def upsert_cli(path):
    """Upsert products by SKU from a spreadsheet in the export layout."""
    try:
        with open(path, "rb") as fh:
            rows = import_service.read_rows(fh, path)
        result = import_service.upsert_sheet_rows(rows)
    except (import_service.ImportFileError, ValidationError) as e:
        raise click.ClickException(str(e))
    click.echo(
        f"PASS {result['created']} created, {result['updated']} updated, {result['skipped']} rows skipped"
    )


@catalog_group.command('export')
@click.argument('path', type=click.Path(dir_okay=False, writable=True))
@with_appcontext
def export_cli(path):
    """Write the catalog to .xlsx or .csv (chosen by extension)."""
    rows = import_service.export_rows()
    if path.lower().endswith(".csv"):
        with open(path, "w", encoding="utf-8", newline="") as fh:
            fh.write(import_service.write_csv(rows, headers=EXPORT_HEADERS))
    else:
        out = import_service.write_xlsx(rows, headers=EXPORT_HEADERS, sheet_name="Inventario")
        with open(path, "wb") as fh:
            fh.write(out.getvalue())
    click.echo(f"PASS Exported {len(rows)} products to {path}")


@catalog_group.command('restock')
@click.option('--threshold', type=int, default=None, help='Stock level below which to list (default: config)')
@with_appcontext
def restock_cli(threshold):
    """List products running low, most urgent first."""
    products = products_service.restock_list(threshold=threshold)
    if not products:
        click.echo("Nothing to restock.")
        return

    click.echo(f"\n{'SKU':<16} {'Name':<40} {'Stock':>6}")
    click.echo("-" * 64)
    for p in products:
        flag = "  AGOTADO" if p.stock <= 0 else ""
        click.echo(f"{p.sku:<16} {p.name[:40]:<40} {p.stock:>6}{flag}")
    click.echo("")


@click.group('cash')
def cash_group():
    """Opening float and cash reconciliation."""


@cash_group.command('float')
@click.argument('day')
@click.option('--set', 'amount', default=None, help='Opening float to save, e.g. 1500.00')
@with_appcontext
def float_cli(day, amount):
    """Show or save the opening float for DAY (YYYY-MM-DD)."""
    try:
        if amount is not None:
            closing = closing_service.set_opening_float(day, _cents_arg(amount))
            if closing.is_closed:
                click.echo(f"WARN {closing.date} is closed; opening float left at {_money(closing.initial_cash_cents)}")
                return
            click.echo(f"PASS Opening float for {closing.date}: {_money(closing.initial_cash_cents)}")
            return
        closing = closing_service.get_closing(day)
        initial = closing_service.get_opening_float(day)
    except ValidationError as e:
        raise click.ClickException(str(e))
    suffix = " (default)" if closing is None else ""
    click.echo(f"Opening float for {day}: {_money(initial)}{suffix}")


@cash_group.command('expected')
@click.argument('day')
@with_appcontext
def expected_cli(day):
    """Opening float + cash sales for DAY."""
    try:
        summary = closing_service.daily_summary(day)
    except ValidationError as e:
        raise click.ClickException(str(e))
    click.echo(f"Opening float:  {_money(summary['initial_cash_cents'])}")
    click.echo(f"Cash sales:     {_money(summary['summary']['by_method_cents']['cash'])}")
    click.echo(f"Expected cash:  {_money(summary['expected_cash_cents'])}")


@cash_group.command('close')
@click.argument('day')
@click.argument('counted')
@with_appcontext
def close_cli(day, counted):
    """Record the COUNTED drawer amount for DAY and close it."""
    try:
        result = closing_service.close_day(day, _cents_arg(counted))
    except ValidationError as e:
        raise click.ClickException(str(e))
    click.echo(f"PASS {day} closed")
    click.echo(f"Expected: {_money(result['expected_cash_cents'])}")
    click.echo(f"Counted:  {_money(result['closing']['final_cash_actual_cents'])}")
    click.echo(f"Variance: {result['variance_cents'] / 100:+,.2f}")


@click.group('reports')
def reports_group():
    """Sales reports."""


@reports_group.command('sales')
@click.argument('granularity', type=click.Choice(reporting_service.GRANULARITIES))
@click.argument('anchor')
@click.option('--export', 'export_path', default=None, help='Also write line items to this .xlsx file')
@with_appcontext
def sales_report_cli(granularity, anchor, export_path):
    """Sales for the GRANULARITY window containing ANCHOR."""
    try:
        sales = reporting_service.sales_in_window(granularity, anchor)
    except reporting_service.ReportError as e:
        raise click.ClickException(str(e))

    summary = reporting_service.summarize(sales)
    click.echo(f"\nSales ({granularity} {anchor}): {summary['sales_count']}")
    click.echo("-" * 40)
    for method, cents in summary["by_method_cents"].items():
        label = reporting_service.PAYMENT_LABELS[method]
        click.echo(f"{label:<16} {_money(cents):>20}")
    click.echo("-" * 40)
    click.echo(f"{'Total':<16} {_money(summary['total_cents']):>20}\n")

    if export_path:
        rows = reporting_service.sales_export_rows(sales)
        out = import_service.write_xlsx(rows, headers=reporting_service.SALES_EXPORT_HEADERS, sheet_name="Ventas")
        with open(export_path, "wb") as fh:
            fh.write(out.getvalue())
        click.echo(f"PASS Wrote {len(rows)} lines to {export_path}")


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(system_group)
    app.cli.add_command(catalog_group)
    app.cli.add_command(cash_group)
    app.cli.add_command(reports_group)
