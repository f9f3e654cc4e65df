"""
Flask CLI commands for the academy fee desk
"""

import click
from flask import Flask
import logging

from init_db import run_on_startup
from models import AdminRoleEnum
from auth_helpers import create_admin
from validators import ValidationError
from record_store import StoreUnavailableError
from fee_helpers import (
    current_period, run_fee_generation, apply_prune, remove_duplicate_fee_records,
    refresh_overdue_status
)

logger = logging.getLogger(__name__)


def register_cli_commands(app: Flask):
    """Register CLI commands with the Flask app"""

    @app.cli.command("setup-db")
    def setup_db_command():
        """Create database, tables, and default admin user"""
        click.echo("🚀 Setting up database...")
        if run_on_startup(app.config['SETTINGS']):
            click.echo("✅ Database setup completed successfully!")
        else:
            click.echo("❌ Database setup failed!")

    @app.cli.command("create-admin")
    @click.option("--username", required=True, help="Admin username")
    @click.option("--password", prompt=True, hide_input=True, confirmation_prompt=True, help="Admin password")
    @click.option("--super-admin", is_flag=True, help="Create a super admin")
    def create_admin_command(username, password, super_admin):
        """Create an admin account"""
        role = AdminRoleEnum.SUPER_ADMIN if super_admin else AdminRoleEnum.ADMIN
        admin = create_admin(username, password, role)
        if admin is None:
            click.echo(f"❌ Username '{username}' already exists")
            return
        click.echo(f"✅ Admin created: {username} ({role.value})")

    @app.cli.command("generate-fees")
    @click.option("--month", help="Month name (defaults to the current month)")
    @click.option("--year", help="4-digit year (defaults to the current year)")
    @click.option("--carry-forward/--no-carry-forward", default=None,
                  help="Add earlier unpaid months to the new fee")
    def generate_fees_command(month, year, carry_forward):
        """Create missing fee records for every active student"""
        default_month, default_year = current_period()
        month = month or default_month
        year = year or default_year
        if carry_forward is None:
            carry_forward = app.config.get('FEE_CARRY_FORWARD_ARREARS', False)

        try:
            result = run_fee_generation(month, year, carry_forward_arrears=carry_forward)
        except ValidationError as e:
            click.echo(f"❌ {e}")
            return
        except StoreUnavailableError as e:
            click.echo(f"❌ {e}")
            return

        click.echo(f"✅ Generated {len(result['created'])} fee records for {month} {year}")
        if result['skipped']:
            click.echo(f"   Skipped {result['skipped']} duplicates")
        click.echo(f"   {result['already_present']} students already had a record")

    @app.cli.command("prune-fees")
    @click.option("--yes", "confirm", is_flag=True, help="Actually delete the records")
    def prune_fees_command(confirm):
        """Delete every fee record outside the current month"""
        result = apply_prune(confirm=confirm)
        period = f"{result['month']} {result['year']}"

        if not result['applied']:
            click.echo(f"🔍 {len(result['removed_ids'])} fee records fall outside {period} "
                       f"({result['kept_count']} kept)")
            if result['removed_ids']:
                click.echo("   Re-run with --yes to delete them")
            return

        click.echo(f"🗑️  Deleted {result['removed_count']} fee records outside {period}")

    @app.cli.command("dedupe-fees")
    def dedupe_fees_command():
        """Remove duplicate fee records, keeping the oldest of each"""
        removed = remove_duplicate_fee_records()
        if removed:
            click.echo(f"✅ Removed {removed} duplicate fee records")
        else:
            click.echo("✅ No duplicate fee records found")

    @app.cli.command("refresh-overdue")
    def refresh_overdue_command():
        """Mark pending fees from earlier months as overdue"""
        updated = refresh_overdue_status()
        click.echo(f"✅ Marked {len(updated)} fee records overdue")
