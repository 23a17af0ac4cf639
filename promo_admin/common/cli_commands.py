######################################################################
# Copyright 2016, 2024 John J. Rofrano. All Rights Reserved.
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
# https://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
######################################################################

"""
Flask CLI Command Extensions
"""
import click
from flask import current_app
from flask.cli import with_appcontext

from promo_admin.models import DataValidationError, PromoCode, db
from promo_admin.services import STATS_EXTENSION
from promo_admin.stats import CodeType, Region


######################################################################
# Command to force tables to be rebuilt
# Usage:
#   flask db-create
######################################################################
@click.command("db-create")
@with_appcontext
def db_create():
    """
    Recreates a local database. You probably should not use this on
    production. ;-)
    """
    db.drop_all()
    db.create_all()
    db.session.commit()
    click.echo("Database tables recreated")


######################################################################
# Command to load a file of promo codes, one per line
# Usage:
#   flask import-codes codes.txt --type starter --region emea
######################################################################
@click.command("import-codes")
@click.argument("codes_file", type=click.File("r"))
@click.option("--type", "code_type", required=True, type=click.Choice(CodeType.values()))
@click.option("--region", required=True, type=click.Choice(Region.values()))
@with_appcontext
def import_codes(codes_file, code_type, region):
    """Bulk-create promo codes read from CODES_FILE"""
    try:
        codes = PromoCode.bulk_create(codes_file.read(), code_type, region)
    except DataValidationError as error:
        raise click.ClickException(str(error)) from error
    click.echo(f"Imported {len(codes)} promo code(s)")


def _echo_groups(heading: str, groups):
    click.echo(heading)
    if not groups:
        click.echo("  (none)")
        return
    for group in groups:
        click.echo(
            f"  {group['key']:<14} total={group['total']:<6} used={group['used']:<6} "
            f"unused={group['unused']:<6} usage={group['usage_percent']:.1f}%"
        )


######################################################################
# Command to print usage statistics
# Usage:
#   flask code-stats
######################################################################
@click.command("code-stats")
@with_appcontext
def code_stats():
    """Prints promo code usage statistics"""
    stats = current_app.extensions[STATS_EXTENSION].refresh().serialize()
    overall = stats["overall"]
    click.echo(
        f"Total: {overall['total']}  Used: {overall['used']}  "
        f"Unused: {overall['unused']}  Usage: {overall['usage_percent']:.1f}%"
    )
    _echo_groups("By region:", stats["by_region"])
    _echo_groups("By type:", stats["by_type"])


def init_cli(app):
    """Registers the CLI commands on the app"""
    for command in (db_create, import_codes, code_stats):
        app.cli.add_command(command)
