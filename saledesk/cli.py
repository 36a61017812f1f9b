"""Operator commands for inspecting sales on the SaleEditor service."""
import json
import logging

import click
from flask import current_app
from flask.cli import with_appcontext

from saledesk.api.client import SaleEditorClient
from saledesk.api.sale_editor import SaleEditorApi
from saledesk.drafts.models import SaleKind, SaleSummary
from saledesk.errors import SaleDeskError

KIND_CHOICE = click.Choice([k.value for k in SaleKind])


def _api(kind: str) -> SaleEditorApi:
    return SaleEditorApi(SaleEditorClient.from_config(current_app.config), SaleKind(kind))


@click.group("sales")
def sales_cli() -> None:
    """SaleEditor commands."""


@sales_cli.command("summary")
@click.argument("kind", type=KIND_CHOICE)
@click.argument("sale_id")
@with_appcontext
def summary_command(kind: str, sale_id: str) -> None:
    """Print the server-computed summary of SALE_ID."""
    try:
        summary = SaleSummary.from_api(_api(kind).get_summary(sale_id))
    except SaleDeskError as e:
        logging.error("summary of %s failed: %s", sale_id, e)
        raise click.ClickException(str(e))
    click.echo(json.dumps(summary.to_dict(), indent=2))


@sales_cli.command("detail")
@click.argument("kind", type=KIND_CHOICE)
@click.argument("entity_id", type=int)
@with_appcontext
def detail_command(kind: str, entity_id: int) -> None:
    """Print the raw detail of quote/order ENTITY_ID."""
    try:
        detail = _api(kind).get_detail(entity_id)
    except SaleDeskError as e:
        logging.error("detail of %s %s failed: %s", kind, entity_id, e)
        raise click.ClickException(str(e))
    click.echo(json.dumps(detail, indent=2))
