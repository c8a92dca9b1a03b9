"""
Flask CLI commands

    flask outbox replay [--limit N]
    flask farmers add NAME
"""

import click
from flask import current_app
from flask.cli import AppGroup

from config import HARVEST_SERVICE

outbox_cli = AppGroup('outbox', help='Dead-letter outbox maintenance.')
farmers_cli = AppGroup('farmers', help='Farmer registry (harvest service).')


@outbox_cli.command('replay')
@click.option('--limit', type=int, default=None, help='Maximum dead letters per channel.')
def replay_command(limit):
    """Re-attempt delivery of dead-lettered events and callbacks."""
    from agrochain.events import get_emitters

    replayed = delivered = 0
    for channel, emitter in get_emitters().items():
        for result in emitter.replay_dead_letters(limit=limit):
            replayed += 1
            if result.delivered:
                delivered += 1
            else:
                click.echo(f"[{channel}] {result.dead_letter_id} {result.topic}: {result.error}", err=True)
    click.echo(f"Replayed {replayed} dead letters, {delivered} delivered")


@farmers_cli.command('add')
@click.argument('name')
def add_farmer_command(name):
    """Register a farmer and print its id."""
    if current_app.config['SERVICE_NAME'] != HARVEST_SERVICE:
        raise click.UsageError('Farmers live in the harvest service database')

    from agrochain.models import Farmer
    from agrochain.repositories import FarmerRepository

    name = name.strip()
    if not name:
        raise click.BadParameter('Name must not be empty', param_hint='NAME')
    farmer = FarmerRepository().create(Farmer(name=name))
    click.echo(f"Farmer {farmer.id}: {farmer.name}")


def register_commands(app):
    app.cli.add_command(outbox_cli)
    app.cli.add_command(farmers_cli)
