# ~/bridge-forwarder/src/forwarder/cli/main.py
import click
import logging
import sys
from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.table import Table

from .. import __version__
from ..address import derive_salt, normalize_salt, predict_clone_address, to_address
from ..config import NETWORKS
from ..contract import Msg
from ..deployment import deploy_local_stack
from ..errors import ForwarderError

console = Console()

SIM_DEPLOYER = "0x" + "de" * 20
SIM_HOLDER = "0x" + "a0" * 20
SIM_FOREIGN_TOKEN = "0x" + "f0" * 20


@click.group()
@click.version_option(version=__version__, prog_name="forwarder")
@click.option('--log-level', default="WARNING", show_default=True,
              type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False))
def cli(log_level):
    """Deterministic bridge forwarders - predict, inspect and simulate"""
    logging.basicConfig(
        level=log_level.upper(),
        format="%(message)s",
        handlers=[RichHandler(console=console, show_path=False)],
    )


@cli.command()
def networks():
    """List known networks"""
    table = Table(title="Networks")
    table.add_column("Name", style="cyan")
    table.add_column("Chain", style="yellow")
    table.add_column("Destination", style="yellow")
    table.add_column("Adapter", style="green")
    table.add_column("OmniBridge")
    table.add_column("Native bridge")
    table.add_column("Message bridge")

    for network in NETWORKS.values():
        network = network.validate()
        table.add_row(network.name, str(network.chain_id), str(network.destination_chain_id),
                      network.adapter, network.omnibridge, network.native_bridge,
                      network.message_bridge)
    console.print(table)


@cli.command()
@click.argument('recipient')
@click.option('--nonce', default="0", show_default=True, help="Caller nonce (int or hex)")
def salt(recipient, nonce):
    """Show the effective CREATE2 salt for a recipient"""
    try:
        value = "0x" + derive_salt(recipient, _salt_arg(nonce)).hex()
    except ForwarderError as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        sys.exit(1)
    console.print(value)


@cli.command()
@click.argument('recipient')
@click.option('--factory', required=True, help="Factory address")
@click.option('--implementation', required=True, help="Implementation address")
@click.option('--nonce', default="0", show_default=True, help="Caller nonce (int or hex)")
def predict(recipient, factory, implementation, nonce):
    """Predict a recipient's forwarder address"""
    try:
        address = predict_clone_address(factory, implementation, recipient, _salt_arg(nonce))
    except ForwarderError as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        sys.exit(1)
    console.print(address)


@cli.command()
@click.argument('recipient')
@click.option('--amount', default=100, show_default=True, type=int,
              help="Token units sent to the forwarder before forwarding")
@click.option('--native', default=0, show_default=True, type=int,
              help="Native units sent to the forwarder before forwarding")
@click.option('--nonce', default="0", show_default=True, help="Caller nonce (int or hex)")
def simulate(recipient, amount, native, nonce):
    """Deposit to a predicted address, deploy, then forward (in-memory Gnosis chain)"""
    try:
        recipient = to_address(recipient)
        nonce = _salt_arg(nonce)
        local = deploy_local_stack(SIM_DEPLOYER)
        chain, factory = local.chain, local.factory
        owner = Msg(SIM_DEPLOYER)

        token = local.bridges.mediator.deploy_bridged_token(owner, "Dai Stablecoin", "DAI",
                                                            SIM_FOREIGN_TOKEN)
        predicted = factory.predict_address(recipient, nonce)

        if amount:
            local.bridges.mediator.handle_bridged_tokens(owner, token.address, SIM_HOLDER, amount)
            token.transfer(Msg(SIM_HOLDER), predicted, amount)
        if native:
            chain.credit(SIM_HOLDER, native)
            chain.call(SIM_HOLDER, predicted, value=native)

        deployed = factory.deploy(Msg(SIM_HOLDER), recipient, nonce)
        forwarder = chain.get_contract(deployed)
        if amount:
            forwarder.forward_token(Msg(SIM_HOLDER), token.address)
        if native:
            forwarder.forward_native(Msg(SIM_HOLDER))
    except ForwarderError as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        sys.exit(1)

    console.print(Panel.fit(
        f"predicted  {predicted}\n"
        f"deployed   {deployed}\n"
        f"match      {predicted == deployed}\n"
        f"token      {token.address}\n"
        f"left       {forwarder.get_balance(token.address)} token / "
        f"{forwarder.get_balance()} native",
        title=f"Forwarder for {recipient}",
    ))

    table = Table(title="Events")
    table.add_column("#", style="yellow")
    table.add_column("Contract", style="cyan")
    table.add_column("Event", style="green")
    table.add_column("Args")
    for log in chain.logs:
        args = ", ".join(f"{k}={v}" for k, v in log.args.items())
        table.add_row(str(log.log_index), log.address, log.event, args)
    console.print(table)


def _salt_arg(value):
    """CLI nonce: decimal or 0x-prefixed hex."""
    if value.startswith(("0x", "0X")):
        return normalize_salt(value)
    if not value.isdigit():
        raise click.BadParameter(f"nonce must be decimal or 0x-hex, got {value!r}")
    return int(value)


if __name__ == "__main__":
    cli()
