"""CLI entry point for aumos-asset-access.

Invoked as::

    asset-access [OPTIONS] COMMAND [ARGS]...

or during development::

    python -m aumos_asset_access.cli.main

Commands
--------
- check            Evaluate one (role, action, resource) request
- scope            Show the row scope a role gets on a resource
- summary          Show the capability summary of a role
- matrix show      Display the policy matrix
- matrix validate  Validate a policy matrix YAML file
- matrix init      Write the built-in policy matrix to a YAML file
- version          Show version information
"""
from __future__ import annotations

import sys
from pathlib import Path

import click
import yaml
from rich import box
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from aumos_asset_access.config import AccessConfig, ConfigLoader
from aumos_asset_access.identity import Principal, Record
from aumos_asset_access.policy.enums import Action, Resource, Role
from aumos_asset_access.policy.matrix import PolicyMatrix

console = Console()
err_console = Console(stderr=True)

_ROLE_CHOICE = click.Choice([r.value for r in Role])
_ACTION_CHOICE = click.Choice([a.value for a in Action])
_RESOURCE_CHOICE = click.Choice([r.value for r in Resource])

_DEFAULT_CONFIG = Path("access.yaml")

_policy_option = click.option(
    "--policy",
    "-p",
    "policy_file",
    default=None,
    type=click.Path(exists=True),
    help="Policy matrix YAML file. Overrides the policy selected by the config.",
)

_config_option = click.option(
    "--config",
    "-c",
    "config_path",
    default=str(_DEFAULT_CONFIG),
    type=click.Path(),
    help="Path to access.yaml.",
)


def _load_config(config_path: str) -> tuple[AccessConfig, Path]:
    loader = ConfigLoader()
    cfg_path = Path(config_path)
    try:
        config = loader.load(cfg_path) if cfg_path.exists() else loader.defaults()
    except (ValueError, yaml.YAMLError) as exc:
        err_console.print(f"[red]Invalid config:[/red] {escape(str(exc))}")
        sys.exit(2)
    config.configure_logging()
    return config, cfg_path.parent


def _load_matrix(policy_file: str | None, config_path: str) -> PolicyMatrix:
    from aumos_asset_access.policy.loader import PolicyConfigError, PolicyLoader

    config, base_dir = _load_config(config_path)
    try:
        if policy_file is not None:
            return PolicyLoader(strict=config.strict).load(policy_file)
        return config.build_matrix(base_dir=base_dir)
    except (PolicyConfigError, FileNotFoundError) as exc:
        err_console.print(f"[red]Invalid policy:[/red] {escape(str(exc))}")
        sys.exit(2)


def _principal(role: str, client_id: str | None) -> Principal:
    parsed = Role(role)
    return Principal(
        id="cli",
        role=parsed,
        client_id=client_id,
        verified=parsed is not Role.UNVERIFIED,
    )


# ---------------------------------------------------------------------------
# Root command group
# ---------------------------------------------------------------------------


@click.group()
@click.version_option(package_name="aumos-asset-access")
def cli() -> None:
    """Asset Access CLI: inspect and test the license/equipment access policy."""


# ---------------------------------------------------------------------------
# version
# ---------------------------------------------------------------------------


@cli.command(name="version")
def version_command() -> None:
    """Show detailed version information."""
    from aumos_asset_access import __version__

    console.print(
        Panel(
            f"[bold]aumos-asset-access[/bold]  v[cyan]{__version__}[/cyan]\n"
            "Role and client-scoped access policy for license and equipment tracking.",
            title="Version",
            border_style="blue",
        )
    )


# ---------------------------------------------------------------------------
# check
# ---------------------------------------------------------------------------


@cli.command(name="check")
@click.option("--role", "-r", required=True, type=_ROLE_CHOICE, help="Role of the principal.")
@click.option("--action", "-a", "action_name", required=True, type=_ACTION_CHOICE, help="Requested action.")
@click.option("--resource", "-R", "resource_name", required=True, type=_RESOURCE_CHOICE, help="Target resource.")
@click.option("--client-id", default=None, help="Client the principal belongs to.")
@click.option(
    "--record-client-id",
    default=None,
    help="Owning client of a specific record (instance-level check).",
)
@_policy_option
@_config_option
def check_command(
    role: str,
    action_name: str,
    resource_name: str,
    client_id: str | None,
    record_client_id: str | None,
    policy_file: str | None,
    config_path: str,
) -> None:
    """Evaluate whether a role may perform an action on a resource."""
    from aumos_asset_access.evaluator import check

    matrix = _load_matrix(policy_file, config_path)
    instance = Record(client_id=record_client_id) if record_client_id else None
    decision = check(
        _principal(role, client_id),
        Action(action_name),
        Resource(resource_name),
        instance,
        matrix,
    )

    status_str = "[green]ALLOWED[/green]" if decision.allowed else "[red]DENIED[/red]"
    console.print(Panel(status_str, title="Access Check Result", border_style="blue"))
    console.print(f"  Reason: {decision.reason}")
    if decision.denial is not None:
        console.print(f"  Denial: [bold red]{decision.denial.value}[/bold red]")

    sys.exit(0 if decision.allowed else 1)


# ---------------------------------------------------------------------------
# scope
# ---------------------------------------------------------------------------


@cli.command(name="scope")
@click.option("--role", "-r", required=True, type=_ROLE_CHOICE, help="Role of the principal.")
@click.option("--resource", "-R", "resource_name", required=True, type=_RESOURCE_CHOICE, help="Target resource.")
@click.option("--action", "-a", "action_name", default="read", show_default=True, type=_ACTION_CHOICE)
@click.option("--client-id", default=None, help="Client the principal belongs to.")
@_policy_option
@_config_option
def scope_command(
    role: str,
    resource_name: str,
    action_name: str,
    client_id: str | None,
    policy_file: str | None,
    config_path: str,
) -> None:
    """Show which rows queries on a resource would return for a role."""
    from aumos_asset_access.evaluator import scope_for
    from aumos_asset_access.scoping import Denied, RestrictedToClient, Unrestricted

    matrix = _load_matrix(policy_file, config_path)
    decision = scope_for(
        _principal(role, client_id),
        Resource(resource_name),
        Action(action_name),
        matrix,
    )

    match decision:
        case Unrestricted():
            console.print("[green]UNRESTRICTED[/green]  no client filter")
        case RestrictedToClient(client_id=scoped):
            console.print(f"[yellow]RESTRICTED[/yellow]  client_id = [bold]{escape(scoped)}[/bold]")
        case Denied(kind=kind, detail=detail):
            console.print(f"[red]DENIED[/red]  ({kind.value}: {detail}) - queries return no rows")
            sys.exit(1)


# ---------------------------------------------------------------------------
# summary
# ---------------------------------------------------------------------------


@cli.command(name="summary")
@click.option("--role", "-r", required=True, type=_ROLE_CHOICE, help="Role of the principal.")
@click.option("--client-id", default=None, help="Client the principal belongs to.")
@_policy_option
@_config_option
def summary_command(
    role: str,
    client_id: str | None,
    policy_file: str | None,
    config_path: str,
) -> None:
    """Show the UI capability summary of a role."""
    from aumos_asset_access.evaluator import permissions_summary

    summary = permissions_summary(_principal(role, client_id), _load_matrix(policy_file, config_path))

    table = Table(title=f"Capabilities: {role}", box=box.SIMPLE)
    table.add_column("Capability", style="cyan")
    table.add_column("Value")
    for key, value in summary.to_dict().items():
        if isinstance(value, bool):
            shown = "[green]yes[/green]" if value else "[red]no[/red]"
        else:
            shown = "-" if value is None else str(value)
        table.add_row(key, shown)
    console.print(table)


# ---------------------------------------------------------------------------
# matrix
# ---------------------------------------------------------------------------


@cli.group(name="matrix")
def matrix_group() -> None:
    """Policy matrix commands."""


@matrix_group.command(name="show")
@click.option("--role", "-r", default=None, type=_ROLE_CHOICE, help="Only show this role.")
@_policy_option
@_config_option
def matrix_show_command(role: str | None, policy_file: str | None, config_path: str) -> None:
    """Display the policy matrix as a table."""
    matrix = _load_matrix(policy_file, config_path)
    roles = [Role(role)] if role else list(Role)

    table = Table(title="Policy Matrix", box=box.SIMPLE)
    table.add_column("Role", style="cyan")
    table.add_column("Resource", style="magenta")
    table.add_column("Actions")
    table.add_column("Scope")
    for current_role in roles:
        for rule in matrix.rules_for_role(current_role):
            actions = [a.value for a in Action if a in rule.allowed_actions]
            table.add_row(
                rule.role.value,
                rule.resource.value,
                ", ".join(actions) if actions else "[dim]none[/dim]",
                rule.scope.value,
            )
    console.print(table)


@matrix_group.command(name="validate")
@click.option(
    "--file",
    "-f",
    "matrix_file",
    required=True,
    type=click.Path(exists=True),
    help="Path to the policy matrix YAML file.",
)
@click.option("--strict", is_flag=True, default=False, help="Reject unknown keys.")
def matrix_validate_command(matrix_file: str, strict: bool) -> None:
    """Validate a policy matrix YAML file."""
    from aumos_asset_access.policy.loader import PolicyConfigError, PolicyLoader

    try:
        matrix = PolicyLoader(strict=strict).load(matrix_file)
    except PolicyConfigError as exc:
        console.print(Panel(f"[red]INVALID[/red]\n{escape(str(exc))}", title="Matrix Validation", border_style="red"))
        sys.exit(1)

    console.print(
        Panel(
            f"[green]VALID[/green]  {len(matrix)} rules, every role/resource pair covered",
            title="Matrix Validation",
            border_style="green",
        )
    )


@matrix_group.command(name="init")
@click.option(
    "--output",
    "-o",
    "output_file",
    default="policy.yaml",
    show_default=True,
    type=click.Path(),
    help="Output policy matrix file path.",
)
def matrix_init_command(output_file: str) -> None:
    """Write the built-in policy matrix to a YAML file."""
    from aumos_asset_access.policy.defaults import default_matrix
    from aumos_asset_access.policy.loader import PolicyLoader

    output_path = PolicyLoader.dump(default_matrix(), Path(output_file))
    console.print(f"[green]Written[/green] policy matrix: [bold]{escape(str(output_path))}[/bold]")


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------

if __name__ == "__main__":
    cli()
