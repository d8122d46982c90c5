"""
Configuration management commands for the tagprune CLI.

Commands:
- show: Display current configuration with all settings
- init: Create a default configuration file
- path: Show the path to the configuration file
"""

import yaml
import typer
from rich import print
from tagprune.utils import config as config_module
from tagprune.utils.config import get_config, init_config_file

config_app = typer.Typer(no_args_is_help=True)

@config_app.command("show")
def config_show() -> None:
    """
    Show current configuration.

    Prints the effective settings (defaults, config file and TAGPRUNE_*
    environment overrides combined) as YAML.
    """
    config = get_config()
    print("[cyan]Current configuration:[/cyan]\n")
    print(yaml.dump(config.to_dict(), default_flow_style=False, sort_keys=False))

@config_app.command("init")
def config_init(force: bool = typer.Option(False, "--force", "-f", help="Overwrite existing config")) -> None:
    """
    Create default config file.

    Refuses to overwrite an existing file unless --force is given.

    :param force: If True, overwrite existing config file.
    """
    path = config_module.CONFIG_FILE
    if not init_config_file(path, force=force):
        print(f"[yellow]Config already exists:[/yellow] {path}")
        print("Use --force to overwrite")
        return

    print(f"[green]✓ Config created:[/green] {path}")

@config_app.command("path")
def config_path() -> None:
    """
    Show config file path.
    """
    print(config_module.CONFIG_FILE)
