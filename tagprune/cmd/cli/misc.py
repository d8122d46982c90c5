"""
Miscellaneous helpers shared by the tagprune CLI commands.

Key utilities:
- git_client: Build a GitClient from config and CLI overrides
- tag_rules: Build classification rules from config
- print_numbered: Print a 1-based numbered list
"""

import typer
from rich import print
from rich.markup import escape
from typing import Iterable, Optional

from tagprune.classify import TagRules
from tagprune.git import GitClient
from tagprune.utils.config import Config

def git_client(config: Config, remote: Optional[str] = None) -> GitClient:
    """
    Construct the git client for the configured repository.

    :param config: Loaded configuration.
    :param remote: Remote name overriding config.git.remote.
    :return: GitClient instance.
    """
    return GitClient(
        binary=config.git.binary,
        remote=remote or config.git.remote,
        cwd=config.git.cwd,
    )

def tag_rules(config: Config) -> TagRules:
    return TagRules(
        protected_prefixes=tuple(config.prune.protected_prefixes),
        delete_prefix=config.prune.delete_prefix,
    )

def resolve_concurrency(value: Optional[int], config: Config) -> int:
    """
    Pick the concurrency from the CLI flag or config and validate it.

    :raises typer.BadParameter: If the resulting value is below 1.
    """
    concurrency = value if value is not None else config.prune.concurrency
    if concurrency < 1:
        raise typer.BadParameter(f"Concurrency must be at least 1 (got {concurrency})")
    return concurrency

def print_numbered(items: Iterable[str]) -> None:
    for i, item in enumerate(items, 1):
        print(f"{i}. {escape(item)}")
