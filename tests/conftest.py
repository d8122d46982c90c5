"""
Pytest configuration and shared fixtures for tagprune tests.

This module provides:
- Custom markers for test categorization
- Shared fixtures for test isolation
- Automatic git availability detection
- An in-memory fake git client
"""

import shutil
import tempfile
from pathlib import Path
from typing import Dict, List, Optional, Set

import pytest

from tagprune.git import GitClient, GitCommandError


# =============================================================================
# Pytest Hooks and Configuration
# =============================================================================

def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers", "unit: Unit tests (fast, no external dependencies)"
    )
    config.addinivalue_line(
        "markers", "integration: Integration tests (require the git binary)"
    )


def pytest_collection_modifyitems(config, items):
    """Skip integration tests if git is not available."""
    git_available = shutil.which("git") is not None
    skip_integration = pytest.mark.skip(reason="git not available")

    for item in items:
        if "integration" in item.keywords and not git_available:
            item.add_marker(skip_integration)


# =============================================================================
# Directory and Path Fixtures
# =============================================================================

@pytest.fixture
def temp_dir():
    """Create a temporary directory for test files.

    Yields:
        Path: Path to temporary directory, cleaned up after test.
    """
    tmpdir = tempfile.mkdtemp(prefix="tagprune_test_")
    yield Path(tmpdir)
    shutil.rmtree(tmpdir, ignore_errors=True)


@pytest.fixture
def temp_config_dir(temp_dir, monkeypatch):
    """Point the config file at a temporary directory.

    Yields:
        Path: Path to .tagprune config directory
    """
    config_dir = temp_dir / ".tagprune"
    config_dir.mkdir(parents=True)

    monkeypatch.setenv("HOME", str(temp_dir))
    monkeypatch.setattr("tagprune.utils.config.CONFIG_DIR", config_dir)
    monkeypatch.setattr("tagprune.utils.config.CONFIG_FILE", config_dir / "config.yaml")
    for var in ("TAGPRUNE_LOG_LEVEL", "TAGPRUNE_LOG_FILE", "TAGPRUNE_GIT",
                "TAGPRUNE_REMOTE", "TAGPRUNE_REPO", "TAGPRUNE_CONCURRENCY",
                "TAGPRUNE_PROTECTED_PREFIXES", "TAGPRUNE_DELETE_PREFIX", "TAGPRUNE_CONFIRM"):
        monkeypatch.delenv(var, raising=False)

    yield config_dir


# =============================================================================
# Configuration Fixtures
# =============================================================================

@pytest.fixture
def default_config():
    """Get a fresh default config instance."""
    from tagprune.utils.config import Config
    return Config()


@pytest.fixture
def config_file(temp_config_dir):
    """Create a test config file.

    Returns:
        Path: Path to created config file
    """
    config_path = temp_config_dir / "config.yaml"
    config_content = """
logging:
  level: DEBUG
  verbose: true

git:
  remote: upstream

prune:
  concurrency: 8
  protected_prefixes:
    - v1
    - v2

unknown_section:
  foo: bar
"""
    config_path.write_text(config_content)
    return config_path


# =============================================================================
# Fake git
# =============================================================================

class FakeGit(GitClient):
    """In-memory stand-in for GitClient.

    remote_tags / local_tags hold the tag state; tags in fail_remote make the
    remote delete fail with the given stderr.
    """

    def __init__(self,
                 tags: List[str] = (),
                 remote_tags: Optional[Set[str]] = None,
                 fail_remote: Optional[Dict[str, str]] = None,
                 fetch_error: Optional[str] = None):
        super().__init__(binary="git", remote="origin")
        self.local_tags: List[str] = list(tags)
        self.remote_tags: Set[str] = set(tags) if remote_tags is None else set(remote_tags)
        self.fail_remote = fail_remote or {}
        self.fetch_error = fetch_error
        self.calls: List[tuple] = []

    async def run(self, *args: str) -> str:
        self.calls.append(args)
        if args[:1] == ("fetch",):
            if self.fetch_error:
                raise GitCommandError(args, 1, self.fetch_error)
            return ""
        if args == ("tag",):
            return "\n".join(self.local_tags)
        if args[:1] == ("push",):
            tag = args[-1]
            if tag in self.fail_remote:
                raise GitCommandError(args, 1, self.fail_remote[tag])
            if tag not in self.remote_tags:
                raise GitCommandError(
                    args, 1, f"error: unable to delete '{tag}': remote ref does not exist"
                )
            self.remote_tags.discard(tag)
            return ""
        if args[:2] == ("tag", "-d"):
            tag = args[2]
            if tag not in self.local_tags:
                raise GitCommandError(args, 1, f"error: tag '{tag}' not found.")
            self.local_tags.remove(tag)
            return f"Deleted tag '{tag}'"
        raise AssertionError(f"unexpected git call: {args}")


@pytest.fixture
def fake_git():
    """Factory for FakeGit instances."""
    return FakeGit


@pytest.fixture(autouse=True)
def _logging_configured(monkeypatch):
    """Keep CLI invocations from installing handlers bound to captured streams."""
    monkeypatch.setattr("tagprune.utils.logging._CONFIGURED", True)
