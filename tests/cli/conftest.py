"""Shared fixtures for CLI tests."""

from pathlib import Path
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from relaychat.llm.local import LocalBackend


@pytest.fixture
def tmp_config_path(tmp_path: Path) -> Path:
    """Provide a temporary config file path."""
    return tmp_path / "relaychat.yaml"


@pytest.fixture
def mock_local_backend():
    """Replace the local backend used by one-shot commands with a ready double."""
    backend = MagicMock(spec=LocalBackend)
    backend.ready = True
    backend.initialize = AsyncMock(return_value=True)
    backend.close = AsyncMock()
    backend.complete_json = AsyncMock(return_value={"score": 2})
    with patch("relaychat.cli.inspect_cmd.LocalBackend", return_value=backend):
        yield backend
