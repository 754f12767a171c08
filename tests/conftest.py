"""Shared fixtures: a small models repository, on disk and in memory."""
from __future__ import annotations

from pathlib import Path
from typing import Dict

import pytest

from sample_repository import DictFetcher, repository_files


@pytest.fixture
def repo_files() -> Dict[str, str]:
    return repository_files()


@pytest.fixture
def memory_fetcher(repo_files) -> DictFetcher:
    return DictFetcher(repo_files)


@pytest.fixture
def local_repo(tmp_path: Path, repo_files) -> Path:
    """Write the sample repository under a temporary directory."""
    for relative, content in repo_files.items():
        target = tmp_path / relative
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(content, encoding="utf-8")
    return tmp_path
