import os

import pytest

import database
from library import Library


@pytest.fixture
def db_file(tmp_path, request):
    # A unique backing file per test
    return str(tmp_path / "data" / f"books_{request.node.name}.json")


@pytest.fixture
def lib(db_file):
    # Start from an empty catalog; seeding is exercised explicitly in tests
    lib = Library(db_file=db_file, seed=False)
    yield lib
    lib.close()
    if os.path.exists(db_file):
        os.remove(db_file)


@pytest.fixture
def cli_db(db_file, monkeypatch):
    """Point the CLI's module-level backing file at a per-test location."""
    from main import LibraryManager

    monkeypatch.setattr(database, "DATABASE_FILE", db_file)
    monkeypatch.setattr("library.settings.seed_sample_data", False)
    # Output mode is stored in the environment; keep it from leaking between tests
    monkeypatch.setenv("LIB_CLI_OUTPUT", "plain")
    LibraryManager.reset()
    yield db_file
    LibraryManager.reset()
