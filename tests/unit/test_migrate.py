from pathlib import Path

import pytest

from authkeeper.infrastructure.db.migrate import list_migrations, pending


def test_list_migrations_sorted(tmp_path: Path):
    for name in ("0002_b.sql", "0001_a.sql", "notes.txt"):
        (tmp_path / name).write_text("SELECT 1;")
    assert [p.name for p in list_migrations(tmp_path)] == ["0001_a.sql", "0002_b.sql"]


def test_pending_skips_applied(tmp_path: Path):
    paths = [tmp_path / "0001_a.sql", tmp_path / "0002_b.sql"]
    assert pending(paths, {"0001_a"}) == [paths[1]]


def test_missing_directory_raises(tmp_path: Path):
    with pytest.raises(FileNotFoundError):
        list_migrations(tmp_path / "nope")


def test_repository_ships_the_users_migration():
    names = [p.name for p in list_migrations(Path(__file__).parents[2] / "migrations")]
    assert "0001_create_users.sql" in names
