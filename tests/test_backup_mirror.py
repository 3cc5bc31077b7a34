import pytest

from backup.errors import MissingSourceDirectory
from backup.mirror import mirror_directory


class StubLogger:
    def __init__(self) -> None:
        self.events = []

    def info(self, event: str, **extra):  # pragma: no cover - recorder
        self.events.append(("info", event, extra))

    def event(self, *, event: str, phase: str, ok: bool, **extra):  # pragma: no cover - recorder
        self.events.append(("event", event, phase, ok, extra))


def test_mirror_merges_into_existing_destination(tmp_path):
    source = tmp_path / "backup" / "upload"
    (source / "2024").mkdir(parents=True)
    (source / "2024" / "deces-2024-m01.txt").write_text("new", encoding="utf-8")
    dest = tmp_path / "backend" / "upload"
    dest.mkdir(parents=True)
    (dest / "local.txt").write_text("keep", encoding="utf-8")

    summary = mirror_directory(source, dest, logger=StubLogger())

    assert (dest / "2024" / "deces-2024-m01.txt").read_text(encoding="utf-8") == "new"
    assert (dest / "local.txt").exists()
    assert summary.files == 2
    assert summary.replaced is False


def test_mirror_replace_clears_destination(tmp_path):
    source = tmp_path / "src"
    source.mkdir()
    (source / "a.txt").write_text("a", encoding="utf-8")
    dest = tmp_path / "dest"
    dest.mkdir()
    (dest / "stale.txt").write_text("old", encoding="utf-8")

    logger = StubLogger()
    summary = mirror_directory(source, dest, replace=True, logger=logger)

    assert sorted(path.name for path in dest.iterdir()) == ["a.txt"]
    assert summary.size_bytes == 1
    assert logger.events[0][1] == "mirror_cleared"


def test_mirror_missing_source_raises_before_touching_destination(tmp_path):
    dest = tmp_path / "dest"
    dest.mkdir()
    (dest / "keep.txt").write_text("x", encoding="utf-8")

    with pytest.raises(MissingSourceDirectory):
        mirror_directory(tmp_path / "absent", dest, replace=True, logger=StubLogger())

    assert (dest / "keep.txt").exists()
