"""Tests for PyScript manifest synchronization."""

import asyncio
import json
import os
from unittest.mock import patch

import pytest

from code_battles_build.manifest import (
    ManifestSynchronizer,
    build_manifest,
    is_eligible,
    list_sources,
    synchronize,
    write_document,
)
from code_battles_build.settings import PyScriptOptions
from code_battles_build.types import ConfigCorrupt, ConfigUnreadable, PersistFailure, ScanRootMissing, SyncResult

# =============================================================================
# Core
# =============================================================================


class TestIsEligible:
    def test_python_source(self):
        assert is_eligible("a.py")
        assert is_eligible("b/c.py")

    def test_stub_source(self):
        assert is_eligible("code_battles/api.pyi")

    def test_other_extensions(self):
        assert not is_eligible("notes.txt")
        assert not is_eligible("b/c.pyc")
        assert not is_eligible(".gitignore")

    def test_cache_directory_any_extension(self):
        assert not is_eligible("b/__pycache__/d.py")
        assert not is_eligible("__pycache__/d.cpython-312.pyc")

    def test_packed_output(self):
        assert not is_eligible("packed.py")
        assert not is_eligible("nested/packed.py")

    def test_windows_separators(self):
        assert not is_eligible("b\\__pycache__\\d.py")
        assert is_eligible("b\\c.py")


class TestBuildManifest:
    def test_scenario_a(self):
        """Sources are mapped from public URL to relative path, caches skipped."""
        manifest = build_manifest(["a.py", "b/c.py", "b/__pycache__/d.py"])
        assert manifest.files == {
            "/scripts/a.py": "./a.py",
            "/scripts/b/c.py": "./b/c.py",
        }

    def test_listing_order_does_not_matter(self):
        listing = ["z.py", "a.py", "m/n.py", "m/a.py"]
        forward = build_manifest(listing)
        backward = build_manifest(list(reversed(listing)))
        assert forward == backward
        assert list(forward.files) == list(backward.files)
        assert list(forward.files) == ["/scripts/a.py", "/scripts/m/a.py", "/scripts/m/n.py", "/scripts/z.py"]

    def test_normalizes_separators(self):
        manifest = build_manifest(["b\\c.py"])
        assert manifest.files == {"/scripts/b/c.py": "./b/c.py"}

    def test_no_options_omits_fields(self):
        assert build_manifest(["a.py"]).to_document() == {"files": {"/scripts/a.py": "./a.py"}}

    def test_packages_verbatim(self):
        """Order and duplicates are kept."""
        manifest = build_manifest([], PyScriptOptions(packages=["numpy", "pandas", "numpy"]))
        assert manifest.to_document() == {"files": {}, "packages": ["numpy", "pandas", "numpy"]}

    def test_explicit_empty_packages_written(self):
        manifest = build_manifest([], PyScriptOptions(packages=[]))
        assert manifest.to_document() == {"files": {}, "packages": []}

    def test_interpreter(self):
        manifest = build_manifest([], PyScriptOptions(interpreter="0.26.2"))
        assert manifest.to_document() == {"files": {}, "interpreter": "0.26.2"}

    def test_empty_interpreter_omitted(self):
        manifest = build_manifest([], PyScriptOptions(interpreter=""))
        assert manifest.to_document() == {"files": {}}


# =============================================================================
# Edge
# =============================================================================


def test_list_sources_missing_directory(tmp_path):
    with pytest.raises(ScanRootMissing):
        list_sources(tmp_path / "missing")


def test_list_sources_follows_symlinks(project, tmp_path, write):
    """Files inside linked directories are listed under the link name."""
    outside = tmp_path / "outside"
    write(outside / "battles.py")
    (project.scripts / "code_battles").symlink_to(outside, target_is_directory=True)
    write(project.scripts / "main.py")

    assert list_sources(project.scripts) == [
        os.path.join("code_battles", "battles.py"),
        "main.py",
    ]


def test_list_sources_link_cycle(project, write):
    """A link back to an ancestor is not walked again."""
    write(project.scripts / "main.py")
    write(project.scripts / "bots" / "rusher.py")
    (project.scripts / "bots" / "loop").symlink_to(project.scripts, target_is_directory=True)

    assert list_sources(project.scripts) == [os.path.join("bots", "rusher.py"), "main.py"]


def test_write_document_format(project):
    """4-space indentation, UTF-8, no trailing newline."""
    write_document(project.config, {"files": {"/scripts/á.py": "./á.py"}})
    assert project.config.read_text(encoding="utf-8") == (
        '{\n    "files": {\n        "/scripts/á.py": "./á.py"\n    }\n}'
    )


def test_write_document_failure_leaves_original(project):
    """A failed write keeps the previous manifest and no temp files."""
    project.config.write_text('{"files": {}}')

    with patch("code_battles_build.manifest.os.replace", side_effect=OSError("disk full")):
        with pytest.raises(PersistFailure):
            write_document(project.config, {"files": {"/scripts/a.py": "./a.py"}})

    assert project.config.read_text() == '{"files": {}}'
    assert sorted(p.name for p in project.public.iterdir()) == ["config.json", "scripts"]


# =============================================================================
# Synchronization
# =============================================================================


@pytest.mark.asyncio
async def test_scenario_a_written(project, write):
    write(project.scripts / "a.py")
    write(project.scripts / "b" / "c.py")
    write(project.scripts / "b" / "__pycache__" / "d.py")

    result = await synchronize(project.root)

    assert result is SyncResult.UPDATED
    assert json.loads(project.config.read_text()) == {
        "files": {
            "/scripts/a.py": "./a.py",
            "/scripts/b/c.py": "./b/c.py",
        }
    }


@pytest.mark.asyncio
async def test_scenario_b_empty_directory(project):
    """No manifest and no sources: manifest created with empty files."""
    result = await synchronize(project.root)

    assert result is SyncResult.UPDATED
    assert json.loads(project.config.read_text()) == {"files": {}}


@pytest.mark.asyncio
async def test_scenario_c_matching_manifest_not_written(project, write):
    """Key order inside files does not count as a change."""
    write(project.scripts / "a.py")
    write(project.scripts / "b.py")
    project.config.write_text(json.dumps({"files": {"/scripts/b.py": "./b.py", "/scripts/a.py": "./a.py"}}))

    with patch("code_battles_build.manifest.write_document") as mock_write:
        result = await synchronize(project.root)

    assert result is SyncResult.UNCHANGED
    mock_write.assert_not_called()


@pytest.mark.asyncio
async def test_scenario_d_corrupt_manifest(project, write):
    write(project.scripts / "a.py")
    project.config.write_text("{not json")

    with patch("code_battles_build.manifest.write_document") as mock_write:
        with pytest.raises(ConfigCorrupt):
            await synchronize(project.root)

    mock_write.assert_not_called()
    assert project.config.read_text() == "{not json"


@pytest.mark.asyncio
async def test_manifest_not_utf8(project, write):
    """Undecodable bytes are corruption too, the file is left alone."""
    write(project.scripts / "a.py")
    project.config.write_bytes(b'{"files": "\xff\xfe"}')

    with patch("code_battles_build.manifest.write_document") as mock_write:
        with pytest.raises(ConfigCorrupt):
            await synchronize(project.root)

    mock_write.assert_not_called()
    assert project.config.read_bytes() == b'{"files": "\xff\xfe"}'


@pytest.mark.asyncio
async def test_manifest_unreadable(project):
    project.config.mkdir()

    with pytest.raises(ConfigUnreadable):
        await synchronize(project.root)
    assert project.config.is_dir()


@pytest.mark.asyncio
async def test_scan_root_missing(tmp_path):
    (tmp_path / "public").mkdir()
    with pytest.raises(ScanRootMissing):
        await synchronize(tmp_path)
    assert not (tmp_path / "public" / "config.json").exists()


@pytest.mark.asyncio
async def test_idempotent(project, write):
    """The second pass writes nothing and the file is byte-identical."""
    write(project.scripts / "main.py")
    write(project.scripts / "bots" / "rusher.py")
    options = PyScriptOptions(packages=["numpy"], interpreter="0.26.2")
    synchronizer = ManifestSynchronizer(project)

    assert await synchronizer.synchronize(options) is SyncResult.UPDATED
    first = project.config.read_bytes()

    with patch("code_battles_build.manifest.write_document") as mock_write:
        assert await synchronizer.synchronize(options) is SyncResult.UNCHANGED
    mock_write.assert_not_called()
    assert project.config.read_bytes() == first


@pytest.mark.asyncio
async def test_packed_and_foreign_files_excluded(project, write):
    write(project.scripts / "main.py")
    write(project.scripts / "packed.py")
    write(project.scripts / "README.md")
    write(project.scripts / "__pycache__" / "main.cpython-312.pyc")

    await synchronize(project.root)

    assert json.loads(project.config.read_text())["files"] == {"/scripts/main.py": "./main.py"}


@pytest.mark.asyncio
async def test_new_source_updates_manifest(project, write):
    write(project.scripts / "main.py")
    synchronizer = ManifestSynchronizer(project)
    await synchronizer.synchronize()

    write(project.scripts / "bots" / "new_bot.py")
    assert await synchronizer.synchronize() is SyncResult.UPDATED
    assert "/scripts/bots/new_bot.py" in json.loads(project.config.read_text())["files"]


@pytest.mark.asyncio
async def test_packages_option_written(project):
    await synchronize(project.root, PyScriptOptions(packages=["numpy"]))
    assert json.loads(project.config.read_text())["packages"] == ["numpy"]


@pytest.mark.asyncio
async def test_omitted_packages_clear_previous_value(project):
    """The manifest is rebuilt from scratch, so omitting packages removes them."""
    await synchronize(project.root, PyScriptOptions(packages=["numpy"], interpreter="0.26.2"))

    result = await synchronize(project.root)

    assert result is SyncResult.UPDATED
    assert json.loads(project.config.read_text()) == {"files": {}}


@pytest.mark.asyncio
async def test_unknown_fields_dropped(project):
    project.config.write_text(json.dumps({"files": {}, "terminal": False}))

    assert await synchronize(project.root) is SyncResult.UPDATED
    assert json.loads(project.config.read_text()) == {"files": {}}


@pytest.mark.asyncio
async def test_concurrent_passes_serialized(project, write):
    """Overlapping passes run one after the other, only one of them writes."""
    write(project.scripts / "main.py")
    synchronizer = ManifestSynchronizer(project)

    results = await asyncio.gather(synchronizer.synchronize(), synchronizer.synchronize())

    assert sorted(r.value for r in results) == ["unchanged", "updated"]
