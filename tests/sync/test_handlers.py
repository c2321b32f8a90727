"""Tests for category handlers."""

import json
from pathlib import Path

import pytest

from confsync.client.editor import HostToolError
from confsync.core.types import LocationKind
from confsync.sync.handlers import (
    MARKER_FILE,
    DirectorySyncHandler,
    ExtensionData,
    ExtensionsHandler,
    FileSyncHandler,
    KindPaths,
    Marker,
    normalize_extensions,
    stable_dumps,
)

CURRENT = LocationKind.CURRENT
LAST = LocationKind.LAST_IMPORTED
STORED = LocationKind.STORED


class TestKindPaths:
    """Tests for KindPaths."""

    def test_nested(self, tmp_path: Path) -> None:
        """Flat under current, nested under the other kinds."""
        paths = KindPaths.nested("settings", "settings.json")
        assert paths.resolve(CURRENT, tmp_path) == tmp_path / "settings.json"
        assert paths.resolve(LAST, tmp_path) == tmp_path / "settings" / "settings.json"
        assert paths.resolve(STORED, tmp_path) == tmp_path / "settings" / "settings.json"

    def test_flat(self, tmp_path: Path) -> None:
        paths = KindPaths.nested(None, "snippets")
        assert paths.resolve(STORED, tmp_path) == tmp_path / "snippets"


class TestFileSyncHandler:
    """Tests for FileSyncHandler."""

    @pytest.fixture
    def handler(self) -> FileSyncHandler:
        return FileSyncHandler("settings", KindPaths.nested("settings", "settings.json"))

    @pytest.mark.asyncio
    async def test_fingerprint_missing_is_empty(self, handler: FileSyncHandler, tmp_path: Path) -> None:
        partial = await handler.fingerprint(CURRENT, tmp_path)
        assert partial.key == "settings"
        assert partial.is_empty

    @pytest.mark.asyncio
    async def test_fingerprint_same_across_kinds(self, handler: FileSyncHandler, tmp_path: Path) -> None:
        """Identical content hashes identically in flat and nested layouts."""
        current = tmp_path / "current"
        stored = tmp_path / "stored"
        (stored / "settings").mkdir(parents=True)
        current.mkdir()
        (current / "settings.json").write_text('{"a": 1}')
        (stored / "settings" / "settings.json").write_text('{"a": 1}')

        assert await handler.fingerprint(CURRENT, current) == await handler.fingerprint(STORED, stored)

    @pytest.mark.asyncio
    async def test_exists(self, handler: FileSyncHandler, tmp_path: Path) -> None:
        """Current always exists; other kinds need the file or a marker."""
        assert await handler.exists(CURRENT, tmp_path)
        assert not await handler.exists(STORED, tmp_path)

        (tmp_path / "settings").mkdir()
        Marker.create(tmp_path / "settings")
        assert await handler.exists(STORED, tmp_path)

    @pytest.mark.asyncio
    async def test_copy_to_stored(self, handler: FileSyncHandler, tmp_path: Path) -> None:
        """Copy writes the payload and no marker."""
        current = tmp_path / "current"
        current.mkdir()
        (current / "settings.json").write_text("{}")
        stored = tmp_path / "stored"

        await handler.copy(CURRENT, current, STORED, stored)

        assert (stored / "settings" / "settings.json").read_text() == "{}"
        assert not (stored / "settings" / MARKER_FILE).exists()

    @pytest.mark.asyncio
    async def test_copy_absent_payload_writes_marker(self, handler: FileSyncHandler, tmp_path: Path) -> None:
        """Copying a missing current file leaves only a marker."""
        current = tmp_path / "current"
        current.mkdir()
        stored = tmp_path / "stored"
        (stored / "settings").mkdir(parents=True)
        (stored / "settings" / "settings.json").write_text("old")

        await handler.copy(CURRENT, current, STORED, stored)

        assert not (stored / "settings" / "settings.json").exists()
        assert (stored / "settings" / MARKER_FILE).read_text() == "\n"

    @pytest.mark.asyncio
    async def test_copy_removes_stale_marker(self, handler: FileSyncHandler, tmp_path: Path) -> None:
        current = tmp_path / "current"
        current.mkdir()
        (current / "settings.json").write_text("{}")
        stored = tmp_path / "stored"
        (stored / "settings").mkdir(parents=True)
        Marker.create(stored / "settings")

        await handler.copy(CURRENT, current, STORED, stored)

        assert not Marker.exists(stored / "settings")

    @pytest.mark.asyncio
    async def test_copy_from_missing_source_is_noop(self, handler: FileSyncHandler, tmp_path: Path) -> None:
        """Without file or marker in the source, the destination is untouched."""
        current = tmp_path / "current"
        current.mkdir()
        (current / "settings.json").write_text("keep")

        await handler.copy(STORED, tmp_path / "stored", CURRENT, current)

        assert (current / "settings.json").read_text() == "keep"

    @pytest.mark.asyncio
    async def test_copy_marker_only_source_deletes_current(self, handler: FileSyncHandler, tmp_path: Path) -> None:
        """A marker-only source removes the current file and writes no marker."""
        current = tmp_path / "current"
        current.mkdir()
        (current / "settings.json").write_text("local")
        stored = tmp_path / "stored"
        (stored / "settings").mkdir(parents=True)
        Marker.create(stored / "settings")

        await handler.copy(STORED, stored, CURRENT, current)

        assert not (current / "settings.json").exists()
        assert not (current / MARKER_FILE).exists()


class TestDirectorySyncHandler:
    """Tests for DirectorySyncHandler."""

    @pytest.fixture
    def handler(self) -> DirectorySyncHandler:
        return DirectorySyncHandler("snippets", KindPaths.nested(None, "snippets"))

    @pytest.mark.asyncio
    async def test_copy_to_stored_adds_marker(self, handler: DirectorySyncHandler, tmp_path: Path) -> None:
        current = tmp_path / "current"
        (current / "snippets" / "sub").mkdir(parents=True)
        (current / "snippets" / "python.json").write_text("{}")
        (current / "snippets" / "sub" / "go.json").write_text("[]")
        stored = tmp_path / "stored"

        await handler.copy(CURRENT, current, STORED, stored)

        assert (stored / "snippets" / "python.json").read_text() == "{}"
        assert (stored / "snippets" / "sub" / "go.json").read_text() == "[]"
        assert (stored / "snippets" / MARKER_FILE).exists()
        assert await handler.fingerprint(CURRENT, current) == await handler.fingerprint(STORED, stored)

    @pytest.mark.asyncio
    async def test_copy_replaces_destination(self, handler: DirectorySyncHandler, tmp_path: Path) -> None:
        """Files missing from the source disappear from the destination."""
        current = tmp_path / "current"
        (current / "snippets").mkdir(parents=True)
        (current / "snippets" / "stale.json").write_text("old")
        stored = tmp_path / "stored"
        (stored / "snippets").mkdir(parents=True)
        (stored / "snippets" / "new.json").write_text("new")
        Marker.create(stored / "snippets")

        await handler.copy(STORED, stored, CURRENT, current)

        assert sorted(p.name for p in (current / "snippets").iterdir()) == ["new.json"]

    @pytest.mark.asyncio
    async def test_missing_source_creates_empty_marked_dir(
        self, handler: DirectorySyncHandler, tmp_path: Path
    ) -> None:
        current = tmp_path / "current"
        current.mkdir()
        stored = tmp_path / "stored"

        await handler.copy(CURRENT, current, STORED, stored)

        assert [p.name for p in (stored / "snippets").iterdir()] == [MARKER_FILE]
        # An absent directory counts as empty, like the marker-only copy
        assert await handler.fingerprint(STORED, stored) == await handler.fingerprint(CURRENT, current)
        assert await handler.fingerprint(LAST, tmp_path / "nowhere") == await handler.fingerprint(CURRENT, current)

    @pytest.mark.asyncio
    async def test_missing_stored_is_noop(self, handler: DirectorySyncHandler, tmp_path: Path) -> None:
        current = tmp_path / "current"
        (current / "snippets").mkdir(parents=True)
        (current / "snippets" / "a.json").write_text("{}")

        await handler.copy(STORED, tmp_path / "stored", CURRENT, current)

        assert (current / "snippets" / "a.json").exists()

    @pytest.mark.asyncio
    async def test_absent_on_both_sides_compares_equal(self, handler: DirectorySyncHandler, tmp_path: Path) -> None:
        current = tmp_path / "current"
        current.mkdir()
        stored = tmp_path / "stored"
        stored.mkdir()

        await handler.copy(STORED, stored, CURRENT, current)

        assert not (current / "snippets").exists()
        assert await handler.fingerprint(CURRENT, current) == await handler.fingerprint(STORED, stored)


class TestExtensionHelpers:
    """Tests for extension records."""

    def test_normalize_sorts_and_enables(self) -> None:
        records = normalize_extensions([ExtensionData("b.two", False), ExtensionData("a.one", True)])
        assert records == [ExtensionData("a.one", True), ExtensionData("b.two", True)]

    def test_stable_dumps(self) -> None:
        assert stable_dumps([ExtensionData("a.one", True)]) == '[{"enabled":true,"name":"a.one"}]'


class TestExtensionsHandler:
    """Tests for ExtensionsHandler."""

    @pytest.fixture
    def paths(self) -> KindPaths:
        return KindPaths.nested("extensions", "extensions.json")

    @pytest.mark.asyncio
    async def test_current_excludes_builtin(self, host, paths: KindPaths, tmp_path: Path) -> None:
        host.installed = {"b.two", "a.one"}
        host.builtin = {"vscode.git"}
        handler = ExtensionsHandler("extensions", paths, host)

        data = await handler.data(CURRENT, tmp_path)

        assert [r.name for r in data] == ["a.one", "b.two"]

    @pytest.mark.asyncio
    async def test_export_writes_sorted_json(self, host, paths: KindPaths, tmp_path: Path) -> None:
        host.installed = {"b.two", "a.one"}
        handler = ExtensionsHandler("extensions", paths, host)
        stored = tmp_path / "stored"

        await handler.copy(CURRENT, tmp_path, STORED, stored)

        raw = json.loads((stored / "extensions" / "extensions.json").read_text())
        assert raw == [{"enabled": True, "name": "a.one"}, {"enabled": True, "name": "b.two"}]
        assert await handler.fingerprint(STORED, stored) == await handler.fingerprint(CURRENT, tmp_path)

    @pytest.mark.asyncio
    async def test_import_converges(self, host, paths: KindPaths, tmp_path: Path) -> None:
        """Installs missing and uninstalls surplus extensions."""
        host.installed = {"a.one", "b.two"}
        handler = ExtensionsHandler("extensions", paths, host)
        stored = tmp_path / "stored"
        (stored / "extensions").mkdir(parents=True)
        (stored / "extensions" / "extensions.json").write_text(
            json.dumps([{"name": "c.three", "enabled": False}, {"name": "b.two", "enabled": True}])
        )

        await handler.copy(STORED, stored, CURRENT, tmp_path)

        assert host.installed == {"b.two", "c.three"}
        assert host.calls == [("install", "c.three"), ("uninstall", "a.one")]

    @pytest.mark.asyncio
    async def test_import_marker_only_uninstalls_all(self, host, paths: KindPaths, tmp_path: Path) -> None:
        host.installed = {"a.one"}
        handler = ExtensionsHandler("extensions", paths, host)
        stored = tmp_path / "stored"
        (stored / "extensions").mkdir(parents=True)
        Marker.create(stored / "extensions")

        await handler.copy(STORED, stored, CURRENT, tmp_path)

        assert host.installed == set()
        assert await handler.fingerprint(CURRENT, tmp_path) == await handler.fingerprint(STORED, stored)

    @pytest.mark.asyncio
    async def test_missing_stored_fingerprint_empty(self, host, paths: KindPaths, tmp_path: Path) -> None:
        handler = ExtensionsHandler("extensions", paths, host)
        assert (await handler.fingerprint(STORED, tmp_path)).is_empty
        assert not (await handler.fingerprint(CURRENT, tmp_path)).is_empty

    @pytest.mark.asyncio
    async def test_install_failure_stops_remaining_steps(self, host, paths: KindPaths, tmp_path: Path) -> None:
        """Steps already run stay applied; later ones are not attempted."""
        host.installed = {"z.old"}
        install = host.install_extension

        async def _install(name: str) -> None:
            if name == "c.three":
                raise HostToolError(None, "Command code --install-extension c.three failed: offline.")
            await install(name)

        host.install_extension = _install
        handler = ExtensionsHandler("extensions", paths, host)
        stored = tmp_path / "stored"
        (stored / "extensions").mkdir(parents=True)
        (stored / "extensions" / "extensions.json").write_text(
            json.dumps([{"name": n, "enabled": True} for n in ("b.two", "c.three", "d.four")])
        )

        with pytest.raises(HostToolError):
            await handler.copy(STORED, stored, CURRENT, tmp_path)

        assert host.calls == [("install", "b.two")]
        assert host.installed == {"z.old", "b.two"}

    @pytest.mark.asyncio
    @pytest.mark.parametrize("content", ['["a.one"]', '{"name": "a.one"}'])
    async def test_malformed_list_names_file(self, host, paths: KindPaths, tmp_path: Path, content: str) -> None:
        handler = ExtensionsHandler("extensions", paths, host)
        (tmp_path / "extensions").mkdir()
        (tmp_path / "extensions" / "extensions.json").write_text(content)

        with pytest.raises(ValueError, match="Malformed extension list .*extensions.json"):
            await handler.fingerprint(STORED, tmp_path)
