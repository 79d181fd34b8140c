"""Tests for localflag.registry: discovery, refresh and snapshot queries."""

import logging
from pathlib import Path

import pytest

import localflag.registry as registry_mod
from localflag.config import ProjectConfig
from localflag.models import FlagPattern
from localflag.registry import FlagRegistry, RegistrySnapshot, is_excluded


def _write(path: Path, text: str) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")
    return path


@pytest.fixture
def project(tmp_path: Path) -> Path:
    _write(tmp_path / "src" / "flags.ts", "export const flags = { darkMode: false, maxItems: 10 } as const;\n")
    _write(tmp_path / "src" / "billing.flags.ts", "export const billing = defineFlags({ invoices: true });\n")
    _write(tmp_path / "node_modules" / "pkg" / "flags.ts", "export const vendored = { x: true };\n")
    _write(tmp_path / "src" / "app.ts", "export const notFlags = { y: true };\n")
    return tmp_path


# ---------------------------------------------------------------------------
# is_excluded()
# ---------------------------------------------------------------------------


class TestIsExcluded:
    def test_nested_node_modules(self) -> None:
        assert is_excluded("web/node_modules/pkg/flags.ts", ["**/node_modules/**"])

    def test_root_node_modules(self) -> None:
        assert is_excluded("node_modules/pkg/flags.ts", ["**/node_modules/**"])

    def test_not_excluded(self) -> None:
        assert not is_excluded("src/flags.ts", ["**/node_modules/**"])
        assert not is_excluded("src/flags.ts", [])

    def test_plain_glob(self) -> None:
        assert is_excluded("dist/flags.ts", ["dist/*"])


# ---------------------------------------------------------------------------
# Discovery
# ---------------------------------------------------------------------------


class TestDiscovery:
    def test_default_patterns_skip_node_modules(self, project: Path) -> None:
        registry = FlagRegistry(root=project)
        files = registry.discover_files()
        assert files == [
            (project / "src" / "flags.ts").resolve(),
            (project / "src" / "billing.flags.ts").resolve(),
        ]

    def test_overlapping_patterns_deduplicated(self, project: Path) -> None:
        registry = FlagRegistry(["**/flags.ts", "src/*.ts"], root=project)
        files = registry.discover_files()
        assert len(files) == len(set(files))
        assert (project / "src" / "flags.ts").resolve() in files
        assert (project / "src" / "app.ts").resolve() in files

    def test_directories_ignored(self, tmp_path: Path) -> None:
        (tmp_path / "flags.ts").mkdir()
        assert FlagRegistry(["*.ts"], root=tmp_path).discover_files() == []

    def test_custom_exclude(self, project: Path) -> None:
        registry = FlagRegistry(["**/*.ts"], root=project, exclude=["src/app.ts"])
        rel = {p.relative_to(project.resolve()).as_posix() for p in registry.discover_files()}
        assert "src/app.ts" not in rel
        assert "node_modules/pkg/flags.ts" in rel

    def test_update_patterns(self, project: Path) -> None:
        registry = FlagRegistry(["src/flags.ts"], root=project)
        registry.refresh()
        assert [d.variable_name for d in registry.get_definitions()] == ["flags"]

        registry.update_patterns(["src/app.ts"])
        assert registry.patterns == ["src/app.ts"]
        registry.refresh()
        assert [d.variable_name for d in registry.get_definitions()] == ["notFlags"]

    def test_from_config(self, project: Path) -> None:
        cfg = ProjectConfig(root=project, patterns=["src/*.ts"], exclude=[], jobs=3)
        registry = FlagRegistry.from_config(cfg)
        assert registry.root == project.resolve()
        assert registry.patterns == ["src/*.ts"]
        assert registry.jobs == 3

    @pytest.mark.parametrize("pattern", ["/abs/*.ts", ""])
    def test_unglobbable_pattern_rejected(self, project: Path, pattern: str) -> None:
        with pytest.raises(ValueError):
            FlagRegistry([pattern], root=project)
        registry = FlagRegistry(["src/flags.ts"], root=project)
        with pytest.raises(ValueError):
            registry.update_patterns(["src/app.ts", pattern])
        assert registry.patterns == ["src/flags.ts"]


# ---------------------------------------------------------------------------
# refresh()
# ---------------------------------------------------------------------------


class TestRefresh:
    def test_empty_before_first_refresh(self, project: Path) -> None:
        registry = FlagRegistry(root=project)
        assert registry.get_definitions() == ()
        assert registry.get_all_flags() == []
        assert registry.snapshot == RegistrySnapshot()

    def test_refresh_collects_definitions(self, project: Path) -> None:
        registry = FlagRegistry(root=project)
        registry.refresh()
        defs = registry.get_definitions()
        assert [d.variable_name for d in defs] == ["flags", "billing"]
        assert [d.pattern for d in defs] == [FlagPattern.AS_CONST, FlagPattern.DEFINE_FLAGS]
        assert [f.name for f in registry.get_all_flags()] == ["darkMode", "maxItems", "invoices"]
        assert registry.get_errors() == ()

    def test_explicit_files(self, project: Path) -> None:
        registry = FlagRegistry(root=project)
        registry.refresh([project / "src" / "app.ts"])
        assert [d.variable_name for d in registry.get_definitions()] == ["notFlags"]

    def test_refresh_replaces_snapshot(self, project: Path) -> None:
        registry = FlagRegistry(root=project)
        registry.refresh()
        first = registry.snapshot
        _write(project / "src" / "flags.ts", "export const flags = { only: 'one' };\n")
        registry.refresh()
        assert registry.snapshot is not first
        assert [f.name for f in registry.get_all_flags()] == ["only", "invoices"]
        # The earlier snapshot is untouched.
        assert [f.name for d in first.definitions for f in d.flags][0] == "darkMode"

    def test_failing_file_does_not_abort(
        self, project: Path, caplog: pytest.LogCaptureFixture
    ) -> None:
        bad = project / "src" / "broken.flags.ts"
        bad.write_bytes(b"\xff\xfe\xfa not utf-8")
        registry = FlagRegistry(root=project)
        with caplog.at_level(logging.WARNING, logger="localflag"):
            registry.refresh()
        assert [d.variable_name for d in registry.get_definitions()] == ["flags", "billing"]
        errors = registry.get_errors()
        assert len(errors) == 1
        assert errors[0][0] == str(bad.resolve())
        assert "UTF-8" in errors[0][1]
        assert "Error parsing" in caplog.text

    def test_missing_explicit_file_is_an_error(self, project: Path) -> None:
        registry = FlagRegistry(root=project)
        registry.refresh([project / "gone.ts", project / "src" / "flags.ts"])
        assert [d.variable_name for d in registry.get_definitions()] == ["flags"]
        assert registry.get_errors()[0][0] == str(project / "gone.ts")

    def test_huge_unicode_escape_does_not_abort(self, project: Path) -> None:
        odd = _write(
            project / "src" / "odd.flags.ts",
            'export const odd = { a: true, b: "\\u{FFFFFFFFFFFFFFFFFFFFFF}" } as const;\n',
        )
        registry = FlagRegistry(root=project)
        registry.refresh([odd, project / "src" / "flags.ts"])
        assert [d.variable_name for d in registry.get_definitions()] == ["odd", "flags"]
        assert registry.get_errors() == ()

    def test_unexpected_scanner_error_is_per_file(
        self,
        project: Path,
        monkeypatch: pytest.MonkeyPatch,
        caplog: pytest.LogCaptureFixture,
    ) -> None:
        real_scan = registry_mod.scan_file
        broken = project / "src" / "billing.flags.ts"

        def scan_or_crash(path):
            if Path(path) == broken:
                raise RuntimeError("scanner bug")
            return real_scan(path)

        monkeypatch.setattr(registry_mod, "scan_file", scan_or_crash)
        registry = FlagRegistry(root=project)
        with caplog.at_level(logging.WARNING, logger="localflag"):
            registry.refresh([broken, project / "src" / "flags.ts"])

        assert [d.variable_name for d in registry.get_definitions()] == ["flags"]
        assert registry.get_errors() == ((str(broken), "RuntimeError: scanner bug"),)
        assert "Unexpected error scanning" in caplog.text

    def test_duplicate_names_across_files_kept(self, tmp_path: Path) -> None:
        _write(tmp_path / "a" / "flags.ts", "export const flags = { beta: true };\n")
        _write(tmp_path / "b" / "flags.ts", "export const flags = { beta: false };\n")
        registry = FlagRegistry(root=tmp_path)
        registry.refresh()
        betas = registry.find_flags("beta")
        assert [f.value for f in betas] == [True, False]

    def test_parallel_refresh_matches_serial(self, tmp_path: Path) -> None:
        for i in range(12):
            _write(tmp_path / f"m{i:02d}" / "flags.ts", f"export const f{i} = {{ on{i}: {i} }};\n")
        serial = FlagRegistry(root=tmp_path, jobs=1)
        parallel = FlagRegistry(root=tmp_path, jobs=4)
        serial.refresh()
        parallel.refresh()
        assert parallel.get_definitions() == serial.get_definitions()
        assert len(serial.get_definitions()) == 12

    def test_superseded_refresh_is_discarded(
        self, project: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        registry = FlagRegistry(root=project)
        real_scan = registry_mod.scan_file
        nested = {"done": False}

        def scan_and_race(path):
            # The first refresh is overtaken by a second one that finishes first.
            if not nested["done"]:
                nested["done"] = True
                registry.refresh([project / "src" / "app.ts"])
            return real_scan(path)

        monkeypatch.setattr(registry_mod, "scan_file", scan_and_race)
        registry.refresh()

        assert registry.snapshot.generation == 2
        assert [d.variable_name for d in registry.get_definitions()] == ["notFlags"]

    def test_generation_increases(self, project: Path) -> None:
        registry = FlagRegistry(root=project)
        registry.refresh()
        registry.refresh()
        assert registry.snapshot.generation == 2


# ---------------------------------------------------------------------------
# find_flags()
# ---------------------------------------------------------------------------


class TestFindFlags:
    def test_by_name(self, project: Path) -> None:
        registry = FlagRegistry(root=project)
        registry.refresh()
        [flag] = registry.find_flags("darkMode")
        assert flag.value is False
        assert flag.location.line == 1

    def test_restricted_to_file(self, tmp_path: Path) -> None:
        a = _write(tmp_path / "a" / "flags.ts", "export const flags = { beta: true };\n")
        _write(tmp_path / "b" / "flags.ts", "export const flags = { beta: false };\n")
        registry = FlagRegistry(root=tmp_path)
        registry.refresh()
        [flag] = registry.find_flags("beta", a)
        assert flag.value is True

    def test_unknown_name(self, project: Path) -> None:
        registry = FlagRegistry(root=project)
        registry.refresh()
        assert registry.find_flags("nope") == []
