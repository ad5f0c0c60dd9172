"""CLI parser and entrypoint tests."""

from __future__ import annotations

import logging

import pytest

from tests._fixtures.project_builder import ProjectBuilder, folder, node
from wallytypes.cli import _build_parser, main


@pytest.fixture(autouse=True)
def _reset_logging():
    yield
    logger = logging.getLogger("wallytypes")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.propagate = True


def test_cli_accepts_multiple_package_folders() -> None:
    args = _build_parser().parse_args(["--sourcemap", "sourcemap.json", "Packages", "ServerPackages"])
    assert args.sourcemap == "sourcemap.json"
    assert args.packages == ["Packages", "ServerPackages"]
    assert args.dry_run is False


def test_cli_accepts_overrides() -> None:
    args = _build_parser().parse_args(
        ["-v", "--dry-run", "--max-depth", "2", "--workers", "3", "--mount-path", "A.B", "Packages"]
    )
    assert args.verbose is True
    assert args.dry_run is True
    assert args.max_depth == 2
    assert args.workers == 3
    assert args.mount_path == "A.B"


def test_cli_requires_packages_folder() -> None:
    with pytest.raises(SystemExit):
        _build_parser().parse_args(["--sourcemap", "sourcemap.json"])


def _scenario(project: ProjectBuilder) -> None:
    project.write_raw("Packages/Foo/init.lua", '-- AUTOGENERATED\nreturn require(script.Parent._Index["Foo"])')
    project.write({"src/Foo/init.luau": "export type Bar = { x: number }\nreturn {}\n"})
    project.sourcemap(folder("Packages", node("Foo", files=["src/Foo/init.luau"])))


def test_main_patches_and_prints_summary(project: ProjectBuilder, monkeypatch, capsys) -> None:
    _scenario(project)
    monkeypatch.chdir(project.root)

    main(["--sourcemap", "sourcemap.json", "Packages"])

    out = capsys.readouterr().out
    assert "patched Foo: 1 type(s)" in out
    assert "Packages: patched=1 unchanged=0 skipped=0 failed=0" in out
    assert project.read("Packages/Foo/init.lua").startswith("export type Bar = { x: number }\n\n")


def test_main_reads_sourcemap_from_config(project: ProjectBuilder, monkeypatch, capsys) -> None:
    _scenario(project)
    project.write({".wallytypes.yml": "sourcemap: sourcemap.json\n"})
    monkeypatch.chdir(project.root)

    main(["--dry-run", "Packages"])

    out = capsys.readouterr().out
    assert "would patch Foo" in out
    assert "+export type Bar = { x: number }" in out
    assert project.read("Packages/Foo/init.lua").startswith("-- AUTOGENERATED")


def test_main_requires_sourcemap(project: ProjectBuilder, monkeypatch) -> None:
    (project.root / "Packages").mkdir()
    monkeypatch.chdir(project.root)

    with pytest.raises(SystemExit) as excinfo:
        main(["Packages"])
    assert excinfo.value.code == 2


def test_main_exits_on_malformed_sourcemap(project: ProjectBuilder, monkeypatch) -> None:
    (project.root / "Packages").mkdir()
    project.write_raw("sourcemap.json", "{broken")
    monkeypatch.chdir(project.root)

    with pytest.raises(SystemExit) as excinfo:
        main(["--sourcemap", "sourcemap.json", "Packages"])
    assert excinfo.value.code == 1


def test_main_exits_nonzero_when_a_package_fails(project: ProjectBuilder, monkeypatch, capsys) -> None:
    (project.root / "Packages" / "Broken").mkdir(parents=True)
    project.sourcemap(folder("Packages", node("Broken", files=["src/Broken.luau"])))
    monkeypatch.chdir(project.root)

    with pytest.raises(SystemExit) as excinfo:
        main(["--sourcemap", "sourcemap.json", "Packages"])

    assert excinfo.value.code == 1
    assert "failed Broken:" in capsys.readouterr().out
