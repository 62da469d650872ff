from pathlib import Path

from click.testing import CliRunner

from folio import __version__
from folio.cli import cli


def create_project(tmp_path: Path) -> Path:
    project = tmp_path / "mysite"
    site = project / "site"
    (site / "_layouts").mkdir(parents=True)
    (site / "_layouts" / "default.html").write_text(
        "<main>{{ content }}</main>\n", encoding="utf-8"
    )
    (site / "about.md").write_text("---\ntitle: About\n---\nHi\n", encoding="utf-8")
    (site / "post.md").write_text(
        "---\ntitle: Post\ndate: 2024-02-18\n---\nText\n", encoding="utf-8"
    )
    return project


def test_cli_build_success(monkeypatch, tmp_path):
    project = create_project(tmp_path)
    monkeypatch.chdir(project)
    result = CliRunner().invoke(cli, ["build"], catch_exceptions=False)

    assert result.exit_code == 0
    assert "Built 3 pages" in result.output
    assert "about.md: no date" in result.output
    assert (project / "output" / "post.html").exists()


def test_cli_build_reports_failed_documents(monkeypatch, tmp_path):
    project = create_project(tmp_path)
    (project / "site" / "broken.md").write_text("---\ntitle: x\n", encoding="utf-8")
    (project / "site" / "lost.md").write_text("---\nlayout: nowhere\n---\n", encoding="utf-8")
    monkeypatch.chdir(project)
    result = CliRunner().invoke(cli, ["build"], catch_exceptions=False)

    assert result.exit_code == 1
    assert "Build failed for 2 documents" in result.output
    assert "File: broken.md" in result.output
    assert "MalformedFrontMatter" in result.output
    assert "File: lost.md" in result.output
    assert "UnknownLayout" in result.output
    assert (project / "output" / "post.html").exists()


def test_cli_build_aborts_on_layout_cycle(monkeypatch, tmp_path):
    project = create_project(tmp_path)
    layouts = project / "site" / "_layouts"
    (layouts / "a.html").write_text("---\nlayout: b\n---\n{{ content }}", encoding="utf-8")
    (layouts / "b.html").write_text("---\nlayout: a\n---\n{{ content }}", encoding="utf-8")
    monkeypatch.chdir(project)
    result = CliRunner().invoke(cli, ["build"], catch_exceptions=False)

    assert result.exit_code == 1
    assert "Build aborted" in result.output
    assert "LayoutCycle" in result.output
    assert not (project / "output").exists()


def test_cli_build_options(monkeypatch, tmp_path):
    project = create_project(tmp_path)
    (project / "site" / "_wip.md").write_text("draft\n", encoding="utf-8")
    monkeypatch.chdir(project)
    result = CliRunner().invoke(
        cli,
        ["build", "--drafts", "--jobs", "2", "--output", "public"],
        catch_exceptions=False,
    )
    assert result.exit_code == 0
    assert (project / "public" / "_wip.html").exists()


def test_cli_check_writes_nothing(monkeypatch, tmp_path):
    project = create_project(tmp_path)
    monkeypatch.chdir(project)
    result = CliRunner().invoke(cli, ["check"], catch_exceptions=False)
    assert result.exit_code == 0
    assert "Checked 3 pages" in result.output
    assert not (project / "output").exists()


def test_cli_missing_source_dir(monkeypatch, tmp_path):
    monkeypatch.chdir(tmp_path)
    result = CliRunner().invoke(cli, ["build"], catch_exceptions=False)
    assert result.exit_code == 1
    assert "ConfigError" in result.output


def test_cli_version():
    result = CliRunner().invoke(cli, ["--version"])
    assert result.exit_code == 0
    assert __version__ in result.output


def test_module_main_entrypoint():
    from folio.__main__ import main

    assert callable(main)


def test_cli_check_uses_source_and_jobs(monkeypatch, tmp_path):
    project = create_project(tmp_path)
    other = project / "drafts"
    other.mkdir()
    (other / "only.md").write_text("---\ntitle: Only\n---\nHi\n", encoding="utf-8")
    monkeypatch.chdir(project)
    result = CliRunner().invoke(
        cli, ["check", "--source", "drafts", "-j", "2"], catch_exceptions=False
    )
    assert result.exit_code == 0
    assert "Checked 2 pages" in result.output
    assert not (project / "output").exists()
