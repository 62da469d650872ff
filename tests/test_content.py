from datetime import date
from pathlib import Path

import pytest

from folio.content import ContentDocument, FileContentLoader, load_document, parse_document
from folio.errors import MalformedFrontMatter


def create_site(tmp_path: Path) -> Path:
    site = tmp_path / "site"
    (site / "_layouts").mkdir(parents=True)
    (site / "posts").mkdir()
    (site / "img").mkdir()
    (site / ".git").mkdir()
    (site / "_layouts" / "default.html").write_text("{{ content }}", encoding="utf-8")
    (site / "index.md").write_text("# Home", encoding="utf-8")
    (site / "bio.html").write_text("<p>bio</p>", encoding="utf-8")
    (site / "posts" / "a.md").write_text("---\ndate: 2024-02-18\n---\nA", encoding="utf-8")
    (site / "posts" / "b.markdown").write_text("B", encoding="utf-8")
    (site / "posts" / "_draft.md").write_text("D", encoding="utf-8")
    (site / "img" / "me.png").write_bytes(b"\x89PNG")
    (site / ".git" / "HEAD").write_text("ref", encoding="utf-8")
    (site / ".hidden.md").write_text("secret", encoding="utf-8")
    return site


def rel(site: Path, paths: list[Path]) -> list[str]:
    return [p.relative_to(site).as_posix() for p in paths]


def test_loader_finds_content_files_in_order(tmp_path):
    site = create_site(tmp_path)
    loader = FileContentLoader(site)
    assert rel(site, loader.iter_files()) == [
        "bio.html",
        "index.md",
        "posts/a.md",
        "posts/b.markdown",
    ]
    assert "posts/_draft.md" in rel(site, loader.iter_files(include_drafts=True))


def test_loader_finds_static_files(tmp_path):
    site = create_site(tmp_path)
    assert rel(site, FileContentLoader(site).iter_static_files()) == ["img/me.png"]


def test_load_document(tmp_path):
    site = create_site(tmp_path)
    document = load_document(site, site / "posts" / "a.md")
    assert document.path == Path("posts/a.md")
    assert document.date == date(2024, 2, 18)
    assert document.body == "A"
    assert document.source_type == "markdown"
    assert load_document(site, site / "bio.html").source_type == "html"


def test_document_is_immutable():
    document = parse_document("---\ntitle: T\n---\nbody", Path("t.md"))
    with pytest.raises(TypeError):
        document.front_matter["title"] = "changed"  # type: ignore[index]
    with pytest.raises(AttributeError):
        document.body = "changed"  # type: ignore[misc]


def test_document_properties():
    document = parse_document("body", Path("posts/2024-01-15-hello-world.md"))
    assert document.title == "Hello World"
    assert document.date is None
    assert document.description == ""
    assert document.listed
    assert ContentDocument(Path("x.md")).front_matter == {}


def test_parse_document_propagates_front_matter_errors():
    with pytest.raises(MalformedFrontMatter):
        parse_document("---\ntitle: open\n", Path("open.md"))


def test_loader_skips_excluded_directories(tmp_path):
    site = create_site(tmp_path)
    (site / "out").mkdir()
    (site / "out" / "index.html").write_text("<p>built</p>", encoding="utf-8")
    (site / "out" / "feed.xml").write_text("<rss/>", encoding="utf-8")
    loader = FileContentLoader(site, exclude=[site / "out"])

    assert "out/index.html" not in rel(site, loader.iter_files())
    assert rel(site, loader.iter_static_files()) == ["img/me.png"]
