from datetime import date
from pathlib import Path

import pytest

from folio.errors import LayoutCycle, LayoutLoadError, UnknownLayout
from folio.layouts import Layout, LayoutSet, create_environment, layout_name, load_layouts


def write_layouts(tmp_path: Path, layouts: dict[str, str]) -> Path:
    layout_dir = tmp_path / "_layouts"
    layout_dir.mkdir(parents=True, exist_ok=True)
    for name, text in layouts.items():
        (layout_dir / name).write_text(text, encoding="utf-8")
    return layout_dir


def test_chain_applies_innermost_first(tmp_path):
    layout_dir = write_layouts(
        tmp_path,
        {
            "page.html": "<body>{{ content }}</body>",
            "post.html": "---\nlayout: page\n---\n<article>{{ content }}</article>",
        },
    )
    layouts = load_layouts(layout_dir)
    assert [layout.name for layout in layouts.chain("post")] == ["post", "page"]
    html = layouts.apply("post", "<p>hi</p>", {}, {})
    assert html == "<body><article><p>hi</p></article></body>"


def test_apply_without_layout_returns_content():
    assert LayoutSet().apply(None, "<p>bare</p>", {}, {}) == "<p>bare</p>"


def test_front_matter_placeholders(tmp_path):
    layout_dir = write_layouts(
        tmp_path,
        {
            "default.html": (
                "<title>{{ page.title }}</title>"
                '<meta name="description" content="{{ page.description }}">'
                "<time>{{ page.date | date_format }}</time>"
                "<h1>{{ site.title }}</h1>{{ content }}"
            )
        },
    )
    layouts = load_layouts(layout_dir)
    html = layouts.apply(
        "default",
        "<p>x</p>",
        {"title": "Tom & Jerry", "date": date(2024, 2, 18)},
        {"title": "My Site"},
    )
    assert "<title>Tom &amp; Jerry</title>" in html
    assert 'content=""' in html
    assert "<time>February 18, 2024</time>" in html
    assert "<h1>My Site</h1><p>x</p>" in html


def test_absent_date_formats_as_empty(tmp_path):
    layout_dir = write_layouts(
        tmp_path, {"default.html": "<time>{{ page.date | date_format }}</time>{{ content }}"}
    )
    html = load_layouts(layout_dir).apply("default", "", {}, {})
    assert html == "<time></time>"


def test_includes_are_available_to_layouts(tmp_path):
    layout_dir = write_layouts(
        tmp_path, {"default.html": "{% include 'header.html' %}{{ content }}"}
    )
    includes = tmp_path / "_includes"
    includes.mkdir()
    (includes / "header.html").write_text("<header>{{ site.title }}</header>", encoding="utf-8")
    layouts = load_layouts(layout_dir, create_environment(includes))
    assert layouts.apply("default", "<p>x</p>", {}, {"title": "Home"}) == (
        "<header>Home</header><p>x</p>"
    )


def test_cycle_is_rejected_at_load(tmp_path):
    layout_dir = write_layouts(
        tmp_path,
        {
            "a.html": "---\nlayout: b\n---\n{{ content }}",
            "b.html": "---\nlayout: a\n---\n{{ content }}",
        },
    )
    with pytest.raises(LayoutCycle) as excinfo:
        load_layouts(layout_dir)
    assert excinfo.value.chain == ["a", "b", "a"]


def test_self_reference_is_a_cycle():
    layouts = LayoutSet({"loop": Layout("loop", "{{ content }}", parent_name="loop")})
    with pytest.raises(LayoutCycle):
        layouts.chain("loop")


def test_missing_parent_is_rejected_at_load(tmp_path):
    layout_dir = write_layouts(
        tmp_path, {"post.html": "---\nlayout: base\n---\n{{ content }}"}
    )
    with pytest.raises(UnknownLayout) as excinfo:
        load_layouts(layout_dir)
    assert excinfo.value.name == "base"


def test_unknown_layout_name():
    with pytest.raises(UnknownLayout) as excinfo:
        LayoutSet().chain("post", referrer="posts/a.md")
    assert "posts/a.md" in str(excinfo.value)


@pytest.mark.parametrize(
    "text",
    [
        "<body>no marker</body>",
        "{{ content }}{{ content }}",
        "{% if %}{{ content }}",
        "---\nlayout: [x\n---\n{{ content }}",
    ],
)
def test_malformed_layouts_fail_to_load(tmp_path, text):
    layout_dir = write_layouts(tmp_path, {"broken.html": text})
    with pytest.raises(LayoutLoadError) as excinfo:
        load_layouts(layout_dir)
    assert excinfo.value.path.name == "broken.html"


def test_duplicate_layout_names(tmp_path):
    layout_dir = write_layouts(
        tmp_path, {"page.html": "{{ content }}", "page.htm": "{{ content }}"}
    )
    with pytest.raises(LayoutLoadError):
        load_layouts(layout_dir)


def test_missing_directory_gives_empty_set(tmp_path):
    assert len(load_layouts(tmp_path / "nope")) == 0


def test_layout_set_is_read_only(tmp_path):
    layouts = LayoutSet({"page": Layout("page", "{{ content }}")})
    with pytest.raises(TypeError):
        layouts["post"] = Layout("post", "{{ content }}")  # type: ignore[index]


def test_layout_name_normalization():
    assert layout_name("post") == "post"
    assert layout_name(None) is None
    assert layout_name("none") is None
    assert layout_name(False) is None
