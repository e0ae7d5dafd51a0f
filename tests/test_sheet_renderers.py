"""Unit tests for renderers used by SheetExporter."""

import pytest

from notetrainer.sheet_models import SheetDocument, SheetMeasure, StaffNote
from notetrainer.sheet_renderers import VerovioHtmlRenderer, VexflowMarkdownRenderer


def _sample_document(answers: list[str] | None = None) -> SheetDocument:
    return SheetDocument(
        title="Drill",
        time_signature="4/4",
        beats=4,
        beat_value=4,
        measures=[
            SheetMeasure(
                treble=[StaffNote(keys=["c#/4"], duration="q", accidentals=["#"])],
                bass=[StaffNote(keys=["d/3"], duration="qr", accidentals=[None])],
            )
        ],
        answers=answers or [],
    )


def test_staff_note_rest_detection() -> None:
    assert StaffNote(keys=["d/3"], duration="qr", accidentals=[None]).is_rest
    assert not StaffNote(keys=["c/4"], duration="q", accidentals=[None]).is_rest


def test_vexflow_markdown_renderer_has_heading() -> None:
    content = VexflowMarkdownRenderer().render(title="My Drill", document=_sample_document())
    assert content.startswith("# My Drill")


def test_vexflow_markdown_renderer_includes_container_and_script() -> None:
    content = VexflowMarkdownRenderer().render(title="Drill", document=_sample_document())
    assert '<div id="notetrainer-sheet"></div>' in content
    assert 'id="notetrainer-sheet-data"' in content
    assert 'type="module"' in content
    assert "cdn.jsdelivr.net/npm/vexflow" in content


def test_vexflow_markdown_renderer_embeds_sheet_payload() -> None:
    content = VexflowMarkdownRenderer().render(title="Drill", document=_sample_document())
    assert '"time_signature":"4/4"' in content
    assert '"keys":["c#/4"]' in content
    assert '"accidentals":["#"]' in content


def test_vexflow_markdown_renderer_answer_key_optional() -> None:
    renderer = VexflowMarkdownRenderer()
    assert "Answer key" not in renderer.render(title="Drill", document=_sample_document())
    with_answers = renderer.render(title="Drill", document=_sample_document(["C#4"]))
    assert "## Answer key" in with_answers
    assert "1. C#4" in with_answers


def test_vexflow_markdown_renderer_requires_document() -> None:
    with pytest.raises(ValueError, match="document is required"):
        VexflowMarkdownRenderer().render(title="Drill")


def test_vexflow_markdown_renderer_escapes_title() -> None:
    content = VexflowMarkdownRenderer().render(title="<Drill> & more", document=_sample_document())
    assert content.startswith("# &lt;Drill&gt; &amp; more")


def test_html_renderer_requires_musicxml() -> None:
    with pytest.raises(ValueError, match="musicxml_bytes is required"):
        VerovioHtmlRenderer().render(title="Drill")


def test_renderer_extensions() -> None:
    assert VerovioHtmlRenderer().default_extension == ".html"
    assert VexflowMarkdownRenderer().default_extension == ".md"


def test_html_renderer_build_html_title_in_title_tag() -> None:
    html = VerovioHtmlRenderer().build_html("My Drill", ["<svg></svg>"])
    assert "<title>My Drill</title>" in html
    assert "<h1>My Drill</h1>" in html


def test_html_renderer_build_html_empty_title_no_h1() -> None:
    html = VerovioHtmlRenderer().build_html("", ["<svg></svg>"])
    assert "<h1>" not in html


def test_html_renderer_build_html_escapes_title() -> None:
    html = VerovioHtmlRenderer().build_html("Sharps & <Flats>", ["<svg></svg>"])
    assert "Sharps &amp; &lt;Flats&gt;" in html


def test_html_renderer_build_html_one_div_per_page() -> None:
    html = VerovioHtmlRenderer().build_html("Drill", ["<svg>p1</svg>", "<svg>p2</svg>"])
    assert html.count('<div class="page">') == 2
    assert "<svg>p2</svg>" in html


def test_html_renderer_build_html_answer_key() -> None:
    renderer = VerovioHtmlRenderer()
    assert "Answer key" not in renderer.build_html("Drill", ["<svg></svg>"])
    html = renderer.build_html("Drill", ["<svg></svg>"], ["C4", "Bb4"])
    assert "<li>C4</li><li>Bb4</li>" in html
    assert "page-break-before: always" in html


def test_html_renderer_build_html_is_valid_html_skeleton() -> None:
    html = VerovioHtmlRenderer().build_html("Skeleton", ["<svg></svg>"])
    assert html.startswith("<!DOCTYPE html>")
    assert "</html>" in html
    assert "@media print" in html
