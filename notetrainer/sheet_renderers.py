"""Renderer implementations for practice-sheet output formats."""

from __future__ import annotations

import json
from abc import ABC, abstractmethod
from dataclasses import asdict
from typing import Any, cast

from notetrainer.sheet_models import SheetDocument


def _escape_html(text: str) -> str:
    """Escape the three characters that are unsafe in HTML text content."""
    return text.replace("&", "&amp;").replace("<", "&lt;").replace(">", "&gt;")


class SheetRenderer(ABC):
    """Abstract practice-sheet renderer."""

    @property
    @abstractmethod
    def default_extension(self) -> str:
        """Default filename extension for this renderer."""

    @abstractmethod
    def render(
        self,
        *,
        title: str,
        musicxml_bytes: bytes | None = None,
        document: SheetDocument | None = None,
        answers: list[str] | None = None,
    ) -> str:
        """Render output into a file content string."""


class VerovioHtmlRenderer(SheetRenderer):
    """Render MusicXML bytes into a printable HTML worksheet with inline SVG."""

    # Verovio layout (abstract units; ~1 unit ≈ 0.1 mm). A4 width, landscape-ish
    # systems so a short drill sequence fits on one line.
    _OPTIONS: dict[str, Any] = {
        "pageWidth": 2100,
        "pageHeight": 2970,
        "scale": 50,
        "pageMarginTop": 80,
        "pageMarginBottom": 80,
        "pageMarginLeft": 80,
        "pageMarginRight": 80,
        "adjustPageHeight": True,
        "breaks": "auto",
        "font": "Leipzig",
    }

    @property
    def default_extension(self) -> str:
        return ".html"

    def render(
        self,
        *,
        title: str,
        musicxml_bytes: bytes | None = None,
        document: SheetDocument | None = None,
        answers: list[str] | None = None,
    ) -> str:
        if musicxml_bytes is None:
            raise ValueError("musicxml_bytes is required for HTML rendering.")

        return self.build_html(title, self.render_svgs(musicxml_bytes), answers or [])

    def render_svgs(self, musicxml_bytes: bytes) -> list[str]:
        """
        Engrave a MusicXML document into one SVG string per page.

        Raises:
            ValueError: If verovio cannot load the MusicXML data.
        """
        import verovio

        tk = verovio.toolkit()
        tk.setOptions(dict(self._OPTIONS))
        if not tk.loadData(musicxml_bytes.decode("utf-8")):
            raise ValueError("verovio could not load the MusicXML data.")

        return [self._render_page_svg(tk, page) for page in range(1, tk.getPageCount() + 1)]

    def _render_page_svg(self, toolkit: Any, page_no: int) -> str:
        # Older bindings reject keyword arguments.
        try:
            return cast(str, toolkit.renderToSVG(pageNo=page_no, xmlDeclaration=False))
        except TypeError:
            return cast(str, toolkit.renderToSVG(page_no))

    def build_html(self, title: str, svgs: list[str], answers: list[str] | None = None) -> str:
        """
        Wrap engraved pages in a self-contained worksheet document.

        Each SVG goes in its own ``.page`` div. When ``answers`` is non-empty an
        answer key is appended as a numbered list that starts on a new printed
        page.
        """
        title_safe = _escape_html(title)
        heading = f"  <h1>{title_safe}</h1>\n" if title else ""
        pages = "\n".join(f'  <div class="page">{svg}</div>' for svg in svgs)
        answer_key = ""
        if answers:
            items = "".join(f"<li>{_escape_html(name)}</li>" for name in answers)
            answer_key = f'\n  <section class="answers"><h2>Answer key</h2><ol>{items}</ol></section>'

        return f"""<!DOCTYPE html>
<html lang="en">
<head>
  <meta charset="UTF-8" />
  <meta name="viewport" content="width=device-width, initial-scale=1.0" />
  <title>{title_safe}</title>
  <style>
    body {{
      font-family: Georgia, serif;
      background: #fafafa;
      margin: 0;
      padding: 2rem;
    }}
    h1 {{
      text-align: center;
      font-size: 1.5rem;
      color: #222;
    }}
    .page {{
      background: #fff;
      border: 1px solid #ddd;
      margin: 0 auto 2rem;
      max-width: 900px;
      padding: 1rem;
    }}
    .page svg {{
      display: block;
      width: 100%;
      height: auto;
    }}
    .answers {{
      max-width: 900px;
      margin: 0 auto;
    }}
    .answers ol {{
      columns: 4;
    }}
    @media print {{
      body {{
        background: #fff;
        padding: 0;
      }}
      .page {{
        border: none;
        page-break-after: always;
        max-width: 100%;
      }}
      .answers {{
        page-break-before: always;
      }}
    }}
  </style>
</head>
<body>
{heading}{pages}{answer_key}
</body>
</html>"""


class VexflowMarkdownRenderer(SheetRenderer):
    """Render a sheet document into Markdown with an embedded VexFlow script."""

    @property
    def default_extension(self) -> str:
        return ".md"

    def render(
        self,
        *,
        title: str,
        musicxml_bytes: bytes | None = None,
        document: SheetDocument | None = None,
        answers: list[str] | None = None,
    ) -> str:
        if document is None:
            raise ValueError("document is required for md-vexflow rendering.")

        title_safe = _escape_html(title)
        payload = json.dumps(asdict(document), separators=(",", ":"))
        payload = payload.replace("</", "<\\/")
        answer_key = ""
        if document.answers:
            lines = "\n".join(
                f"{index}. {name}" for index, name in enumerate(document.answers, start=1)
            )
            answer_key = f"\n## Answer key\n\n{lines}\n"

        return f"""# {title_safe}

Name each note, then play it. This Markdown embeds JavaScript + VexFlow; open it in a viewer that allows script execution.

<div id="notetrainer-sheet"></div>
<script id="notetrainer-sheet-data" type="application/json">{payload}</script>
<script type="module">
  import {{
    Accidental,
    Formatter,
    Renderer,
    Stave,
    StaveConnector,
    StaveNote,
    Voice
  }} from "https://cdn.jsdelivr.net/npm/vexflow@4.2.3/build/esm/entry/vexflow.js";

  const host = document.getElementById("notetrainer-sheet");
  const sheet = JSON.parse(document.getElementById("notetrainer-sheet-data").textContent || "{{}}");
  const measures = Array.isArray(sheet.measures) ? sheet.measures : [];
  const width = 220;

  const renderer = new Renderer(host, Renderer.Backends.SVG);
  renderer.resize(40 + width * Math.max(1, measures.length), 240);
  const context = renderer.getContext();

  const toStaveNotes = (entries, clef) => entries.map((entry) => {{
    const staveNote = new StaveNote({{ clef, keys: entry.keys, duration: entry.duration }});
    entry.accidentals.forEach((symbol, index) => {{
      if (symbol) {{
        staveNote.addModifier(new Accidental(symbol), index);
      }}
    }});
    return staveNote;
  }});

  measures.forEach((measure, index) => {{
    const x = 20 + index * width;
    const treble = new Stave(x, 20, width);
    const bass = new Stave(x, 130, width);
    if (index === 0) {{
      treble.addClef("treble").addTimeSignature(sheet.time_signature);
      bass.addClef("bass").addTimeSignature(sheet.time_signature);
      const brace = new StaveConnector(treble, bass);
      brace.setType(StaveConnector.type.BRACE);
      brace.setContext(context).draw();
    }}
    treble.setContext(context).draw();
    bass.setContext(context).draw();

    const trebleVoice = new Voice({{ num_beats: sheet.beats, beat_value: sheet.beat_value }});
    const bassVoice = new Voice({{ num_beats: sheet.beats, beat_value: sheet.beat_value }});
    trebleVoice.addTickables(toStaveNotes(measure.treble, "treble"));
    bassVoice.addTickables(toStaveNotes(measure.bass, "bass"));

    new Formatter().joinVoices([trebleVoice]).joinVoices([bassVoice]).format(
      [trebleVoice, bassVoice],
      width - (index === 0 ? 80 : 30),
    );
    trebleVoice.draw(context, treble);
    bassVoice.draw(context, bass);
  }});
</script>
{answer_key}"""
