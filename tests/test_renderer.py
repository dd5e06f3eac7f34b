"""Tests for the reportlab PDF renderer."""

from __future__ import annotations

import base64
import io
import logging

import pytest
from pypdf import PdfReader

from htmlpdf.assembler import PAGE_SIZES, Document, DocumentAssembler
from htmlpdf.fonts import MONOSPACE, SERIF
from htmlpdf.layout import (
    Block,
    Heading,
    Image,
    Inline,
    LineBreak,
    ListContainer,
    ListItem,
    NodeKind,
    Paragraph,
    Row,
    TextRun,
)
from htmlpdf.renderer import PdfRenderer, TextStyle

PNG_1PX = base64.b64decode(
    "iVBORw0KGgoAAAANSUhEUgAAAAEAAAABCAYAAAAfFcSJAAAADUlEQVR42mNkYPhfDwAChwGA60e6kgAAAABJRU5ErkJggg=="
)


def _render(*content, **kwargs) -> PdfReader:
    doc = Document(content=list(content), **kwargs)
    return PdfReader(io.BytesIO(PdfRenderer().render(doc)))


def _text(reader: PdfReader) -> str:
    return "\n".join(page.extract_text() for page in reader.pages)


class TestTextStyle:

    def test_defaults(self):
        ts = TextStyle()
        assert ts.font_name == "Helvetica"
        assert ts.leading == pytest.approx(19.2)

    def test_derive_returns_copy(self):
        base = TextStyle()
        bold = base.derive(bold=True, size_pt=20)
        assert bold.bold and bold.size_pt == 20
        assert not base.bold and base.size_pt == 12.0

    def test_derive_ignores_unknown_fields(self):
        assert not hasattr(TextStyle().derive(nonsense=1), "nonsense")

    @pytest.mark.parametrize("family, bold, italic, expected", [
        ("Helvetica", True, False, "Helvetica-Bold"),
        ("Helvetica", False, True, "Helvetica-Oblique"),
        (SERIF, True, False, "Times-Bold"),
        (SERIF, True, True, "Times-BoldItalic"),
        (MONOSPACE, True, True, "Courier-BoldOblique"),
    ])
    def test_font_variants(self, family, bold, italic, expected):
        assert TextStyle(family=family, bold=bold, italic=italic).font_name == expected

    def test_apply_inherits(self):
        ts = TextStyle().apply({
            "fontFamily": SERIF,
            "fontSize": 18.0,
            "fontWeight": "700",
            "fontStyle": "italic",
            "color": "#1E40AF",
            "textAlign": "center",
        })
        assert ts.family == SERIF
        assert ts.size_pt == 18.0
        assert ts.bold and ts.italic
        assert ts.color.hexval() == "0x1e40af"
        assert ts.align == "center"

    def test_apply_normal_weight_resets_bold(self):
        assert not TextStyle(bold=True).apply({"fontWeight": "normal"}).bold

    def test_absolute_line_height(self):
        assert TextStyle().apply({"lineHeight": 20.0}).leading == 20.0

    def test_percent_font_size_relative_to_inherited(self):
        assert TextStyle().apply({"fontSize": "120%"}).size_pt == pytest.approx(14.4)
        assert TextStyle(size_pt=20).apply({"fontSize": "50%"}).size_pt == pytest.approx(10.0)

    def test_percent_line_height_is_multiplier(self):
        ts = TextStyle().apply({"lineHeight": "150%"})
        assert ts.line_height == pytest.approx(1.5)
        assert ts.leading == pytest.approx(18.0)

    def test_invalid_values_ignored(self):
        ts = TextStyle().apply({"color": "not-a-colour", "textAlign": "middle", "fontSize": "large"})
        assert ts == TextStyle()


class TestDispatch:

    def test_every_node_kind_has_a_renderer(self):
        renderer = PdfRenderer()
        for kind in NodeKind:
            assert callable(getattr(renderer, f"_render_{kind.value}", None)), kind


class TestDocumentOutput:

    def test_pdf_header(self):
        data = PdfRenderer().render(Document(content=[Paragraph(children=[TextRun("x")])]))
        assert data.startswith(b"%PDF")

    def test_letter_page_size(self):
        reader = _render(Paragraph(children=[TextRun("x")]))
        box = reader.pages[0].mediabox
        assert float(box.width) == pytest.approx(612)
        assert float(box.height) == pytest.approx(792)

    def test_a4_page_size(self):
        reader = _render(TextRun("x"), page_size=PAGE_SIZES["A4"])
        box = reader.pages[0].mediabox
        assert float(box.width) == pytest.approx(PAGE_SIZES["A4"][0])

    def test_title_metadata(self):
        reader = _render(TextRun("x"), title="Settlement Form")
        assert reader.metadata.title == "Settlement Form"

    def test_empty_document_has_one_page(self):
        assert len(_render().pages) == 1

    def test_long_document_paginates(self):
        paragraphs = [Paragraph(children=[TextRun(f"Line {i}")], style={"marginBottom": 8}) for i in range(200)]
        assert len(_render(*paragraphs).pages) > 1

    def test_identical_input_identical_bytes(self):
        doc = DocumentAssembler().assemble_markup("<title>T</title><body><h1>Report</h1><p>Hello</p></body>")
        assert PdfRenderer().render(doc) == PdfRenderer().render(doc)


class TestContent:

    def test_heading_and_paragraph_text(self):
        reader = _render(
            Heading(level=1, children=[TextRun("Report")], style={"fontSize": 24.0, "fontWeight": "bold"}),
            Paragraph(children=[TextRun("Hello")], style={"marginBottom": 8}),
        )
        text = _text(reader)
        assert "Report" in text
        assert "Hello" in text

    def test_markup_characters_escaped(self):
        reader = _render(Paragraph(children=[TextRun("a < b & <b>c</b>")]))
        assert "a < b & <b>c</b>" in _text(reader)

    def test_inline_styles_and_breaks(self):
        reader = _render(Paragraph(children=[
            TextRun("Plain"),
            Inline(children=[TextRun("bold")], style={"fontWeight": "bold", "color": "#ff0000"}),
            LineBreak(),
            Inline(children=[TextRun("code")], style={"fontFamily": MONOSPACE, "textDecoration": "underline"}),
        ]))
        text = _text(reader)
        assert "bold" in text
        assert "code" in text

    def test_percent_inline_font_size(self):
        reader = _render(Paragraph(children=[
            TextRun("Base"),
            Inline(children=[TextRun("larger")], style={"fontSize": "120%"}),
        ]))
        assert "larger" in _text(reader)

    def test_decorated_block(self):
        reader = _render(Block(
            children=[Heading(level=2, children=[TextRun("Section")], style={"borderBottomWidth": 2.0})],
            style={"backgroundColor": "#f9fafb", "padding": 15.0, "marginTop": 5, "marginLeft": 10.0},
        ))
        assert "Section" in _text(reader)

    def test_invalid_colours_ignored(self):
        reader = _render(Block(
            children=[Paragraph(children=[TextRun("still rendered")], style={"color": "nonsense"})],
            style={"backgroundColor": "transparentish", "borderTopWidth": 1.0, "borderTopColor": "??"},
        ))
        assert "still rendered" in _text(reader)

    def test_percentage_sizes(self):
        reader = _render(Block(children=[TextRun("pct")], style={"marginLeft": "10%", "padding": "5%"}))
        assert "pct" in _text(reader)

    def test_inline_row_flows_as_text(self):
        reader = _render(Row(
            children=[Inline(children=[TextRun("Name:")]), Inline(children=[TextRun("Jane")])],
            style={"flexDirection": "row", "flexWrap": "wrap"},
        ))
        assert "Name: Jane" in _text(reader)

    def test_spread_row_renders_columns(self):
        reader = _render(Row(
            children=[Block(children=[TextRun("Left")]), Block(children=[TextRun("Right")])],
            style={"flexDirection": "row", "justifyContent": "space-between", "alignItems": "center"},
        ))
        text = _text(reader)
        assert "Left" in text
        assert "Right" in text

    def test_lists(self):
        reader = _render(ListContainer(
            ordered=True,
            items=[
                ListItem(marker="1. ", children=[TextRun("first")], style={"marginBottom": 5}),
                ListItem(marker="2. ", children=[TextRun("second")], style={"marginBottom": 5}),
            ],
            style={"marginLeft": 20},
        ))
        text = _text(reader)
        assert "1. first" in text
        assert "2. second" in text

    def test_paragraph_with_block_child(self):
        reader = _render(Paragraph(children=[TextRun("Intro"), Block(children=[TextRun("nested")])]))
        assert "nested" in _text(reader)


class TestImages:

    def test_embedded_png(self):
        image = Image(src="data:image/png;base64,...", data=PNG_1PX, style={"maxWidth": 200, "maxHeight": 80})
        reader = _render(image, Paragraph(children=[TextRun("after")]))
        assert "after" in _text(reader)

    def test_explicit_size(self):
        image = Image(data=PNG_1PX, style={"width": 40.0, "height": 30.0, "marginBottom": 4})
        assert len(_render(image).pages) == 1

    def test_unreadable_image_skipped(self, caplog):
        image = Image(data=b"\x00\x00\x00", style={"maxWidth": 200, "maxHeight": 80})
        with caplog.at_level(logging.WARNING, logger="htmlpdf"):
            reader = _render(image, Paragraph(children=[TextRun("after")]))
        assert "after" in _text(reader)
        assert "unreadable" in caplog.text
