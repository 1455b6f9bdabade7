"""Tests for preview instrumentation, rendering and selection."""

from __future__ import annotations

from app.jsx.parser import parse
from app.preview.dom import RenderedNode
from app.preview.instrumentor import EDITOR_ID_ATTR, PreviewSurface, analyze, assign_ids, instrument
from app.preview.renderer import StaticRenderer
from tests.conftest import CARD_JSX, FRAGMENT_JSX, SAMPLE_P


# ---------------------------------------------------------------------------
# Instrumentation ids
# ---------------------------------------------------------------------------

class TestInstrument:
    def test_ids_are_sequential_in_preorder(self):
        ids = assign_ids(parse(CARD_JSX))
        assert list(ids) == [1, 2, 3, 4, 5, 6, 7]
        assert [el.tag for el in ids.values()] == ["div", "h1", "p", "div", "p", "button", "span"]

    def test_fragments_get_no_id(self):
        ids = assign_ids(parse(FRAGMENT_JSX))
        assert [el.tag for el in ids.values()] == ["h2", "Layout.Section", "p"]

    def test_instrumented_source(self):
        result = instrument(SAMPLE_P)
        assert result.source == "<p style={{color:'#333'}} data-editor-id=\"1\">Sample text</p>"
        assert str(result.addresses[1]) == "p[0]"

    def test_id_map_is_independent_of_addresses(self):
        result = instrument(CARD_JSX)
        assert {i: str(a) for i, a in result.addresses.items()} == {
            1: "div[0]", 2: "h1[0]", 3: "p[0]", 4: "div[1]", 5: "p[1]", 6: "button[0]", 7: "span[0]",
        }

    def test_member_tags_have_no_address(self):
        result = instrument(FRAGMENT_JSX)
        assert result.addresses[2] is None
        assert str(result.addresses[3]) == "p[0]"

    def test_existing_id_is_left_alone(self):
        source = '<div data-editor-id="7"><p>x</p></div>'
        result = instrument(source)
        assert result.source == '<div data-editor-id="7"><p data-editor-id="2">x</p></div>'
        assert str(result.addresses[7]) == "div[0]"
        assert str(result.addresses[2]) == "p[0]"

    def test_instrumented_source_still_parses(self):
        assert parse(instrument(CARD_JSX).source).num_elements == 7


class TestAnalyze:
    def test_lists_every_element(self):
        elements = analyze(CARD_JSX)
        assert len(elements) == 7
        first = elements[0]
        assert (first.editor_id, str(first.address), first.has_style) == (1, "div[0]", True)
        assert elements[2].text == "First paragraph"
        assert not elements[2].has_style


# ---------------------------------------------------------------------------
# Rendering
# ---------------------------------------------------------------------------

class TestRenderer:
    def test_literal_attributes_and_style(self):
        (div,) = StaticRenderer().render(CARD_JSX)
        assert div.attributes["className"] == "card"
        assert div.style == {"padding": "16px", "backgroundColor": "#ffffff"}
        p = [n for n in div.iter_tree() if n.tag == "p"][1]
        assert p.style == {"color": "#333", "fontSize": "14px"}

    def test_fragment_is_flattened(self):
        nodes = StaticRenderer().render(FRAGMENT_JSX)
        assert [n.tag for n in nodes] == ["h2", "Layout.Section"]

    def test_text_whitespace_is_collapsed(self):
        (div,) = StaticRenderer().render("<div>\n  Hello\n  world\n</div>")
        assert div.text_content == "Hello world"


# ---------------------------------------------------------------------------
# Surface and selection
# ---------------------------------------------------------------------------

class TestSurface:
    def test_click_resolves_nearest_instrumented_ancestor(self):
        surface = PreviewSurface()
        surface.render(CARD_JSX)
        p = surface.find(3)
        text = p.children[0]
        assert text.is_text

        selection = surface.click(text)
        assert selection.editor_id == 3
        assert str(selection.address) == "p[0]"
        assert selection.tag_name == "p"
        assert selection.properties["textContent"] == "First paragraph"
        assert selection.is_valid

    def test_computed_properties(self):
        surface = PreviewSurface()
        surface.render(CARD_JSX)
        selection = surface.select(5)
        props = selection.properties
        assert props["color"] == "#333"
        assert props["fontSize"] == "14px"
        assert props["backgroundColor"] == "rgba(0, 0, 0, 0)"
        assert props["display"] == "block"
        assert surface.select(6).properties["display"] == "inline"

    def test_inherited_properties(self):
        surface = PreviewSurface()
        surface.render('<div style={{ color: "red", padding: 4 }}><span>x</span></div>')
        span = surface.select(2)
        assert span.properties["color"] == "red"
        assert span.properties["padding"] == "0px"

    def test_click_outside_clears_selection(self):
        surface = PreviewSurface()
        surface.render(CARD_JSX)
        surface.select(2)
        stray = RenderedNode(tag="div")
        assert surface.click(stray) is None
        assert surface.selection is None
        assert surface.click(None) is None

    def test_rerender_keeps_target_and_refreshes_content(self):
        surface = PreviewSurface()
        surface.render(CARD_JSX)
        target = surface.target
        old = surface.find(2)
        surface.select(2)

        surface.render(CARD_JSX.replace("Welcome", "Hi"))
        assert surface.target is target
        assert surface.render_count == 2
        assert not old.is_connected
        assert surface.selection.node is not old
        assert surface.selection.properties["textContent"] == "Hi"

    def test_selection_dropped_when_element_disappears(self):
        surface = PreviewSurface()
        surface.render(CARD_JSX)
        surface.select(7)
        surface.render(SAMPLE_P)
        assert surface.selection is None

    def test_dom_attribute_name(self):
        surface = PreviewSurface()
        surface.render(SAMPLE_P)
        assert surface.target.children[0].attributes[EDITOR_ID_ATTR] == "1"
