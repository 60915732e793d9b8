"""
Tests for key normalization and HTML sanitizing helpers.
"""

from daggerheart_sync.text.normalize import (
    collapse_adjacent_inline_tags,
    extract_plain_text,
    extract_visible_text,
    fragment_has_question,
    has_visible_text,
    normalize_key,
    sanitize_html,
    sanitize_name,
    strip_links,
    unwrap_single_paragraph,
)


class TestNormalizeKey:
    """Tests for language-neutral lookup keys."""

    def test_strips_punctuation_and_case(self):
        """Spaces, brackets and case do not matter."""
        assert normalize_key("Rally (Level 5)") == "rallylevel5"

    def test_quote_variants_collapse(self):
        """Curly and straight apostrophes give the same key."""
        assert normalize_key("Partner’s in Arms") == normalize_key("Partner's in Arms") == "partnersinarms"

    def test_non_latin_name_has_no_key(self):
        """A name written only in Cyrillic yields None."""
        assert normalize_key("Бард") is None

    def test_empty_input(self):
        assert normalize_key("") is None
        assert normalize_key(None) is None


class TestStripLinks:
    """Tests for link removal."""

    def test_html_link_keeps_text(self):
        """Anchor tags are unwrapped and stray spaces before punctuation removed."""
        assert strip_links('<a href="https://x">Text</a> , more') == "Text, more"

    def test_markdown_link_keeps_label(self):
        assert strip_links("See [Label](https://x/y)") == "See Label"

    def test_hash_placeholder(self):
        assert strip_links("#{Foo}#") == "Foo"

    def test_class_attribute_removed(self):
        assert strip_links('<span class="x">a</span>') == "<span>a</span>"

    def test_secret_section_class_kept(self):
        html = '<p class="x">a</p><section class="secret"><p class="y">b</p></section>'
        assert strip_links(html) == '<p>a</p><section class="secret"><p>b</p></section>'
        assert sanitize_html(html) == '<p>a</p><section class="secret"><p>b</p></section>'


class TestCollapseAdjacentInlineTags:
    """Tests for merging adjacent emphasis runs."""

    def test_joins_with_space(self):
        assert collapse_adjacent_inline_tags("<em>a</em> <em>b</em>", "em") == "<em>a b</em>"

    def test_no_space_after_opening_bracket(self):
        assert collapse_adjacent_inline_tags("<em>(</em> <em>b</em>", "em") == "<em>(b</em>"

    def test_no_space_before_punctuation(self):
        assert collapse_adjacent_inline_tags("<em>a</em> <em>, b</em>", "em") == "<em>a, b</em>"

    def test_nbsp_is_kept(self):
        assert collapse_adjacent_inline_tags("<em>a</em>&nbsp;<em>b</em>", "em") == "<em>a&nbsp;b</em>"

    def test_repeated_runs(self):
        """Three runs collapse into one."""
        html = "<strong>a</strong> <strong>b</strong> <strong>c</strong>"
        assert collapse_adjacent_inline_tags(html, "strong") == "<strong>a b c</strong>"


class TestSanitize:
    """Tests for sanitize_html and sanitize_name."""

    def test_sanitize_html_none(self):
        assert sanitize_html(None) is None

    def test_sanitize_html_trims(self):
        assert sanitize_html("  <p>x</p> ") == "<p>x</p>"

    def test_sanitize_name(self):
        assert sanitize_name(' <a href="u">Бард</a> ') == "Бард"


class TestTextFingerprints:
    """Tests for the plain and visible text extractors."""

    def test_plain_text_ignores_whitespace_and_case(self):
        assert extract_plain_text("<p>Hello  World</p>") == extract_plain_text("<p>hello</p>\n<p>world</p>")

    def test_visible_text(self):
        assert extract_visible_text("<p>a</p><p>b&nbsp;c</p>") == "a b c"

    def test_has_visible_text(self):
        assert has_visible_text("<p>x</p>")
        assert not has_visible_text("<p>&nbsp;</p>")
        assert not has_visible_text(None)

    def test_fragment_has_question(self):
        assert fragment_has_question("<p>Why?</p>")
        assert not fragment_has_question("<p>Because.</p>")


class TestUnwrapSingleParagraph:
    """Tests for unwrap_single_paragraph."""

    def test_single_paragraph(self):
        assert unwrap_single_paragraph("<p>x <em>y</em></p>") == "x <em>y</em>"

    def test_several_paragraphs_unchanged(self):
        assert unwrap_single_paragraph("<p>a</p><p>b</p>") == "<p>a</p><p>b</p>"

    def test_empty(self):
        assert unwrap_single_paragraph(None) == ""
