"""
Unit tests for the entity / escape decoders in utils.text.
"""

from utils.text import (
    collapse_whitespace,
    decode_backslash_escapes,
    decode_html_entities,
    host_label,
    strip_tags,
)


class TestDecodeHtmlEntities:
    """Tests for decode_html_entities()"""

    def test_decodes_supported_entities(self):
        raw = "Q&amp;A &quot;live&quot; &#39;24 &lt;b&gt;&nbsp;end"
        assert decode_html_entities(raw) == "Q&A \"live\" '24 <b> end"

    def test_leaves_other_entities_alone(self):
        assert decode_html_entities("caf&eacute; &#8212;") == "caf&eacute; &#8212;"

    def test_empty_and_none(self):
        assert decode_html_entities("") == ""
        assert decode_html_entities(None) == ""


class TestDecodeBackslashEscapes:
    """Tests for decode_backslash_escapes()"""

    def test_unicode_escape(self):
        assert decode_backslash_escapes("Caf\\u00e9 \\u0026 Bar") == "Café & Bar"

    def test_newline_and_carriage_return(self):
        assert decode_backslash_escapes("line one\\r\\nline two") == "line one\nline two"

    def test_slash_and_quote(self):
        assert decode_backslash_escapes('https:\\/\\/x.com \\"quoted\\"') == 'https://x.com "quoted"'

    def test_empty_and_none(self):
        assert decode_backslash_escapes("") == ""
        assert decode_backslash_escapes(None) == ""


class TestStripTags:
    """Tests for strip_tags()"""

    def test_removes_script_and_style_bodies(self):
        html = "<p>Hi</p><script>var x = '<b>no</b>';</script><style>p{}</style><b>there</b>"
        assert collapse_whitespace(strip_tags(html)) == "Hi there"

    def test_none(self):
        assert strip_tags(None).strip() == ""


class TestHostLabel:
    """Tests for host_label()"""

    def test_strips_www(self):
        assert host_label("https://www.govlove.example.com/feed.xml") == "govlove"

    def test_subdomain(self):
        assert host_label("https://feeds.megaphone.fm/abc") == "feeds"

    def test_not_a_url(self):
        assert host_label("not a url") == ""
