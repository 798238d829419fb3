"""
Tests for per-recipient content rendering.

Verifies that build_tracking:
- Places the open pixel and the unsubscribe footer before </body>
- Routes every trackable link through the click tracker
- Leaves anchors, mailto: and tel: links untouched
- Keeps the original destination recoverable from the `u` parameter
- Is a pure function of its inputs
"""

import re
from urllib.parse import parse_qs, urlparse

from crm_campaigns.services.content import (
    DEFAULT_BODY_TEXT,
    TrackingTokens,
    build_tracking,
    convert_text_to_html,
    default_bodies,
    wrap_in_email_template,
)

BASE_URL = "https://crm.example.com"
TOKENS = TrackingTokens(open_token="open-tok", click_token="click-tok", unsub_token="unsub-tok")

HREF_RE = re.compile(r"""(?<![\w:-])href=["']([^"']+)["']""")


def _hrefs(html: str):
    return HREF_RE.findall(html)


def _destination(tracked_href: str) -> str:
    return parse_qs(urlparse(tracked_href).query)["u"][0]


class TestBuildTracking:

    def setup_method(self):
        self.html = (
            "<html><body>"
            '<p>Hello</p><a href="https://example.com/a?x=1&y=two words">A</a>'
            "</body></html>"
        )
        self.text = "Hello"

    # ------------------------------------------------------------------ #
    # Pixel and footer
    # ------------------------------------------------------------------ #

    def test_pixel_inserted_before_body_close(self):
        result = build_tracking(self.html, self.text, TOKENS, BASE_URL)

        pixel_src = f"{BASE_URL}/tracking/open/open-tok"
        assert pixel_src in result.html
        assert result.html.index(pixel_src) < result.html.lower().index("</body>")

    def test_body_close_matched_case_insensitively(self):
        html = "<HTML><BODY><p>Hi</p></BODY></HTML>"
        result = build_tracking(html, "", TOKENS, BASE_URL)

        assert result.html.endswith("</BODY></HTML>")
        assert "/tracking/open/open-tok" in result.html

    def test_document_without_body_gets_pixel_and_footer_appended(self):
        result = build_tracking("<p>Fragment</p>", "", TOKENS, BASE_URL)

        assert result.html.startswith("<p>Fragment</p>")
        assert "/tracking/open/open-tok" in result.html
        assert "/unsubscribe/unsub-tok" in result.html

    def test_footer_follows_pixel(self):
        result = build_tracking(self.html, self.text, TOKENS, BASE_URL)

        pixel_at = result.html.index("/tracking/open/open-tok")
        footer_at = result.html.index("/unsubscribe/unsub-tok")
        body_close_at = result.html.lower().index("</body>")
        assert pixel_at < footer_at < body_close_at

    def test_unsubscribe_link_is_not_click_tracked(self):
        result = build_tracking(self.html, self.text, TOKENS, BASE_URL)

        assert f'href="{BASE_URL}/unsubscribe/unsub-tok"' in result.html

    def test_text_body_gets_unsubscribe_line(self):
        result = build_tracking(self.html, "Plain body", TOKENS, BASE_URL)

        assert result.text == f"Plain body\n\n---\nUnsubscribe: {BASE_URL}/unsubscribe/unsub-tok"

    # ------------------------------------------------------------------ #
    # Link rewriting
    # ------------------------------------------------------------------ #

    def test_links_rewritten_and_destination_round_trips(self):
        original = "https://example.com/a?x=1&y=two words"
        result = build_tracking(self.html, self.text, TOKENS, BASE_URL)

        tracked = [h for h in _hrefs(result.html) if "/tracking/click/" in h]
        assert len(tracked) == 1
        assert tracked[0].startswith(f"{BASE_URL}/tracking/click/click-tok?u=")
        assert _destination(tracked[0]) == original
        assert original not in _hrefs(result.html)

    def test_single_quoted_and_uppercase_href(self):
        html = "<body><a HREF='https://example.com/b'>B</a></body>"
        result = build_tracking(html, "", TOKENS, BASE_URL)

        assert "HREF='https://crm.example.com/tracking/click/click-tok?u=" in result.html
        tracked = [h for h in _hrefs(result.html.replace("HREF", "href")) if "/tracking/click/" in h]
        assert _destination(tracked[0]) == "https://example.com/b"

    def test_exempt_links_untouched(self):
        html = (
            "<body>"
            '<a href="#top">Top</a>'
            '<a href="mailto:sales@example.com">Mail</a>'
            '<a href="tel:+15550100">Call</a>'
            '<a href="https://example.com/c">C</a>'
            '<div data-href="https://example.com/d"></div>'
            '<use xlink:href="#icon"/>'
            "</body>"
        )
        result = build_tracking(html, "", TOKENS, BASE_URL)
        hrefs = _hrefs(result.html)

        assert "#top" in hrefs
        assert "mailto:sales@example.com" in hrefs
        assert "tel:+15550100" in hrefs
        assert sum("/tracking/click/" in h for h in hrefs) == 1
        assert 'data-href="https://example.com/d"' in result.html
        assert 'xlink:href="#icon"' in result.html

    def test_every_link_uses_the_same_click_token(self):
        html = '<body><a href="https://a.example.com">A</a><a href="https://b.example.com">B</a></body>'
        result = build_tracking(html, "", TOKENS, BASE_URL)

        tracked = [h for h in _hrefs(result.html) if "/tracking/click/" in h]
        assert [_destination(h) for h in tracked] == ["https://a.example.com", "https://b.example.com"]
        assert all("/tracking/click/click-tok?" in h for h in tracked)

    # ------------------------------------------------------------------ #
    # Purity
    # ------------------------------------------------------------------ #

    def test_deterministic_for_same_inputs(self):
        first = build_tracking(self.html, self.text, TOKENS, BASE_URL)
        second = build_tracking(self.html, self.text, TOKENS, BASE_URL)

        assert first == second

    def test_different_tokens_give_different_output(self):
        other = TrackingTokens(open_token="o2", click_token="c2", unsub_token="u2")
        first = build_tracking(self.html, self.text, TOKENS, BASE_URL)
        second = build_tracking(self.html, self.text, other, BASE_URL)

        assert first.html != second.html
        assert "open-tok" not in second.html

    def test_trailing_slash_on_base_url_ignored(self):
        result = build_tracking(self.html, self.text, TOKENS, BASE_URL + "/")

        assert f"{BASE_URL}/tracking/open/open-tok" in result.html
        assert "//tracking" not in result.html.replace("https://", "")


class TestTextToHtml:

    def test_escapes_markup(self):
        assert convert_text_to_html("a < b & c > d") == "a &lt; b &amp; c &gt; d"

    def test_links_bare_urls(self):
        html = convert_text_to_html("Visit https://example.com/x now")

        assert '<a href="https://example.com/x"' in html
        assert ">https://example.com/x</a> now" in html

    def test_newlines_become_breaks(self):
        assert convert_text_to_html("one\ntwo\r\nthree") == "one<br>two<br>three"

    def test_wrap_in_email_template(self):
        html = wrap_in_email_template("<p>Body</p>", subject="Hello")

        assert "<p>Body</p>" in html
        assert "<title>Hello</title>" in html
        assert "</body>" in html


class TestDefaultBodies:

    def test_html_kept_when_given(self):
        html, text = default_bodies("<p>x</p>", "x")
        assert (html, text) == ("<p>x</p>", "x")

    def test_html_derived_from_text(self):
        html, text = default_bodies(None, "Line 1\nLine 2")

        assert text == "Line 1\nLine 2"
        assert "Line 1<br>Line 2" in html
        assert "</body>" in html

    def test_missing_text_gets_placeholder(self):
        html, text = default_bodies(None, None)

        assert text == DEFAULT_BODY_TEXT
        assert DEFAULT_BODY_TEXT in html
