# crm_campaigns/services/content.py
"""
Per-recipient content rendering.

`build_tracking` takes the campaign's canonical bodies and one job's tokens
and produces the message that job's recipient receives:

1. a hidden 1x1 open pixel right before `</body>`
2. every link routed through the click tracker
3. an unsubscribe footer after the pixel
4. an `Unsubscribe:` line appended to the text body

It is a pure function of its inputs; the campaign row is never touched.
"""

import html as html_lib
import re
from dataclasses import dataclass
from typing import Optional
from urllib.parse import quote

from crm_campaigns.core.templates import render_template

DEFAULT_SUBJECT = "Untitled Campaign"
DEFAULT_BODY_TEXT = "Draft email..."

# Link targets left untouched by the click rewriter
UNTRACKED_PREFIXES = ("#", "mailto:", "tel:")

_BODY_CLOSE_RE = re.compile(r"</body\s*>", re.IGNORECASE)
_HREF_RE = re.compile(r"""(?<![\w:-])(href\s*=\s*)(["'])(.*?)\2""", re.IGNORECASE | re.DOTALL)
_URL_RE = re.compile(r"(https?://[^\s]+)")

OPEN_PIXEL_HTML = (
    '<img src="{src}" width="1" height="1" alt="" '
    'style="display:none;width:1px;height:1px;border:0;" />'
)


@dataclass(frozen=True)
class TrackingTokens:
    open_token: str
    click_token: str
    unsub_token: str

    @classmethod
    def from_job(cls, job) -> "TrackingTokens":
        return cls(
            open_token=job.open_token,
            click_token=job.click_token,
            unsub_token=job.unsub_token,
        )


@dataclass(frozen=True)
class TrackedContent:
    html: str
    text: str


def open_url(base_url: str, token: str) -> str:
    return f"{base_url.rstrip('/')}/tracking/open/{token}"


def click_url(base_url: str, token: str, destination: str) -> str:
    return f"{base_url.rstrip('/')}/tracking/click/{token}?u={quote(destination, safe='')}"


def unsubscribe_url(base_url: str, token: str) -> str:
    return f"{base_url.rstrip('/')}/unsubscribe/{token}"


def is_tracked_link(url: str) -> bool:
    stripped = url.strip()
    return bool(stripped) and not stripped.lower().startswith(UNTRACKED_PREFIXES)


def _insert_before_body_close(document: str, snippet: str) -> str:
    """Insert `snippet` before the first `</body>`, or append it if there is none."""
    match = _BODY_CLOSE_RE.search(document)
    if match is None:
        return document + snippet
    return document[: match.start()] + snippet + document[match.start():]


def rewrite_links(document: str, click_token: str, base_url: str) -> str:
    def _replace(match: re.Match) -> str:
        attr, quote_char, url = match.group(1), match.group(2), match.group(3)
        if not is_tracked_link(url):
            return match.group(0)
        return f"{attr}{quote_char}{click_url(base_url, click_token, url)}{quote_char}"

    return _HREF_RE.sub(_replace, document)


def build_tracking(html: str, text: str, tokens: TrackingTokens, base_url: str) -> TrackedContent:
    """
    Render one recipient's copy of a campaign.

    Args:
        html: The campaign's canonical HTML body
        text: The campaign's canonical plain-text body
        tokens: The recipient job's open/click/unsubscribe tokens
        base_url: Public base URL of this service

    Returns:
        TrackedContent with the rewritten html and text bodies
    """
    pixel = OPEN_PIXEL_HTML.format(src=open_url(base_url, tokens.open_token))
    tracked_html = _insert_before_body_close(html, pixel)

    # Links are rewritten before the footer goes in so the unsubscribe link
    # itself is never routed through the click tracker.
    tracked_html = rewrite_links(tracked_html, tokens.click_token, base_url)

    unsub = unsubscribe_url(base_url, tokens.unsub_token)
    footer = render_template("unsubscribe_footer.html", unsubscribe_url=unsub)
    tracked_html = _insert_before_body_close(tracked_html, footer)

    tracked_text = f"{text}\n\n---\nUnsubscribe: {unsub}"
    return TrackedContent(html=tracked_html, text=tracked_text)


def convert_text_to_html(text: str) -> str:
    """Escape plain text, link bare http(s) URLs and turn newlines into <br>."""
    escaped = html_lib.escape(text, quote=False)
    linked = _URL_RE.sub(
        r'<a href="\1" style="color: #2563eb; text-decoration: underline;">\1</a>', escaped
    )
    return linked.replace("\r\n", "\n").replace("\n", "<br>")


def wrap_in_email_template(content_html: str, subject: Optional[str] = None) -> str:
    return render_template("email_layout.html", content=content_html, subject=subject)


def default_bodies(
    body_html: Optional[str], body_text: Optional[str], subject: Optional[str] = None
) -> tuple:
    """
    Fill in whichever campaign bodies were left out.

    Returns:
        (body_html, body_text)
    """
    text = body_text if body_text and body_text.strip() else DEFAULT_BODY_TEXT
    if body_html and body_html.strip():
        return body_html, text
    return wrap_in_email_template(convert_text_to_html(text), subject=subject), text
