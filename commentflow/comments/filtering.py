"""Content filtering for comment text.

- Sanitization: HTML is escaped, a few formatting tags are allowed back
- Bad language: listed words are masked and the text is flagged
- Spam: too many links or spam keywords flag the text
"""

import html
import re
from collections.abc import Iterable

from commentflow.core.logging import get_logger

from .contracts import ContentFilter, FilterVerdict
from .errors import ContentRejectedError


logger = get_logger(__name__)


# Allowed HTML tags (basic formatting only)
ALLOWED_TAGS = {"b", "i", "em", "strong", "code", "pre"}

SPAM_KEYWORDS = {
    "viagra",
    "casino",
    "lottery",
    "click here",
    "free money",
    "buy now",
}

URL_PATTERN = re.compile(r"https?://[^\s]+", re.IGNORECASE)

MAX_URLS = 3


def sanitize_content(content: str) -> str:
    """Escape HTML, keeping only safe formatting tags."""
    escaped = html.escape(content)

    for tag in ALLOWED_TAGS:
        escaped = escaped.replace(f"&lt;{tag}&gt;", f"<{tag}>")
        escaped = escaped.replace(f"&lt;/{tag}&gt;", f"</{tag}>")

    return escaped


def is_spam(content: str) -> bool:
    """Basic spam detection: link count and keyword presence."""
    if len(URL_PATTERN.findall(content)) > MAX_URLS:
        return True
    content_lower = content.lower()
    return any(keyword in content_lower for keyword in SPAM_KEYWORDS)


class KeywordContentFilter:
    """Word-list based content filter."""

    def __init__(self, bad_words: Iterable[str]):
        words = sorted({w.strip().lower() for w in bad_words if w.strip()})
        self._pattern = (
            re.compile(
                r"\b(" + "|".join(re.escape(w) for w in words) + r")\b",
                re.IGNORECASE,
            )
            if words
            else None
        )

    async def check(self, text: str) -> FilterVerdict:
        cleaned = sanitize_content(text)
        flagged = is_spam(text)

        if self._pattern is not None:
            cleaned, hits = self._pattern.subn(lambda m: "*" * len(m.group(0)), cleaned)
            flagged = flagged or hits > 0

        return FilterVerdict(cleaned=cleaned, flagged=flagged)


class ContentFilterGate:
    """Run the content filter and enforce its verdict."""

    def __init__(self, content_filter: ContentFilter, reject_flagged: bool = True):
        self.content_filter = content_filter
        self.reject_flagged = reject_flagged

    async def screen(self, text: str) -> str:
        """Return the text to store.

        Raises:
            ContentRejectedError: The filter flagged the text and flagged
                content is rejected.
        """
        verdict = await self.content_filter.check(text)
        if verdict.flagged:
            logger.info("comment_content_flagged", rejected=self.reject_flagged)
            if self.reject_flagged:
                raise ContentRejectedError
        return verdict.cleaned
