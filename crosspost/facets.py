"""
Rich-text facet detection for Bluesky posts.

Bluesky stores rich-text spans (links, hashtags, mentions) as UTF-8 byte
ranges into the post text. Links are shortened in the posted text because
Bluesky counts the visible text against its length limit, so link facets
point into the shortened text, not the input.

The URL, tag and mention patterns follow the atproto reference
implementation (Copyright (c) 2022-2024 Bluesky PBC, and Contributors,
Apache License 2.0).
"""

from dataclasses import dataclass
from functools import lru_cache
from typing import ClassVar

import regex
import tldextract

LINK_FACET = "app.bsky.richtext.facet#link"
TAG_FACET = "app.bsky.richtext.facet#tag"
MENTION_FACET = "app.bsky.richtext.facet#mention"

URL_DISPLAY_LENGTH = 27

# Soft hyphen, word joiner, hair space, zero-width space/non-joiner/joiner, enclosing keycap
_INVISIBLE = r"\u00ad\u2060\u200a\u200b\u200c\u200d\u20e2"

URL_REGEX = regex.compile(
    r"(^|\s|\()((https?://\S+)|((?P<domain>[a-z][a-z0-9]*(\.[a-z0-9]+)+)\S*))",
    regex.IGNORECASE | regex.MULTILINE,
)

# U+FE0F (emoji presentation selector) can never start a tag
TAG_REGEX = regex.compile(
    r"(^|\s)[#\uff03]"
    rf"((?!\ufe0f)[^\s{_INVISIBLE}]*[^0-9\s\p{{P}}{_INVISIBLE}]+[^\s{_INVISIBLE}]*)?"
)

MENTION_REGEX = regex.compile(
    r"(^|\s|\()(@)([a-zA-Z][a-zA-Z0-9.-]*[a-zA-Z0-9]|[a-zA-Z])(?![a-zA-Z0-9_])"
)

TRAILING_PUNCTUATION_REGEX = regex.compile(r"\p{P}+$")

_tld_extractor = tldextract.TLDExtract(suffix_list_urls=(), cache_dir=None)


@dataclass(frozen=True)
class ByteRange:
    byte_start: int
    byte_end: int

    def to_dict(self) -> dict:
        return {"byteStart": self.byte_start, "byteEnd": self.byte_end}


@dataclass(frozen=True)
class LinkFeature:
    uri: str
    type: ClassVar[str] = LINK_FACET

    def to_dict(self) -> dict:
        return {"$type": self.type, "uri": self.uri}


@dataclass(frozen=True)
class TagFeature:
    tag: str
    type: ClassVar[str] = TAG_FACET

    def to_dict(self) -> dict:
        return {"$type": self.type, "tag": self.tag}


@dataclass(frozen=True)
class MentionFeature:
    """
    A mention of another account.

    `did` holds the handle as written until the Bluesky strategy resolves
    it to the account's DID.
    """

    did: str
    type: ClassVar[str] = MENTION_FACET

    def to_dict(self) -> dict:
        return {"$type": self.type, "did": self.did}


FacetFeature = LinkFeature | TagFeature | MentionFeature


@dataclass(frozen=True)
class Facet:
    index: ByteRange
    features: tuple[FacetFeature, ...]

    def to_dict(self) -> dict:
        return {
            "index": self.index.to_dict(),
            "features": [feature.to_dict() for feature in self.features],
        }


@dataclass(frozen=True)
class FacetDetection:
    """Detected facets and the text they index into."""

    facets: list[Facet]
    text: str


@lru_cache(maxsize=1024)
def has_valid_tld(domain: str) -> bool:
    """True if the last label of `domain` is a known top-level domain."""
    tld = domain.rsplit(".", 1)[-1].lower()
    return bool(tld) and _tld_extractor(f"example.{tld}").suffix == tld


def truncate_url(url: str, max_length: int = URL_DISPLAY_LENGTH) -> str:
    """Shorten `url` for display, ending with "..." when cut."""
    if len(url) <= max_length:
        return url
    return url[: max_length - 3] + "..."


def _byte_range(text: str, start: int, end: int) -> ByteRange:
    return ByteRange(
        byte_start=len(text[:start].encode("utf-8")),
        byte_end=len(text[:end].encode("utf-8")),
    )


def _strip_trailing_punctuation(value: str) -> str:
    return TRAILING_PUNCTUATION_REGEX.sub("", value)


def _detect_links(text: str) -> tuple[list[Facet], str]:
    """Find links, returning their facets and the text with links shortened."""
    facets: list[Facet] = []
    pieces: list[str] = []
    output_bytes = 0
    cursor = 0

    for match in URL_REGEX.finditer(text):
        has_protocol = match.group(3) is not None

        if not has_protocol:
            domain = match.group("domain")
            if not domain or not has_valid_tld(domain):
                continue

        shown = _strip_trailing_punctuation(match.group(2))
        if not shown:
            continue

        uri = shown if has_protocol else f"https://{shown}"
        start = match.start(2)

        before = text[cursor:start]
        display = truncate_url(shown)
        pieces.append(before)
        output_bytes += len(before.encode("utf-8"))

        byte_start = output_bytes
        pieces.append(display)
        output_bytes += len(display.encode("utf-8"))

        facets.append(
            Facet(
                index=ByteRange(byte_start=byte_start, byte_end=output_bytes),
                features=(LinkFeature(uri=uri),),
            )
        )
        cursor = start + len(shown)

    pieces.append(text[cursor:])
    return facets, "".join(pieces)


def _detect_tags(text: str) -> list[Facet]:
    facets: list[Facet] = []

    for match in TAG_REGEX.finditer(text):
        tag = match.group(2)
        if not tag:
            continue

        tag = _strip_trailing_punctuation(tag)
        if not tag:
            continue

        # Span starts at the hash sign
        start = match.start(2) - 1
        end = start + 1 + len(tag)
        facets.append(
            Facet(index=_byte_range(text, start, end), features=(TagFeature(tag=tag),))
        )

    return facets


def _detect_mentions(text: str) -> list[Facet]:
    facets: list[Facet] = []

    for match in MENTION_REGEX.finditer(text):
        handle = match.group(3)
        if not handle:
            continue

        handle = _strip_trailing_punctuation(handle)

        # Span starts at the @ sign, after any whitespace or "(" prefix
        start = match.start(2)
        end = start + 1 + len(handle)
        facets.append(
            Facet(index=_byte_range(text, start, end), features=(MentionFeature(did=handle),))
        )

    return facets


def detect_facets(text: str) -> FacetDetection:
    """
    Detect link, hashtag and mention facets in `text`.

    Links are found first and shortened; hashtags and mentions are then
    found in the shortened text. Every byte range indexes the returned
    text.

    Args:
        text: Plain post text

    Returns:
        FacetDetection with link, tag and mention facets (in that order)
        and the text to post
    """
    link_facets, display_text = _detect_links(text)
    return FacetDetection(
        facets=[
            *link_facets,
            *_detect_tags(display_text),
            *_detect_mentions(display_text),
        ],
        text=display_text,
    )
