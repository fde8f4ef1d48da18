"""Bracket annotation grammar.

Tags are embedded in free text as ``[LEFT op RIGHT]`` where either side may
be omitted, e.g. ``[**R123**:]``, ``[D7=>R123]`` or ``[=>R124]``.
"""

from __future__ import annotations

import re
from typing import Iterator, NamedTuple

DEFINE_OPS = (":", ":=")
PARTIAL_OP = "?="
COVER_OP = "=>"

TAG_RE = re.compile(
    r"""
    \[
    \**
    (?P<left>[A-Z][A-Z0-9]{0,2}[0-9.]{0,8})?
    \**
    [ ]?
    (?P<op>:=|\?=|:|=>)
    [ ]?
    \**
    (?P<right>[A-Z][A-Z0-9]{0,2}[0-9.]{0,8})?
    \**
    \]
    """,
    re.VERBOSE,
)
# An annotation may carry a link target, e.g. "[D10?=](@req)".
ANNOTATION_RE = re.compile(TAG_RE.pattern + r"(?:\([^)]*\))?", re.VERBOSE)
TAG_ID_RE = re.compile(r"[A-Z][A-Z0-9]{0,2}[0-9.]{0,8}")
TYPE_RE = re.compile(r"^[A-Z]*")


class TagRef(NamedTuple):
    left: str | None
    op: str
    right: str | None


def extract_tags(line: str) -> Iterator[TagRef]:
    """Yield the tag references in ``line`` from left to right.

    An omitted tag is reported as ``None``; resolving it is up to the caller.
    """
    for match in TAG_RE.finditer(line):
        yield TagRef(match.group("left"), match.group("op"), match.group("right"))


def strip_tags(line: str) -> str:
    text = ANNOTATION_RE.sub("", line).rstrip()
    if text.endswith("\\"):
        text = text[:-1]
    return text.strip()


def tag_type(tag: str) -> str:
    return TYPE_RE.match(tag).group(0)


def tag_id(tag: str) -> str:
    return tag[len(tag_type(tag)) :]


def is_anonymous(tag: str) -> bool:
    return tag_id(tag) == ""


def is_definition_op(op: str) -> bool:
    return op in DEFINE_OPS or op == PARTIAL_OP
