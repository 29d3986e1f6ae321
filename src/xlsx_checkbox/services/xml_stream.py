"""Streaming parse sessions over package parts.

Every part is read through its own lxml ``iterparse`` session: the part is
opened, events are pulled until the caller is done, and the stream is closed
when the ``with`` block exits. Nested resolutions open nested sessions and
never share a parser with the enclosing pass.

Element and attribute names are compared on their lower-cased local name,
so ``xdr:row``, ``{ns}row`` and ``ROW`` all match ``"row"``.
"""

from __future__ import annotations

import zipfile
from collections.abc import Iterator
from contextlib import contextmanager

from lxml import etree

from xlsx_checkbox.package import PartHandle
from xlsx_checkbox.utils.exceptions import MalformedDocumentError

XmlEvent = tuple[str, etree._Element]


def local_name(tag: str) -> str:
    """Lower-cased local part of a Clark-notation tag or attribute name."""
    return tag.rpartition("}")[2].lower()


def find_attribute(elem: etree._Element, name: str) -> str | None:
    """Value of the first attribute whose local name matches ``name``."""
    for key, value in elem.attrib.items():
        if local_name(key) == name:
            return value
    return None


def _events(
    part: PartHandle, events: tuple[str, ...], huge_tree: bool
) -> Iterator[XmlEvent]:
    with part.open() as stream:
        context = etree.iterparse(
            stream,
            events=events,
            resolve_entities=False,
            no_network=True,
            huge_tree=huge_tree,
        )
        try:
            for event, elem in context:
                yield event, elem
                if event == "end":
                    # drop finished subtrees so memory stays flat
                    elem.clear(keep_tail=True)
                    while elem.getprevious() is not None:
                        del elem.getparent()[0]
        except etree.XMLSyntaxError as exc:
            raise MalformedDocumentError(
                f"Invalid XML in {part.name}: {exc}", part_name=part.name
            ) from exc
        except zipfile.BadZipFile as exc:
            raise MalformedDocumentError(
                f"Corrupt package member {part.name}: {exc}", part_name=part.name
            ) from exc


@contextmanager
def stream_part(
    part: PartHandle,
    events: tuple[str, ...] = ("start", "end"),
    huge_tree: bool = False,
) -> Iterator[Iterator[XmlEvent]]:
    """Open a fresh parse session over ``part``.

    Usage:
        with stream_part(part) as events:
            for event, elem in events:
                ...

    Leaving the block early (break/return) closes both the parser and the
    underlying stream.

    Args:
        part: The part to stream.
        events: lxml iterparse events to report.
        huge_tree: Disable lxml's tree size limits.

    Yields:
        Iterator of ``(event, element)`` pairs.

    Raises:
        MalformedDocumentError: On XML syntax errors or corrupt members.
        PartNotFoundError: If the part does not exist.
    """
    iterator = _events(part, events, huge_tree)
    try:
        yield iterator
    finally:
        iterator.close()
