# SPDX-FileCopyrightText: 2020-present Dan Pascu <dan@aethereal.link>
#
# SPDX-License-Identifier: AGPL-3.0-or-later

"""
Text serialization of XMLElement trees.

Two layouts are produced: a compact one on a single line and a pretty one
where every child and the text payload go on their own line, indented by
one unit relative to the parent. Text content is escaped, except for the
first CDATA span found in it which is emitted as is. Attribute values are
emitted verbatim.
"""

from collections.abc import Iterator
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .element import XMLAttribute, XMLElement

__all__ = 'XML_PROLOG', 'escape_text', 'split_cdata', 'render_text', 'render_compact', 'render_pretty', 'render_pretty_with_prolog'  # noqa: RUF022


XML_PROLOG = '<?xml version="1.0" encoding="UTF-8"?>'

CDATA_START = '<![CDATA['
CDATA_END = ']]>'

# the ampersand must come first, otherwise the entities introduced by the other substitutions would be escaped again
_entity_substitutions = (
    ('&', '&amp;'),
    ('<', '&lt;'),
    ('>', '&gt;'),
    ("'", '&apos;'),
    ('"', '&quot;'),
)


def escape_text(text: str) -> str:
    for character, entity in _entity_substitutions:
        text = text.replace(character, entity)
    return text


def split_cdata(text: str) -> tuple[str, tuple[str, str] | None]:
    """
    Split text around its first CDATA span.

    Returns (before, (cdata, after)) where cdata includes both delimiters,
    or (text, None) if there is no complete CDATA span in text.
    """
    start = text.find(CDATA_START)
    if start == -1:
        return text, None
    end = text.find(CDATA_END, start)
    if end == -1:
        return text, None
    end += len(CDATA_END)
    return text[:start], (text[start:end], text[end:])


def render_text(text: str) -> str:
    before, cdata_section = split_cdata(text)
    if cdata_section is None:
        return escape_text(before)
    cdata, after = cdata_section
    return escape_text(before) + cdata + escape_text(after)


def _render_attributes(attributes: 'list[XMLAttribute] | None') -> str:
    if not attributes:
        return ''
    return ''.join(f' {attribute.name}' if attribute.value is None else f' {attribute.name}="{attribute.value}"' for attribute in attributes)


def _lines(block: str) -> Iterator[str]:
    # Lines end in either '\n' or '\r\n'. A block that ends with a line ending
    # does not produce an empty last line and an empty block has no lines.
    if not block:
        return
    *terminated_lines, last_line = block.split('\n')
    for line in terminated_lines:
        yield line.removesuffix('\r')
    if last_line:
        yield last_line


def render_compact(element: 'XMLElement') -> str:
    start_tag = f'<{element.name}{_render_attributes(element.attrs)}'
    if element.contents is None and element.text is None:
        return start_tag + '/>'
    parts = [start_tag, '>']
    if element.contents is not None:
        parts.extend(render_compact(child) for child in element.contents)
    if element.text is not None:
        parts.append(render_text(element.text))
    parts.append(f'</{element.name}>')
    return ''.join(parts)


def render_pretty(element: 'XMLElement', newline: str = '\n', indent: str = '\t') -> str:
    start_tag = f'<{element.name}{_render_attributes(element.attrs)}'
    if element.contents is None and element.text is None:
        return start_tag + '/>'
    block = []
    if element.contents is not None:
        for child in element.contents:
            block.append(render_pretty(child, newline, indent))
            block.append(newline)
    if element.text is not None:
        block.append(render_text(element.text))
    # each enclosing call indents the lines of its children again, so nesting compounds the indentation
    body = ''.join(f'{newline}{indent}{line}' for line in _lines(''.join(block)))
    return f'{start_tag}>{body}{newline}</{element.name}>'


def render_pretty_with_prolog(element: 'XMLElement', newline: str = '\n', indent: str = '\t') -> str:
    return f'{XML_PROLOG}{newline}{render_pretty(element, newline, indent)}'
