# SPDX-FileCopyrightText: 2020-present Dan Pascu <dan@aethereal.link>
#
# SPDX-License-Identifier: AGPL-3.0-or-later

from .__info__ import __version__
from .compiler import Attribute, Element, EmptyAttribute, MultiElement, Text, XMLRecord, xml_element
from .element import XMLAttribute, XMLConvertible, XMLElement, to_element
from .exceptions import XMLCompileError
from .render import XML_PROLOG

__all__ = (  # noqa: RUF022
    '__version__',

    'XMLElement',
    'XMLAttribute',
    'XMLConvertible',
    'to_element',
    'XML_PROLOG',

    'xml_element',
    'XMLRecord',
    'Attribute',
    'EmptyAttribute',
    'Element',
    'MultiElement',
    'Text',

    'XMLCompileError',
)
