# SPDX-FileCopyrightText: 2020-present Dan Pascu <dan@aethereal.link>
#
# SPDX-License-Identifier: AGPL-3.0-or-later

from collections.abc import Iterable
from dataclasses import dataclass
from typing import Protocol, Self, runtime_checkable

from lxml import etree

from .datamodel import DataAdapterType, xml_string
from .render import CDATA_END, CDATA_START, render_compact, render_pretty, render_pretty_with_prolog, split_cdata

__all__ = 'XMLAttribute', 'XMLElement', 'XMLConvertible', 'to_element'  # noqa: RUF022


# noinspection PyProtectedMember
type ETreeElement = etree._Element  # noqa: SLF001


@runtime_checkable
class XMLConvertible(Protocol):
    """A protocol for objects that know how to convert themselves to an XMLElement"""

    def __xml_element__(self) -> 'XMLElement':
        """Return a new XMLElement that represents the object"""
        ...


@dataclass(frozen=True, slots=True)
class XMLAttribute:
    """
    A name/value pair rendered inside an element's opening tag.

    An attribute with a value of None is an empty attribute, which is
    rendered as a bare token (the name alone).
    """

    name: str
    value: str | None

    @property
    def empty(self) -> bool:
        return self.value is None


class XMLElement:  # noqa: PLW1641
    """
    A named node with optional attributes, child elements and text.

    The attrs, contents and text fields are None until the first value is
    added to them, so an element that never had contents or text added is
    rendered as a self-closing tag. Each mutator has a chained variant that
    returns the element itself:

      element = XMLElement('person').with_attr('age', 28).with_text('John Doe')

    Children are owned by their parent. Adding an XMLElement adds a copy of
    it and adding any other XMLConvertible object adds a copy of the
    element it converts to.
    """

    __slots__ = 'attrs', 'contents', 'name', 'text'

    name: str
    attrs: list[XMLAttribute] | None
    contents: list['XMLElement'] | None
    text: str | None

    def __init__(self, name: str) -> None:
        if not name:
            raise ValueError('the element name cannot be empty')
        self.name = name
        self.attrs = None
        self.contents = None
        self.text = None

    def __repr__(self) -> str:
        return f'{self.__class__.__name__}(name={self.name!r}, attrs={self.attrs!r}, contents={self.contents!r}, text={self.text!r})'

    def __str__(self) -> str:
        return render_compact(self)

    def __eq__(self, other: object) -> bool:
        if isinstance(other, XMLElement):
            return (self.name, self.attrs, self.contents, self.text) == (other.name, other.attrs, other.contents, other.text)
        return NotImplemented

    def __copy__(self) -> Self:
        return self.copy()

    def __deepcopy__(self, memo: dict) -> Self:
        return self.copy()

    @classmethod
    def from_object(cls, value: object) -> 'XMLElement':
        return to_element(value)

    def copy(self) -> Self:
        """Return a deep copy of the element (the attributes are immutable and are shared)"""
        # bypass __init__, the name may have been changed to anything since construction
        instance = self.__class__.__new__(self.__class__)
        instance.name = self.name
        instance.attrs = self.attrs.copy() if self.attrs is not None else None
        instance.contents = [child.copy() for child in self.contents] if self.contents is not None else None
        instance.text = self.text
        return instance

    # In place mutators

    def set_name(self, name: str) -> None:
        self.name = name

    def add_attr(self, name: str, value: object, *, adapter: DataAdapterType | None = None) -> None:
        attribute = XMLAttribute(name, xml_string(value, adapter))
        if self.attrs is None:
            self.attrs = [attribute]
        else:
            self.attrs.append(attribute)

    def add_empty_attr(self, value: object, *, adapter: DataAdapterType | None = None) -> None:
        attribute = XMLAttribute(xml_string(value, adapter), None)
        if self.attrs is None:
            self.attrs = [attribute]
        else:
            self.attrs.append(attribute)

    def add_element(self, element: 'XMLElement | XMLConvertible') -> None:
        child = to_element(element)
        if self.contents is None:
            self.contents = [child]
        else:
            self.contents.append(child)

    def add_elements(self, elements: Iterable['XMLElement | XMLConvertible'], name: str | None = None) -> None:
        for element in elements:
            child = to_element(element)
            if name is not None:
                child.set_name(name)
            if self.contents is None:
                self.contents = [child]
            else:
                self.contents.append(child)

    def set_text(self, text: object, *, adapter: DataAdapterType | None = None) -> None:
        self.text = xml_string(text, adapter)

    # Chained mutators

    def with_name(self, name: str) -> Self:
        self.set_name(name)
        return self

    def with_attr(self, name: str, value: object, *, adapter: DataAdapterType | None = None) -> Self:
        self.add_attr(name, value, adapter=adapter)
        return self

    def with_empty_attr(self, value: object, *, adapter: DataAdapterType | None = None) -> Self:
        self.add_empty_attr(value, adapter=adapter)
        return self

    def with_element(self, element: 'XMLElement | XMLConvertible') -> Self:
        self.add_element(element)
        return self

    def with_elements(self, elements: Iterable['XMLElement | XMLConvertible'], name: str | None = None) -> Self:
        self.add_elements(elements, name)
        return self

    def with_text(self, text: object, *, adapter: DataAdapterType | None = None) -> Self:
        self.set_text(text, adapter=adapter)
        return self

    # Rendering

    def render(self) -> str:
        return render_compact(self)

    def render_pretty(self, newline: str = '\n', indent: str = '\t') -> str:
        return render_pretty(self, newline, indent)

    def render_pretty_with_prolog(self, newline: str = '\n', indent: str = '\t') -> str:
        return render_pretty_with_prolog(self, newline, indent)

    def to_etree(self) -> ETreeElement:
        """
        Build an lxml element with the same XML content.

        CDATA spans in the text are unwrapped into plain character data
        and the text, which always follows the children, becomes the tail
        of the last child. Empty attributes cannot be represented and will
        raise ValueError, as will names that lxml rejects.
        """
        element = etree.Element(self.name)
        for attribute in self.attrs or ():
            if attribute.value is None:
                raise ValueError(f'the empty attribute {attribute.name!r} of {self.name!r} cannot be represented in an etree element')
            element.set(attribute.name, attribute.value)
        for child in self.contents or ():
            element.append(child.to_etree())
        if self.text is not None:
            before, cdata_section = split_cdata(self.text)
            if cdata_section is None:
                text = before
            else:
                cdata, after = cdata_section
                text = before + cdata.removeprefix(CDATA_START).removesuffix(CDATA_END) + after
            if len(element):
                element[-1].tail = text
            else:
                element.text = text
        return element


def to_element(value: 'XMLElement | XMLConvertible') -> XMLElement:
    """Return a new XMLElement for value, which is either an XMLElement or an XMLConvertible (the result is always a copy)"""
    match value:
        case XMLElement():
            return value.copy()
        case XMLConvertible():
            element = value.__xml_element__()
            if not isinstance(element, XMLElement):
                raise TypeError(f'{type(value).__qualname__}.__xml_element__() returned {type(element).__qualname__!r} instead of XMLElement')
            # the converted object may keep the element it returned
            return element.copy()
        case _:
            raise TypeError(f'cannot convert {type(value).__qualname__!r} object to XMLElement')
