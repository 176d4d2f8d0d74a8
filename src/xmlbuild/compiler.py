# SPDX-FileCopyrightText: 2020-present Dan Pascu <dan@aethereal.link>
#
# SPDX-License-Identifier: AGPL-3.0-or-later

"""
Compile role annotated records into XMLElement conversions.

A record is a class whose fields are annotated with one of the role tags
defined here, using typing.Annotated:

  @xml_element('person')
  @dataclass
  class Person:
      age: Annotated[int, Attribute]
      name: Annotated[str, Text]
      nick: Annotated[str | None, Attribute(rename='nickname')] = None

When the record is compiled, the source code of an __xml_element__ method
is generated from its role annotations and installed on the class, which
makes the record an XMLConvertible that can be added to any XMLElement.
Fields without a role tag are ignored.
"""

import logging
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum
from types import NoneType, UnionType
from typing import Annotated, ClassVar, Union, dataclass_transform, get_args, get_origin, get_type_hints

from .datamodel import DataAdapter, DataAdapterType
from .element import XMLElement, to_element
from .exceptions import XMLCompileError

__all__ = (  # noqa: RUF022
    'Role',
    'RoleTag',
    'Attribute',
    'EmptyAttribute',
    'Element',
    'MultiElement',
    'Text',

    'FieldRole',
    'classify_fields',
    'generate_source',
    'compile_record',
    'xml_element',
    'XMLRecord',
)


log = logging.getLogger(__name__)


class Role(Enum):
    # the values define the order in which the fields are added to the element
    ATTRIBUTE = 1
    EMPTY_ATTRIBUTE = 2
    ELEMENT = 3
    MULTI_ELEMENT = 4
    TEXT = 5

    def __repr__(self) -> str:
        return f'{self.__class__.__qualname__}.{self.name}'


@dataclass(frozen=True, kw_only=True)
class RoleTag:
    """Base class for the role tags that classify a record field"""

    role: ClassVar[Role]
    accepts_rename: ClassVar[bool] = False
    accepts_adapter: ClassVar[bool] = False

    # these are validated when the record is compiled, as not all roles accept them
    rename: object = None
    adapter: object = None


class Attribute(RoleTag):
    """The field is an attribute named after the field, unless renamed"""

    role = Role.ATTRIBUTE
    accepts_rename = True
    accepts_adapter = True


class EmptyAttribute(RoleTag):
    """The field value is added as an attribute token without a value"""

    role = Role.EMPTY_ATTRIBUTE
    accepts_adapter = True


class Element(RoleTag):
    """The field value is converted to a child element, optionally renamed"""

    role = Role.ELEMENT
    accepts_rename = True


class MultiElement(RoleTag):
    """The field value is a sequence of items converted to child elements, all optionally renamed"""

    role = Role.MULTI_ELEMENT
    accepts_rename = True


class Text(RoleTag):
    """The field value is the element text"""

    role = Role.TEXT
    accepts_adapter = True


@dataclass(frozen=True)
class FieldRole:
    field: str
    role: Role
    xml_name: str | None
    renamed: bool
    optional: bool
    adapter: DataAdapterType | None = None


def _role_tags(metadata: tuple[object, ...]) -> list[RoleTag]:
    tags = []
    for item in metadata:
        match item:
            case RoleTag() if type(item) is not RoleTag:
                tags.append(item)
            case type() if issubclass(item, RoleTag) and item is not RoleTag:
                tags.append(item())
    return tags


def _unwrap_annotation(annotation: object) -> tuple[tuple[object, ...], bool]:
    """Return the annotation metadata and whether the annotated type is optional"""
    metadata: tuple[object, ...] = ()
    if get_origin(annotation) is Annotated:
        metadata = annotation.__metadata__  # type: ignore[attr-defined]
        annotation = annotation.__origin__  # type: ignore[attr-defined]
    if get_origin(annotation) in (Union, UnionType):
        arguments = get_args(annotation)
        optional = NoneType in arguments
        if not metadata:
            # Annotated[T, tag] | None
            other_arguments = [argument for argument in arguments if argument is not NoneType]
            if len(other_arguments) == 1 and get_origin(other_arguments[0]) is Annotated:
                metadata = other_arguments[0].__metadata__
        return metadata, optional
    return metadata, False


def classify_fields(record_type: type) -> list[FieldRole]:
    """
    Classify the role annotated fields of a record type.

    The result lists the fields grouped by role, in the order in which the
    roles are added to the element, keeping the declaration order within
    each role. Raises XMLCompileError for malformed role annotations.
    """
    record_name = record_type.__qualname__
    try:
        # the record is not bound to its name yet while it is being compiled, but its annotations may refer to it
        annotations = get_type_hints(record_type, localns={record_type.__name__: record_type}, include_extras=True)
    except Exception as exc:  # noqa: BLE001
        raise XMLCompileError(f'cannot resolve the field annotations of {record_name!r}: {exc!s}') from exc

    field_roles = []
    for field, annotation in annotations.items():
        if get_origin(annotation) is ClassVar:
            continue
        metadata, optional = _unwrap_annotation(annotation)
        tags = _role_tags(metadata)
        if not tags:
            continue
        if len(tags) > 1:
            raise XMLCompileError(f'{record_name}.{field}: conflicting role annotations {", ".join(repr(tag) for tag in tags)}')
        tag = tags[0]
        if not field.isidentifier():
            raise XMLCompileError(f'{record_name}.{field}: the field name is not a valid identifier')
        if tag.rename is not None:
            if not tag.accepts_rename:
                raise XMLCompileError(f'{record_name}.{field}: {tag.__class__.__name__} does not accept a rename argument')
            if not isinstance(tag.rename, str) or not tag.rename:
                raise XMLCompileError(f'{record_name}.{field}: the rename argument must be a non-empty string, not {tag.rename!r}')
        if tag.adapter is not None:
            if not tag.accepts_adapter:
                raise XMLCompileError(f'{record_name}.{field}: {tag.__class__.__name__} does not accept an adapter argument')
            if not isinstance(tag.adapter, DataAdapter):
                raise XMLCompileError(f'{record_name}.{field}: the adapter argument must implement the DataAdapter protocol, not {tag.adapter!r}')

        match tag.role:
            case Role.ATTRIBUTE | Role.TEXT:
                xml_name = tag.rename or field
            case Role.ELEMENT | Role.MULTI_ELEMENT:
                xml_name = tag.rename
            case _:
                xml_name = None
        field_roles.append(FieldRole(field=field, role=tag.role, xml_name=xml_name, renamed=tag.rename is not None, optional=optional, adapter=tag.adapter))  # type: ignore[arg-type]

    field_roles.sort(key=lambda field_role: field_role.role.value)
    return field_roles


def _field_statement(field_role: FieldRole, value: str, adapter: str | None) -> str:
    adapter_argument = f', adapter={adapter}' if adapter is not None else ''
    match field_role.role:
        case Role.ATTRIBUTE:
            return f'element.add_attr({field_role.xml_name!r}, {value}{adapter_argument})'
        case Role.EMPTY_ATTRIBUTE:
            return f'element.add_empty_attr({value}{adapter_argument})'
        case Role.ELEMENT if field_role.renamed:
            return f'element.add_element(to_element({value}).with_name({field_role.xml_name!r}))'
        case Role.ELEMENT:
            return f'element.add_element({value})'
        case Role.MULTI_ELEMENT if field_role.renamed:
            return f'element.add_elements({value}, {field_role.xml_name!r})'
        case Role.MULTI_ELEMENT:
            return f'element.add_elements({value})'
        case Role.TEXT:
            return f'element.set_text({value}{adapter_argument})'
        case _:
            raise XMLCompileError(f'unsupported role {field_role.role!r}')


def generate_source(name: str, field_roles: list[FieldRole]) -> tuple[str, dict[str, DataAdapterType]]:
    """
    Generate the source code of the __xml_element__ method.

    Returns the source together with the adapters it references by name,
    which must be available in the globals the source is executed with.
    """
    adapters: dict[str, DataAdapterType] = {}
    lines = [
        'def __xml_element__(self):',
        f'    element = XMLElement({name!r})',
    ]
    for field_role in field_roles:
        if field_role.adapter is not None:
            adapter = f'_adapter_{len(adapters)}'
            adapters[adapter] = field_role.adapter
        else:
            adapter = None
        if field_role.optional:
            lines.append(f'    if (value := self.{field_role.field}) is not None:')
            lines.append(f'        {_field_statement(field_role, "value", adapter)}')
        else:
            lines.append(f'    {_field_statement(field_role, f"self.{field_role.field}", adapter)}')
    lines.append('    return element')
    return '\n'.join(lines) + '\n', adapters


def compile_record[T](record_type: type[T], name: str) -> type[T]:
    """Generate and install the XMLElement conversion for a record type"""
    if not isinstance(record_type, type):
        raise XMLCompileError(f'XML element conversions can only be compiled for classes, not for {record_type!r}')
    if not isinstance(name, str) or not name:
        raise XMLCompileError(f'{record_type.__qualname__!r} requires a non-empty element name, not {name!r}')

    field_roles = classify_fields(record_type)
    source, adapters = generate_source(name, field_roles)

    namespace: dict[str, object] = {}
    code = compile(source, f'<xml_element {record_type.__module__}.{record_type.__qualname__}>', 'exec')
    exec(code, {'XMLElement': XMLElement, 'to_element': to_element, **adapters}, namespace)  # noqa: S102
    function = namespace['__xml_element__']
    function.__qualname__ = f'{record_type.__qualname__}.__xml_element__'  # type: ignore[attr-defined]
    function.__module__ = record_type.__module__  # type: ignore[attr-defined]

    record_type.__xml_element__ = function  # type: ignore[attr-defined]
    record_type._xml_name_ = name  # type: ignore[attr-defined]
    record_type._xml_roles_ = tuple(field_roles)  # type: ignore[attr-defined]
    record_type._xml_source_ = source  # type: ignore[attr-defined]

    log.debug('Compiled %s into <%s> conversion with %d role field(s)', record_type.__qualname__, name, len(field_roles))
    log.debug('Generated source for %s:\n%s', record_type.__qualname__, source)
    return record_type


def xml_element[T](name: str) -> Callable[[type[T]], type[T]]:
    """
    Class decorator that compiles the role annotations of a record.

    The element name is mandatory: @xml_element('person'). The class is
    returned unchanged apart from the installed __xml_element__ method and
    the _xml_name_, _xml_roles_ and _xml_source_ class attributes.
    """
    if not isinstance(name, str) or not name:
        raise XMLCompileError(f'@xml_element requires a non-empty element name argument, as in @xml_element("name"), not {name!r}')

    def decorator(record_type: type[T]) -> type[T]:
        return compile_record(record_type, name)

    return decorator


@dataclass_transform(kw_only_default=True)
class XMLRecord:
    """
    Base class for records that are dataclasses with an XML conversion.

    The element name is given as a class parameter and is inherited by
    subclasses, which are compiled again to include their own fields:

      class Person(XMLRecord, name='person'):
          age: Annotated[int, Attribute]
          name: Annotated[str, Text]

      Person(age=28, name='John Doe')

    Records that do not have a name are abstract and cannot be converted.
    """

    _xml_name_: ClassVar[str | None] = None
    _xml_roles_: ClassVar[tuple[FieldRole, ...]] = ()
    _xml_source_: ClassVar[str | None] = None

    def __init_subclass__(cls, name: str | None = None, **kw: object) -> None:
        super().__init_subclass__(**kw)
        dataclass(kw_only=True)(cls)
        if name is None:
            name = cls._xml_name_
        if name is not None:
            compile_record(cls, name)

    def __xml_element__(self) -> XMLElement:
        raise TypeError(f'Cannot convert abstract record {self.__class__.__qualname__!r} that does not specify an element name')
