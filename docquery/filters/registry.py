#!/usr/bin/env python3
"""
Property exposure registry.

Each entity type declares, once, which of its properties callers may filter
on, under which public name, and whether values need date coercion. The
parser only reads from a registry; nothing mutates it after build().
"""

from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from types import MappingProxyType
from typing import Any, Dict, Iterator, Mapping, Optional, Union

import yaml

from ..config import DEFAULT_IDENTITY_FIELD
from ..exceptions import RegistryError


class ValueType(Enum):
    """Coercion applied to a property's filter values."""
    PLAIN = "plain"
    DATE = "date"

    @classmethod
    def parse(cls, value: Union[str, 'ValueType', None]) -> 'ValueType':
        if value is None:
            return cls.PLAIN
        if isinstance(value, cls):
            return value
        for member in cls:
            if member.value == str(value).lower():
                return member
        raise RegistryError(f"Unknown property type: {value!r}")


@dataclass(frozen=True)
class PropertyDescriptor:
    """
    Exposure metadata for one property.

    Attributes:
        public_name: Name callers use in filters
        canonical_name: Storage field name the public name maps to
        value_type: Coercion applied to filter values
        filterable: Whether callers may filter on the property at all
    """
    public_name: str
    canonical_name: str
    value_type: ValueType = ValueType.PLAIN
    filterable: bool = True

    @property
    def is_date(self) -> bool:
        return self.value_type is ValueType.DATE


class PropertyRegistry:
    """Read-only lookup table from public property names to descriptors."""

    def __init__(self,
                 entity: str,
                 properties: Mapping[str, PropertyDescriptor],
                 identity_field: str = DEFAULT_IDENTITY_FIELD):
        self.entity = entity
        self.identity_field = identity_field
        self._properties = MappingProxyType(dict(properties))
        self._by_canonical = MappingProxyType({
            prop.canonical_name: prop for prop in properties.values()
        })

    def lookup(self, public_name: str) -> Optional[PropertyDescriptor]:
        """Get the descriptor exposed under a public name."""
        return self._properties.get(public_name)

    def resolve(self, name: str) -> Optional[PropertyDescriptor]:
        """
        Get the descriptor for a public or canonical name.

        Public names win; canonical names are accepted so that a filter that
        already went through the parser can be parsed again unchanged.
        """
        return self._properties.get(name) or self._by_canonical.get(name)

    def filterable(self) -> Iterator[PropertyDescriptor]:
        """Iterate over the descriptors callers may filter on."""
        return (prop for prop in self._properties.values() if prop.filterable)

    def __contains__(self, public_name: object) -> bool:
        return public_name in self._properties

    def __len__(self) -> int:
        return len(self._properties)

    def __repr__(self):
        return f"PropertyRegistry({self.entity!r}, {sorted(self._properties)})"

    @classmethod
    def builder(cls, entity: str, identity_field: str = DEFAULT_IDENTITY_FIELD) -> 'RegistryBuilder':
        return RegistryBuilder(entity, identity_field)

    @classmethod
    def from_dict(cls, entity: str, declaration: Mapping[str, Any]) -> 'PropertyRegistry':
        """
        Build a registry from a plain declaration.

        Args:
            entity: Entity type name
            declaration: Either a mapping of public name -> options, or a
                mapping with 'properties' and an optional 'identity_field'.
                Options are 'name', 'type' and 'filterable'; a bare None
                value exposes the property with defaults.

        Returns:
            Built registry

        Raises:
            RegistryError: If the declaration is malformed
        """
        if not isinstance(declaration, Mapping):
            raise RegistryError(f"Declaration for '{entity}' must be a mapping")

        identity_field = DEFAULT_IDENTITY_FIELD
        properties = declaration
        if 'properties' in declaration:
            properties = declaration['properties'] or {}
            identity_field = declaration.get('identity_field') or DEFAULT_IDENTITY_FIELD
            if not isinstance(properties, Mapping):
                raise RegistryError(f"'properties' of '{entity}' must be a mapping")

        builder = RegistryBuilder(entity, identity_field)
        for public_name, options in properties.items():
            options = options or {}
            if not isinstance(options, Mapping):
                raise RegistryError(
                    f"Options for '{entity}.{public_name}' must be a mapping, "
                    f"got {type(options).__name__}"
                )
            unknown = set(options) - {'name', 'type', 'filterable'}
            if unknown:
                raise RegistryError(
                    f"Unknown options for '{entity}.{public_name}': {sorted(unknown)}"
                )
            builder.expose(
                str(public_name),
                name=options.get('name'),
                type=options.get('type'),
                filterable=bool(options.get('filterable', True)),
            )
        return builder.build()


class RegistryBuilder:
    """
    Fluent builder for a PropertyRegistry.

    Example:
        files = (PropertyRegistry.builder('files')
                 .expose('name')
                 .expose('created_at', type='date')
                 .expose('typeName', name='type_name')
                 .expose('internal', filterable=False)
                 .build())
    """

    def __init__(self, entity: str, identity_field: str = DEFAULT_IDENTITY_FIELD):
        self.entity = entity
        self.identity_field = identity_field
        self._properties: Dict[str, PropertyDescriptor] = {}

    def expose(self,
               public_name: str,
               *,
               name: Optional[str] = None,
               type: Union[str, ValueType, None] = None,
               filterable: bool = True) -> 'RegistryBuilder':
        """
        Declare one property.

        Args:
            public_name: Name callers use
            name: Canonical storage name (defaults to the public name)
            type: 'plain' or 'date'
            filterable: Whether the property may appear in filters
        """
        if not public_name:
            raise RegistryError(f"Empty property name in '{self.entity}'")
        if public_name in self._properties:
            raise RegistryError(f"Property '{public_name}' declared twice in '{self.entity}'")

        self._properties[public_name] = PropertyDescriptor(
            public_name=public_name,
            canonical_name=name or public_name,
            value_type=ValueType.parse(type),
            filterable=filterable,
        )
        return self

    def build(self) -> PropertyRegistry:
        return PropertyRegistry(self.entity, self._properties, self.identity_field)


def load_registries(path: Union[str, Path]) -> Dict[str, PropertyRegistry]:
    """
    Load registries for every entity declared in a YAML file.

    Expected layout:

        entities:
          files:
            identity_field: _id
            properties:
              name: {}
              created_at: {type: date}
              typeName: {name: type_name}

    Args:
        path: Path to the YAML document

    Returns:
        Dict mapping entity name to its registry

    Raises:
        RegistryError: If the file cannot be read or is malformed
    """
    try:
        with open(path, 'r', encoding='utf-8') as f:
            document = yaml.safe_load(f) or {}
    except OSError as e:
        raise RegistryError(f"Cannot read registry file {path}: {e}") from e
    except yaml.YAMLError as e:
        raise RegistryError(f"Invalid YAML in registry file {path}: {e}") from e

    if not isinstance(document, Mapping):
        raise RegistryError(f"Registry file {path} must contain a mapping")

    entities = document.get('entities')
    if not isinstance(entities, Mapping):
        raise RegistryError(f"Registry file {path} has no 'entities' mapping")

    return {
        str(entity): PropertyRegistry.from_dict(str(entity), declaration or {})
        for entity, declaration in entities.items()
    }
