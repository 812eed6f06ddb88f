"""
Object graph <-> JSON document conversion driven by a SerializationPolicy.

pydantic already converts models to JSON for the plain file format. This module
is used where pydantic's own serializer is not enough:
    - writing the concrete type of every object next to its fields, so a field
      declared as a base class can hold a subclass instance,
    - dictionaries with keys that are not strings,
    - object graphs that refer back to themselves.

Model members are keyed the way pydantic serializes them (by alias), so
tagged and plain files agree on member names. A RootModel is written as its
root value, under "$value" when tags are embedded.
"""

import dataclasses
import logging
import typing
from enum import Enum
from typing import Any, Dict, List, Type

from pydantic import AliasChoices, BaseModel, RootModel
from pydantic.fields import FieldInfo
from pydantic_core import to_jsonable_python

from .policy import ReferenceLoopHandling, SerializationPolicy
from .type_tags import (
    BUILTIN_TAGS,
    TYPE_KEY,
    VALUE_KEY,
    VALUES_KEY,
    TypeRegistry,
    TypeTagError,
    format_tag,
)

_log = logging.getLogger(__name__)

_SKIP = object()
_SEQUENCE_TYPES = (tuple, set, frozenset)


class ReferenceLoopError(ValueError):
    """Raised when an object is reached again while it is still being written."""


def is_object_type(cls: Any) -> bool:
    """True for classes that are written as JSON objects with their own fields."""
    if typing.get_origin(cls) is not None or not isinstance(cls, type):
        return False
    return issubclass(cls, BaseModel) or dataclasses.is_dataclass(cls)


def _is_object(value: Any) -> bool:
    return isinstance(value, BaseModel) or (
        dataclasses.is_dataclass(value) and not isinstance(value, type)
    )


def _member_key(name: str, field: FieldInfo) -> str:
    # the key pydantic itself writes with by_alias=True
    return field.serialization_alias or field.alias or name


def _input_key(name: str, field: FieldInfo) -> str:
    alias = field.validation_alias
    if isinstance(alias, AliasChoices):
        alias = alias.choices[0]
    if isinstance(alias, str):
        return alias
    return field.alias or name


def _object_fields(value: Any) -> Dict[str, Any]:
    if isinstance(value, BaseModel):
        return {
            _member_key(name, field): getattr(value, name)
            for name, field in type(value).model_fields.items()
        }
    return {field.name: getattr(value, field.name) for field in dataclasses.fields(value)}


def _model_input(cls: Type[BaseModel], members: Dict[str, Any]) -> Dict[str, Any]:
    """Map written member keys to the keys model_validate accepts."""
    keys = {_member_key(name, field): _input_key(name, field) for name, field in cls.model_fields.items()}
    return {keys.get(key, key): value for key, value in members.items()}


class _Encoder:

    def __init__(self, policy: SerializationPolicy):
        self._policy = policy
        # id -> number of times the object is on the current path
        self._active: Dict[int, int] = {}

    def encode(self, value: Any) -> Any:
        if isinstance(value, Enum):
            return self._encode_enum(value)
        if value is None or isinstance(value, (str, int, float, bool)):
            return value
        if not (_is_object(value) or isinstance(value, (dict, list) + _SEQUENCE_TYPES)):
            return to_jsonable_python(value)

        key = id(value)
        seen = self._active.get(key, 0)
        if seen:
            if self._policy.reference_loop_handling == ReferenceLoopHandling.error:
                raise ReferenceLoopError(
                    f"Self referencing loop detected for type '{type(value).__name__}'"
                )
            if seen > self._policy.max_reference_repeats:
                _log.debug(f"Dropping cycle edge to {type(value).__name__} after {seen} visits")
                return _SKIP

        self._active[key] = seen + 1
        try:
            return self._encode_container(value)
        finally:
            if seen:
                self._active[key] = seen
            else:
                del self._active[key]

    def _encode_enum(self, member: Enum) -> Any:
        value = self.encode(member.value)
        if not self._policy.embeds_types:
            return value
        return {TYPE_KEY: format_tag(type(member), self._policy.assembly_format), VALUE_KEY: value}

    def _encode_items(self, items) -> List[Any]:
        encoded = (self.encode(item) for item in items)
        return [item for item in encoded if item is not _SKIP]

    def _encode_container(self, value: Any) -> Any:
        if isinstance(value, RootModel):
            root = self.encode(value.root)
            if root is _SKIP or not self._policy.embeds_types:
                return root
            return {TYPE_KEY: format_tag(type(value), self._policy.assembly_format), VALUE_KEY: root}

        if _is_object(value):
            document = {}
            if self._policy.embeds_types:
                document[TYPE_KEY] = format_tag(type(value), self._policy.assembly_format)
            for name, field_value in _object_fields(value).items():
                encoded = self.encode(field_value)
                if encoded is not _SKIP:
                    document[name] = encoded
            return document

        if isinstance(value, dict):
            return self._encode_dict(value)

        if isinstance(value, list):
            return self._encode_items(value)

        # tuple, set, frozenset
        items = self._encode_items(value)
        if not self._policy.embeds_types:
            return items
        return {TYPE_KEY: _builtin_tag(value), VALUES_KEY: items}

    def _encode_dict(self, value: dict) -> Any:
        if all(type(key) is str for key in value):
            document = {}
            for key, item in value.items():
                encoded = self.encode(item)
                if encoded is not _SKIP:
                    document[key] = encoded
            return document

        if not self._policy.embeds_types:
            document = {}
            for key, item in value.items():
                encoded = self.encode(item)
                if encoded is not _SKIP:
                    document[str(to_jsonable_python(key))] = encoded
            return document

        pairs = []
        for key, item in value.items():
            encoded_key, encoded_item = self.encode(key), self.encode(item)
            if encoded_key is not _SKIP and encoded_item is not _SKIP:
                pairs.append([encoded_key, encoded_item])
        return {TYPE_KEY: "dict", VALUES_KEY: pairs}


def _builtin_tag(value: Any) -> str:
    for name, cls in BUILTIN_TAGS.items():
        if type(value) is cls:
            return name
    # subclasses such as namedtuples are written as their builtin base
    for name, cls in BUILTIN_TAGS.items():
        if isinstance(value, cls):
            return name
    raise TypeTagError(f"No builtin tag for type '{type(value).__name__}'")


def to_document(data: Any, policy: SerializationPolicy) -> Any:
    """
    Convert an object graph into plain JSON-able Python data.

    Params:
        data: models, dataclasses, containers and anything pydantic can serialize.
        policy: decides on type tags and on how loops are handled.
    Returns:
        dicts, lists and scalars ready for json.dumps.
    Raises:
        ReferenceLoopError if the graph has a loop and the policy rejects loops.
    """
    return _Encoder(policy).encode(data)


def _payload(node: dict, key: str) -> Any:
    try:
        return node[key]
    except KeyError:
        raise TypeTagError(f"Tagged value '{node.get(TYPE_KEY)}' has no '{key}' member") from None


def _build_dataclass(cls: type, fields: Dict[str, Any]) -> Any:
    init_args = {}
    late_fields = {}
    for field in dataclasses.fields(cls):
        if field.name not in fields:
            continue
        if field.init:
            init_args[field.name] = fields[field.name]
        else:
            late_fields[field.name] = fields[field.name]

    instance = cls(**init_args)
    for name, value in late_fields.items():
        object.__setattr__(instance, name, value)
    return instance


def from_document(node: Any, registry: TypeRegistry) -> Any:
    """
    Revive a tagged JSON document into the objects its tags name.

    Untagged objects stay dicts, so the caller can still validate the result
    against a declared type. Tags are only resolved through the registry.
    """
    if isinstance(node, list):
        return [from_document(item, registry) for item in node]
    if not isinstance(node, dict):
        return node
    if TYPE_KEY not in node:
        return {key: from_document(value, registry) for key, value in node.items()}

    tag = node[TYPE_KEY]
    cls = registry.resolve(tag)

    if cls is dict:
        revived = {}
        for pair in _payload(node, VALUES_KEY):
            if not isinstance(pair, list) or len(pair) != 2:
                raise TypeTagError(f"Tagged dict entries must be [key, value] pairs, got {pair!r}")
            key, value = from_document(pair[0], registry), from_document(pair[1], registry)
            try:
                revived[key] = value
            except TypeError as e:
                raise TypeTagError(f"Tagged dict key is not hashable: {key!r}") from e
        return revived
    if cls in _SEQUENCE_TYPES:
        return cls(from_document(item, registry) for item in _payload(node, VALUES_KEY))
    if issubclass(cls, Enum):
        return cls(from_document(_payload(node, VALUE_KEY), registry))
    if issubclass(cls, RootModel):
        return cls.model_validate(from_document(_payload(node, VALUE_KEY), registry))

    fields = {key: from_document(value, registry) for key, value in node.items() if key != TYPE_KEY}
    if issubclass(cls, BaseModel):
        return cls.model_validate(_model_input(cls, fields))
    if dataclasses.is_dataclass(cls):
        return _build_dataclass(cls, fields)
    raise TypeTagError(f"Type '{tag}' cannot be built from a tagged object")
