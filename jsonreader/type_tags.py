import logging
import sys
from typing import Dict, Iterable, Optional, Tuple

from .policy import AssemblyFormat

_log = logging.getLogger(__name__)

TYPE_KEY = "$type"
VALUES_KEY = "$values"
VALUE_KEY = "$value"

# Builtin containers that plain JSON cannot express. Tagged by name only.
BUILTIN_TAGS = {
    "dict": dict,
    "tuple": tuple,
    "set": set,
    "frozenset": frozenset,
}


class TypeTagError(ValueError):
    """Raised when a type tag is missing, malformed or unknown."""


def _package_version(cls: type) -> Optional[str]:
    top_level = cls.__module__.split(".")[0]
    module = sys.modules.get(top_level)
    return getattr(module, "__version__", None)


def format_tag(cls: type, assembly_format: AssemblyFormat = AssemblyFormat.simple) -> str:
    """
    Build the type tag written next to an instance of cls.

    Simple form: "<qualname>, <module>"
    Full form:   "<qualname>, <module>, Version=<version>" when the top level
                 package exposes a __version__.
    """
    tag = f"{cls.__qualname__}, {cls.__module__}"
    if assembly_format == AssemblyFormat.full:
        version = _package_version(cls)
        if version is not None:
            tag = f"{tag}, Version={version}"
    return tag


def parse_tag(tag: str) -> Tuple[str, str]:
    """
    Split a tag into (qualname, module). Anything after the module part,
    like a version, is ignored.
    """
    if not isinstance(tag, str) or not tag.strip():
        raise TypeTagError(f"Invalid type tag: {tag!r}")

    parts = [part.strip() for part in tag.split(",")]
    if len(parts) < 2 or not parts[0] or not parts[1]:
        raise TypeTagError(f"Type tag must have the form '<name>, <module>': {tag!r}")
    return parts[0], parts[1]


class TypeRegistry:
    """
    Allow-list of classes that tagged documents may name.

    Only registered classes are ever instantiated from a tag.
    Usage:
        registry = TypeRegistry([Circle, Square])

        @registry.register
        class Triangle(Shape):
            ...
    """

    def __init__(self, types: Iterable[type] = ()):
        self._types: Dict[Tuple[str, str], type] = {}
        for cls in types:
            self.register(cls)

    def register(self, cls: type) -> type:
        key = (cls.__qualname__, cls.__module__)
        known = self._types.get(key)
        if known is not None and known is not cls:
            raise ValueError(f"Another type is already registered as '{format_tag(cls)}'")
        self._types[key] = cls
        return cls

    def __contains__(self, cls: type) -> bool:
        return self._types.get((cls.__qualname__, cls.__module__)) is cls

    def __len__(self) -> int:
        return len(self._types)

    def copy(self) -> "TypeRegistry":
        return TypeRegistry(self._types.values())

    def resolve(self, tag: str) -> type:
        """
        Look up the class named by a tag.
        Raises TypeTagError if the tag is malformed or not registered.
        """
        if tag in BUILTIN_TAGS:
            return BUILTIN_TAGS[tag]

        key = parse_tag(tag)
        cls = self._types.get(key)
        if cls is None:
            _log.warning(f"Refusing to resolve unregistered type tag '{tag}'")
            raise TypeTagError(f"Unknown type tag: '{tag}'")
        return cls


default_registry = TypeRegistry()
