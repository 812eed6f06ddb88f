import logging
import os
from pathlib import Path
from typing import Any, Optional, Type, Union

import gevent
from gevent.event import AsyncResult
from pydantic import TypeAdapter
from pydantic_core import to_jsonable_python

from .encoder import from_document, is_object_type, to_document
from .json_io import load_json, save_json
from .policy import TREE_POLICY, TYPED_READ_POLICY, TYPED_WRITE_POLICY, SerializationPolicy
from .type_tags import TYPE_KEY, TypeRegistry, TypeTagError, default_registry

_log = logging.getLogger(__name__)

PathType = Union[str, Path]


#-------------- Argument checks --------------

def _check_path(path: Optional[PathType]) -> str:
    if path is None or not os.fspath(path):
        raise ValueError(f"Path cannot be empty: '{path or ''}'")
    # Path("") normalizes to "."
    if isinstance(path, os.PathLike) and os.fspath(path) == os.curdir:
        raise ValueError(f"Path cannot be empty: '{path}'")
    return os.fspath(path)


def _check_save_args(path: Optional[PathType], data: Any, create_new: bool) -> str:
    path = _check_path(path)
    if not create_new and not os.path.isfile(path):
        raise ValueError(f"Path is not a file: '{path}'")
    if data is None:
        raise ValueError("Provided data cannot be null.")
    return path


def _check_load_path(path: Optional[PathType]) -> str:
    path = _check_path(path)
    if not os.path.isfile(path):
        raise ValueError(f"Path is not a file: '{path}'")
    return path


#-------------- Saving --------------

def save_json_file(path: PathType, data: Any, create_new: bool = True, indent: bool = True) -> None:
    """
    Save data as plain JSON.

    Params:
        path: the file to write.
        data: a pydantic model, dataclass or anything else pydantic can serialize.
        create_new: create the file if it is missing. If False the file must exist.
        indent: indented output if True, compact output otherwise.
    Raises:
        ValueError for an empty path, a missing file with create_new=False or None data.
        Serialization and OS errors are not caught.
    """
    path = _check_save_args(path, data, create_new)
    save_json(path, to_jsonable_python(data), indent)
    _log.debug(f"Saved {type(data).__name__} to {path}")


def save_json_file_typed(
    path: PathType,
    data: Any,
    create_new: bool = True,
    indent: Optional[bool] = None,
    policy: SerializationPolicy = TYPED_WRITE_POLICY,
) -> None:
    """
    Save data with the concrete type of every object embedded as "$type".

    Needed when a field is declared as a base class but holds a subclass, or
    for dicts with keys that are not strings. Read the file back with
    load_json_file(..., use_type_tags=True).
    indent=None keeps the formatting of the policy, a bool overrides it for
    this call only.
    """
    path = _check_save_args(path, data, create_new)
    if indent is not None and indent != policy.indent:
        policy = policy.model_copy(update={"indent": indent})

    save_json(path, to_document(data, policy), policy.indent)
    _log.debug(f"Saved {type(data).__name__} with type tags to {path}")


def save_json_file_tree(
    path: PathType,
    data: Any,
    create_new: bool = True,
    policy: SerializationPolicy = TREE_POLICY,
) -> None:
    """
    Save a tree or graph that may refer back to itself. Always indented.

    Objects reached again through a cycle are written out again in full
    instead of raising. There is no back-reference marker, so a file written
    from a cyclic graph can not be read back into the same graph.
    Use save_json_file for normal data.
    """
    path = _check_save_args(path, data, create_new)
    save_json(path, to_document(data, policy), indent=True)
    _log.debug(f"Saved {type(data).__name__} tree to {path}")


def save_json_file_async(
    path: PathType, data: Any, create_new: bool = True, indent: bool = True
) -> AsyncResult:
    """
    Run save_json_file on the gevent hub's thread pool.
    Returns: AsyncResult; .get() re-raises any error of the save.
    """
    return gevent.get_hub().threadpool.spawn(save_json_file, path, data, create_new, indent)


#-------------- Loading --------------

def _revive(data: Any, model_type: Optional[Type], policy: SerializationPolicy,
            registry: Optional[TypeRegistry], path: str) -> Any:
    if not policy.embeds_types:
        raise ValueError("Reading type tags requires a policy with 'objects' type name handling")

    registry = (default_registry if registry is None else registry).copy()
    if is_object_type(model_type):
        if isinstance(data, dict) and TYPE_KEY not in data:
            raise TypeTagError(f"Missing type metadata for '{model_type.__name__}' in '{path}'")
        if model_type not in registry:
            registry.register(model_type)

    return from_document(data, registry)


def load_json_file(
    path: PathType,
    model_type: Optional[Type] = None,
    use_type_tags: bool = False,
    policy: SerializationPolicy = TYPED_READ_POLICY,
    registry: Optional[TypeRegistry] = None,
) -> Any:
    """
    Open a JSON file and parse it into model_type.

    Params:
        path: an existing file. It is never created.
        model_type: any type pydantic can validate into. None returns the raw JSON data.
        use_type_tags: True only for files written by save_json_file_typed.
        policy: the read policy used with type tags.
        registry: classes that type tags may name, default_registry if None.
            model_type itself is always accepted.
    Returns:
        The decoded value.
    Raises:
        ValueError for an empty or missing path.
        TypeTagError for missing or unknown type tags.
        json.JSONDecodeError and pydantic.ValidationError are not caught.
    """
    path = _check_load_path(path)
    data = load_json(path)

    if use_type_tags:
        data = _revive(data, model_type, policy, registry, path)

    if model_type is not None:
        data = TypeAdapter(model_type).validate_python(data)

    _log.debug(f"Loaded {type(data).__name__} from {path}")
    return data


def load_json_file_async(path: PathType, model_type: Optional[Type] = None) -> AsyncResult:
    """
    Run load_json_file (without type tags) on the gevent hub's thread pool.
    Returns: AsyncResult; .get() returns the loaded value or re-raises.
    """
    return gevent.get_hub().threadpool.spawn(load_json_file, path, model_type)
