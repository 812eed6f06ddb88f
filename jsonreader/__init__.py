from .encoder import ReferenceLoopError
from .policy import (
    TREE_POLICY,
    TYPED_READ_POLICY,
    TYPED_WRITE_POLICY,
    AssemblyFormat,
    ReferenceLoopHandling,
    SerializationPolicy,
    TypeNameHandling,
    load_policy,
)
from .pydantic_io import (
    load_json_file,
    load_json_file_async,
    save_json_file,
    save_json_file_async,
    save_json_file_tree,
    save_json_file_typed,
)
from .type_tags import TypeRegistry, TypeTagError, default_registry

__version__ = "0.1"

__all__ = [
    "AssemblyFormat",
    "ReferenceLoopError",
    "ReferenceLoopHandling",
    "SerializationPolicy",
    "TREE_POLICY",
    "TYPED_READ_POLICY",
    "TYPED_WRITE_POLICY",
    "TypeNameHandling",
    "TypeRegistry",
    "TypeTagError",
    "default_registry",
    "load_json_file",
    "load_json_file_async",
    "load_policy",
    "save_json_file",
    "save_json_file_async",
    "save_json_file_tree",
    "save_json_file_typed",
]
