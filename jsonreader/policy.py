from enum import Enum
from pathlib import Path
from typing import Union

from pydantic import BaseModel, ConfigDict, Field

from .json_io import load_json


class TypeNameHandling(str, Enum):
    none = "none"
    objects = "objects"


class AssemblyFormat(str, Enum):
    simple = "simple"
    full = "full"


class ReferenceLoopHandling(str, Enum):
    error = "error"
    serialize = "serialize"


class SerializationPolicy(BaseModel):
    """
    Immutable bundle of serialization options.

    Policies are passed explicitly to every call that needs one. To change a
    single option for one call, copy it:
        policy.model_copy(update={"indent": False})
    """
    model_config = ConfigDict(frozen=True, extra="forbid")

    type_name_handling: TypeNameHandling = TypeNameHandling.none
    assembly_format: AssemblyFormat = AssemblyFormat.simple
    reference_loop_handling: ReferenceLoopHandling = ReferenceLoopHandling.error
    indent: bool = True
    max_reference_repeats: int = Field(default=1, ge=0)  # only used with loop serialization

    @property
    def embeds_types(self) -> bool:
        return self.type_name_handling == TypeNameHandling.objects


TYPED_WRITE_POLICY = SerializationPolicy(
    type_name_handling=TypeNameHandling.objects,
    assembly_format=AssemblyFormat.simple,
)

TYPED_READ_POLICY = SerializationPolicy(
    type_name_handling=TypeNameHandling.objects,
)

TREE_POLICY = SerializationPolicy(
    reference_loop_handling=ReferenceLoopHandling.serialize,
    indent=True,
)


def load_policy(path: Union[str, Path]) -> SerializationPolicy:
    """
    Load a policy from a JSON config file.

    Params:
        path: path to a JSON object with any of the SerializationPolicy fields.
    Returns:
        The validated policy. Missing fields keep their defaults.
    Raises:
        pydantic.ValidationError if a field has an unknown value.
    """
    return SerializationPolicy.model_validate(load_json(path))
