import pytest
import os
import tempfile
from dataclasses import dataclass, field
from enum import Enum
from pydantic import BaseModel, ConfigDict, Field, RootModel
from typing import List, Dict

from jsonreader import TypeRegistry

# A simple model for testing
class ModelTest(BaseModel):
    id: int
    name: str

class Person(BaseModel):
    Name: str
    Age: int

class Color(str, Enum):
    red = "red"
    blue = "blue"

class Shape(BaseModel):
    name: str

class Circle(Shape):
    radius: float

class Square(Shape):
    side: float

class Point(BaseModel):
    model_config = ConfigDict(frozen=True)
    x: int
    y: int

class Drawing(BaseModel):
    main: Shape
    layers: Dict[str, Shape] = {}
    by_color: Dict[Color, Shape] = {}

class Grid(BaseModel):
    cells: Dict[Point, str]

class Account(BaseModel):
    user_name: str = Field(alias="userName")

class Wallet(BaseModel):
    owner: Account = Field(alias="accountOwner")
    balance: float = Field(default=0.0, serialization_alias="currentBalance")

class Shapes(RootModel[List[Shape]]):
    pass

@dataclass
class Node:
    name: str
    children: list = field(default_factory=list)


@pytest.fixture
def model_list() -> List[ModelTest]:
    return [
        ModelTest(id=1, name="Alice"),
        ModelTest(id=2, name="Bob"),
    ]

@pytest.fixture
def model_dict(model_list) -> Dict[str, ModelTest]:
    return {model.name: model for model in model_list}


@pytest.fixture
def test_dict():
    return {
        "string": "abc123",
        "list": ["1", "2"],
        "dict": {
            "string": "abc123"
        }
    }

@pytest.fixture
def drawing() -> Drawing:
    return Drawing(
        main=Circle(name="sun", radius=2.5),
        layers={"background": Square(name="sky", side=10.0)},
        by_color={Color.red: Circle(name="dot", radius=0.5), Color.blue: Shape(name="plain")},
    )

@pytest.fixture
def shape_registry() -> TypeRegistry:
    return TypeRegistry([Shape, Circle, Square, Point, Color, Drawing, Grid, Node, Account, Wallet, Shapes])

@pytest.fixture
def cyclic_tree() -> Node:
    root = Node("root")
    child = Node("child")
    root.children.append(child)
    child.children.append(root)
    return root

@pytest.fixture
def temp_json_file_path():
    """
    Creates a temporary file for persistence tests.
    """
    fd, path = tempfile.mkstemp(suffix=".json", prefix="test_")
    os.close(fd)  # Close the open file descriptor to avoid file lock issues

    yield path
    if os.path.exists(path):
        os.remove(path)

@pytest.fixture
def missing_json_file_path(tmp_path):
    """
    A path inside a temporary directory that does not exist yet.
    """
    return str(tmp_path / "missing.json")
