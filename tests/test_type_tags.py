import pytest
from jsonreader import __version__
from jsonreader.policy import AssemblyFormat, SerializationPolicy
from jsonreader.type_tags import TypeRegistry, TypeTagError, format_tag, parse_tag
from tests.conftest import Circle, Shape, Square

# ------------ Tag format ------------
class TestFormat:
    def test_simple_tag(self):
        assert format_tag(Circle) == f"Circle, {Circle.__module__}"

    def test_full_tag_has_package_version(self):
        tag = format_tag(SerializationPolicy, AssemblyFormat.full)
        assert tag == f"SerializationPolicy, jsonreader.policy, Version={__version__}"

    def test_full_tag_without_package_version(self):
        # the tests package has no __version__
        assert format_tag(Circle, AssemblyFormat.full) == format_tag(Circle)

    def test_parse_simple_tag(self):
        assert parse_tag("Circle, shapes.models") == ("Circle", "shapes.models")

    def test_parse_ignores_version(self):
        assert parse_tag("Circle, shapes.models, Version=1.2") == ("Circle", "shapes.models")

    @pytest.mark.parametrize("tag", ["", "Circle", "Circle, ", 42])
    def test_parse_invalid_tag(self, tag):
        with pytest.raises(TypeTagError):
            parse_tag(tag)


# ------------ Registry ------------
class TestRegistry:
    def test_resolve_registered(self):
        registry = TypeRegistry([Circle])
        assert registry.resolve(format_tag(Circle)) is Circle
        assert registry.resolve(format_tag(Circle, AssemblyFormat.full)) is Circle

    def test_resolve_builtin(self):
        registry = TypeRegistry()
        assert registry.resolve("tuple") is tuple
        assert registry.resolve("dict") is dict

    def test_resolve_unknown(self):
        registry = TypeRegistry([Circle])
        with pytest.raises(TypeTagError) as excinfo:
            registry.resolve(format_tag(Square))
        assert "Square" in str(excinfo.value)

    def test_register_as_decorator(self):
        registry = TypeRegistry()

        @registry.register
        class Triangle(Shape):
            base: float

        assert Triangle in registry
        assert len(registry) == 1

    def test_register_twice_is_fine(self):
        registry = TypeRegistry([Circle, Circle])
        assert len(registry) == 1

    def test_register_name_clash(self):
        registry = TypeRegistry([Shape])
        impostor = type("Shape", (), {"__module__": Shape.__module__})

        with pytest.raises(ValueError):
            registry.register(impostor)

    def test_copy_is_independent(self):
        registry = TypeRegistry([Circle])
        copied = registry.copy()
        copied.register(Square)

        assert Square in copied
        assert Square not in registry
