from formschema.paths import INDEX, FieldPath


class TestFieldPath:
    def test_root_renders_as_dollar(self):
        assert str(FieldPath.root()) == "$"
        assert FieldPath.root().is_root

    def test_nested_names_and_placeholders(self):
        path = FieldPath.root().child("contacts").item().child("email")
        assert str(path) == "contacts[].email"
        assert path.label == "email"

    def test_concrete_index(self):
        path = FieldPath.root().child("tags").at(2)
        assert str(path) == "tags[2]"
        assert path.label == "tags"

    def test_names_with_delimiters_are_quoted(self):
        path = FieldPath.of("a.b", "c")
        assert str(path) == '["a.b"].c'
        assert path != FieldPath.of("a", "b", "c")

    def test_template_and_matches(self):
        pattern = FieldPath.of("items", INDEX, "qty")
        concrete = FieldPath.of("items", 3, "qty")
        assert concrete.template() == pattern
        assert pattern.matches(concrete)
        assert not pattern.matches(FieldPath.of("items", "x", "qty"))
        assert not pattern.matches(FieldPath.of("items", 3))

    def test_extend(self):
        assert FieldPath.of("form").extend(("confirm",)) == FieldPath.of("form", "confirm")

    def test_label_without_names(self):
        assert FieldPath.of(0).label == "value"
