"""Tests for the context_builder module."""

from sdkgen.context_builder import build_context, categorize_exports

from conftest import BASE_URL, SAMPLE_SPEC


class TestBuildContext:
    """Test the full context builder pipeline with the sample document."""

    @classmethod
    def setup_class(cls):
        """Build context once for all tests."""
        cls.ctx = build_context(SAMPLE_SPEC, api_key_env="SAMPLE_API_KEY")
        cls.namespaces = {ns["path"]: ns for ns in cls.ctx["namespaces"]}

    def test_operation_count(self):
        assert self.ctx["operation_count"] == 7

    def test_type_count_matches_declarations(self):
        assert self.ctx["type_count"] == len(self.ctx["declarations"])

    def test_info(self):
        assert self.ctx["title"] == "Sample API"
        assert self.ctx["api_version"] == "1.2.0"

    def test_base_url_from_servers(self):
        assert self.ctx["base_url"] == BASE_URL

    def test_base_url_override(self):
        ctx = build_context(SAMPLE_SPEC, base_url="http://localhost:3000")
        assert ctx["base_url"] == "http://localhost:3000"

    def test_root_attributes(self):
        attrs = {a["name"]: a["class_name"] for a in self.ctx["root"]["attributes"]}
        assert attrs == {
            "items": "_ItemsNamespace",
            "chats": "_ChatsNamespace",
            "user": "_UserNamespace",
        }

    def test_children_before_parents(self):
        order = [ns["class_name"] for ns in self.ctx["namespaces"]]
        assert order.index("_ChatsInitNamespace") < order.index("_ChatsNamespace")

    def test_method_names_snake_case(self):
        methods = [m.name for m in self.namespaces["chats"]["methods"]]
        assert methods == ["find", "create", "send_message", "download"]

    def test_nested_namespace_attribute(self):
        attrs = self.namespaces["chats"]["attributes"]
        assert attrs == [{"name": "init", "class_name": "_ChatsInitNamespace"}]

    def test_all_method_names_valid_identifiers(self):
        for ns in self.ctx["namespaces"]:
            for method in ns["methods"]:
                assert method.name.isidentifier(), f"{method.name} is not a valid identifier"

    def test_exports(self):
        exports = self.ctx["exports"]
        assert exports["core"] == ["ChatDetail", "ChatSummary"]
        assert "ChatsInitCreateRequest" in exports["request"]
        assert "ItemsGetByIdResponse" in exports["response"]
        assert "ChatsCreateStreamResponse" in exports["response"]
        assert exports["other"] == ["ErrorBody", "MessageCreate", "Metadata", "Node"]

    def test_title_made_docstring_safe(self):
        spec = dict(SAMPLE_SPEC, info={"title": 'The "v0"\nAPI', "version": "1"})
        assert build_context(spec)["title"] == "The 'v0' API"


class TestCallableNamespace:
    """An operationId that is also a namespace prefix renders as __call__."""

    def test_call_method(self, sample_spec):
        sample_spec["paths"]["/chats/init/run"] = {
            "post": {"operationId": "chats.init", "responses": {"200": {"description": "ok"}}},
        }
        ctx = build_context(sample_spec)
        init = next(ns for ns in ctx["namespaces"] if ns["path"] == "chats.init")
        assert [m.name for m in init["methods"]] == ["__call__", "create"]


class TestReservedNames:
    def test_root_attribute_does_not_shadow_client(self, sample_spec):
        sample_spec["paths"]["/fetch"] = {
            "get": {"operationId": "fetch.run", "responses": {"200": {"description": "ok"}}},
        }
        attrs = [a["name"] for a in build_context(sample_spec)["root"]["attributes"]]
        assert "fetch_" in attrs
        assert "fetch" not in attrs


class TestCategorizeExports:
    def test_sorted_within_category(self):
        groups = categorize_exports(["ZList", "AList", "BRequest", "Other", "BResponse", "AList"])
        assert groups == {
            "core": ["AList", "ZList"],
            "request": ["BRequest"],
            "response": ["BResponse"],
            "other": ["Other"],
        }

    def test_suffix_takes_precedence(self):
        assert categorize_exports(["ChatDetailResponse"])["response"] == ["ChatDetailResponse"]
