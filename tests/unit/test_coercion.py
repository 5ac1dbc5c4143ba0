from datetime import datetime
from typing import Any
from uuid import UUID

from pydantic import BaseModel
import pytest

from llm_extract.coercion import Coercer, coerce, match_field_names
from llm_extract.config import ExtractSettings
from llm_extract.exceptions import FailureKind
from llm_extract.shapes import (
    FieldSpec,
    IntegerShape,
    RecordShape,
    SequenceShape,
    StringShape,
    shape_for,
)
from llm_extract.types import ABSENT, ExtractionDiagnostics


@pytest.fixture
def coercer() -> Coercer:
    return Coercer(ExtractSettings())


@pytest.fixture
def unlabeled() -> Coercer:
    return Coercer(ExtractSettings(enable_label_patterns=False))


@pytest.mark.unit
class TestNumbers:
    """Integer and float heuristics"""

    @pytest.mark.parametrize(
        ("text", "expected", "method"),
        [
            ("Value: 42 units", 42, "label_pattern"),
            ("count: 7", 7, "colon_pattern"),
            ("There are 12 apples and 3 pears", 12, "bare_token"),
            ("Value: -5", -5, "label_pattern"),
        ],
    )
    def test_integer_paths(self, coercer, text, expected, method):
        result = coercer.coerce_result(text, int)
        assert result.value == expected
        assert result.method == method

    def test_label_wins_over_earlier_colon(self, coercer):
        assert coercer.coerce("Step: 1\nValue: 99", int) == 99

    def test_label_ignored_when_disabled(self, unlabeled):
        assert unlabeled.coerce("Step: 1\nValue: 99", int) == 1

    @pytest.mark.parametrize(
        ("text", "expected"),
        [
            ("Value: 3.14", 3.14),
            ("ratio: 2.5e3", 2500.0),
            ("about -0.75 overall", -0.75),
            ("Value: 7", 7.0),
        ],
    )
    def test_floats(self, coercer, text, expected):
        value = coercer.coerce(text, float)
        assert isinstance(value, float)
        assert value == expected

    def test_no_digits_is_absent(self, coercer):
        result = coercer.coerce_result("no numbers here", int)
        assert result.value is ABSENT
        assert result.failure is FailureKind.NO_CANDIDATE


@pytest.mark.unit
class TestBooleans:
    def test_label_pattern(self, coercer):
        result = coercer.coerce_result("Boolean: false, though true elsewhere", bool)
        assert result.value is False
        assert result.method == "label_pattern"

    def test_true_wins_when_both_literals_occur(self, coercer):
        assert coercer.coerce("false alarm, it is true", bool) is True

    def test_literal_scan_is_case_insensitive(self, coercer):
        assert coercer.coerce("Answer: FALSE", bool) is False

    def test_substrings_do_not_count(self, coercer):
        assert coercer.coerce("an untrue statement", bool) is ABSENT

    def test_label_disabled_falls_back_to_scan(self, unlabeled):
        assert unlabeled.coerce("Boolean: false, though true elsewhere", bool) is True


@pytest.mark.unit
class TestStrings:
    def test_label_pattern(self, coercer):
        result = coercer.coerce_result('Note "x". String: "hello"', str)
        assert result.value == "hello"
        assert result.method == "label_pattern"

    def test_first_quoted_substring(self, coercer):
        assert coercer.coerce('He said "hi" then "bye"', str) == "hi"

    def test_quoted_text_is_kept_verbatim(self, coercer):
        assert coercer.coerce('Saved to "C:\\new\\file.txt"', str) == "C:\\new\\file.txt"

    def test_labeled_text_is_kept_verbatim(self, coercer):
        assert coercer.coerce('String: "tab\\there"', str) == "tab\\there"

    def test_text_after_last_colon(self, coercer):
        result = coercer.coerce_result("Answer: the city: Paris", str)
        assert result.value == "Paris"
        assert result.method == "colon_text"

    def test_nothing_usable(self, coercer):
        assert coercer.coerce("plain prose only", str) is ABSENT

    def test_datetime(self, coercer):
        value = coercer.coerce("Created: 2023-06-15T10:30:00", datetime)
        assert value == datetime(2023, 6, 15, 10, 30)

    def test_uuid(self, coercer):
        text = 'id "3fa85f64-5717-4562-b3fc-2c963f66afa6"'
        assert coercer.coerce(text, UUID) == UUID("3fa85f64-5717-4562-b3fc-2c963f66afa6")

    def test_invalid_format_is_shape_mismatch(self, coercer):
        result = coercer.coerce_result('"not-a-uuid"', StringShape("uuid"))
        assert result.value is ABSENT
        assert result.failure is FailureKind.SHAPE_MISMATCH


@pytest.mark.unit
class TestSequences:
    @pytest.mark.parametrize(
        ("annotation", "expected"),
        [
            (set[int], {1, 2}),
            (frozenset[int], frozenset({1, 2})),
            (tuple[int, ...], (1, 2, 2)),
            (list[int], [1, 2, 2]),
        ],
    )
    def test_requested_container_is_returned(self, coercer, annotation, expected):
        value = coercer.coerce("[1, 2, 2]", annotation)
        assert type(value) is type(expected)
        assert value == expected

    def test_array_in_prose(self, coercer):
        result = coercer.coerce_result("Result: [1, 2, 3] done", list[int])
        assert result.value == [1, 2, 3]
        assert result.method == "array_span"
        assert result.candidate == "[1, 2, 3]"

    def test_truncated_array_is_repaired(self, coercer):
        result = coercer.coerce_result('names: ["a", "b"', list[str])
        assert result.value == ["a", "b"]
        assert result.method == "extracted_json"

    def test_object_is_shape_mismatch(self, coercer):
        result = coercer.coerce_result('{"a": 1}', list[int])
        assert result.failure is FailureKind.SHAPE_MISMATCH

    def test_wrong_element_types(self, coercer):
        result = coercer.coerce_result('["x", "y"]', list[int])
        assert result.failure is FailureKind.SHAPE_MISMATCH

    def test_list_of_records(self, coercer, user_profile_model):
        text = '[{"name": "A", "age": 1, "email": "a@x", "preferred_language": "Go"}]'
        [profile] = coercer.coerce(text, list[user_profile_model])
        assert profile.Name == "A"


@pytest.mark.unit
class TestRecords:
    def test_profile_in_prose(self, coercer, user_profile_model, profile_text):
        profile = coercer.coerce(profile_text, user_profile_model)
        assert profile.Name == "Alice"
        assert profile.Age == 28
        assert profile.preferred_language == "JavaScript"

    def test_case_insensitive_keys(self, coercer, user_profile_model):
        text = '{"name": "Bo", "AGE": 3, "email": "b@x", "Preferred_Language": "C"}'
        assert coercer.coerce(text, user_profile_model).Age == 3

    def test_case_sensitive_when_disabled(self, user_profile_model):
        strict = Coercer(ExtractSettings(case_insensitive_fields=False))
        text = '{"name": "Bo", "AGE": 3, "email": "b@x", "Preferred_Language": "C"}'
        result = strict.coerce_result(text, user_profile_model)
        assert result.failure is FailureKind.SHAPE_MISMATCH

    def test_truncated_object_is_repaired(self, coercer, user_profile_model):
        text = '{"Name": "Al", "Age": 2, "Email": "e", "preferred_language": "Rust"'
        assert coercer.coerce(text, user_profile_model).preferred_language == "Rust"

    def test_trims_to_object_start(self, coercer):
        shape = RecordShape(name="Box", fields=(FieldSpec(name="n", shape=IntegerShape()),))
        result = coercer.coerce_result('[{"n": 1', shape)
        assert result.value.n == 1

    def test_hand_declared_record(self, coercer):
        shape = RecordShape(
            name="Point",
            fields=(
                FieldSpec(name="x", shape=IntegerShape()),
                FieldSpec(name="y", shape=IntegerShape(), required=False),
            ),
        )
        value = coercer.coerce('point {"x": 4}', shape)
        assert (value.x, value.y) == (4, None)

    def test_missing_required_field(self, coercer, user_profile_model):
        result = coercer.coerce_result('{"Name": "A"}', user_profile_model)
        assert result.failure is FailureKind.SHAPE_MISMATCH

    def test_unrepairable_is_malformed(self, coercer, user_profile_model):
        result = coercer.coerce_result("{broken", user_profile_model)
        assert result.value is ABSENT
        assert result.failure is FailureKind.MALFORMED_AFTER_REPAIR

    def test_no_delimiters_is_no_candidate(self, coercer, user_profile_model):
        result = coercer.coerce_result("nothing to see", user_profile_model)
        assert result.failure is FailureKind.NO_CANDIDATE


class TreeNode(BaseModel):
    name: str
    children: list["TreeNode"] = []


@pytest.mark.unit
class TestRecursiveRecords:
    """Tree-shaped models coerce like any other record"""

    def test_tree_in_prose(self, coercer):
        text = 'Tree: {"name": "root", "children": [{"name": "leaf"}]}'
        tree = coercer.coerce(text, TreeNode)
        assert tree.name == "root"
        assert [child.name for child in tree.children] == ["leaf"]

    def test_nested_keys_match_ignoring_case(self, coercer):
        text = '{"Name": "root", "Children": [{"NAME": "a", "children": [{"name": "b"}]}]}'
        tree = coercer.coerce(text, TreeNode)
        assert tree.children[0].name == "a"
        assert tree.children[0].children[0].name == "b"

    def test_mismatch_is_absent(self, coercer):
        result = coercer.coerce_result('{"children": []}', TreeNode)
        assert result.value is ABSENT
        assert result.failure is FailureKind.SHAPE_MISMATCH


@pytest.mark.unit
class TestDefaultSettings:
    def test_project_file_is_honored(self, tmp_path, monkeypatch):
        (tmp_path / "pyproject.toml").write_text(
            "[tool.llm_extract]\nenable_label_patterns = false\n"
        )
        monkeypatch.chdir(tmp_path)
        assert coerce("Step: 1\nValue: 99", int) == 1

    def test_env_file_is_honored(self, tmp_path, monkeypatch):
        (tmp_path / ".env").write_text("LLM_EXTRACT_CASE_INSENSITIVE_FIELDS=false\n")
        monkeypatch.chdir(tmp_path)
        assert Coercer().settings.case_insensitive_fields is False


@pytest.mark.unit
class TestDefaultPath:
    def test_any_returns_plain_data(self, coercer):
        assert coercer.coerce('reply: {"a": [1, 2]}', Any) == {"a": [1, 2]}

    def test_dict_annotation(self, coercer):
        assert coercer.coerce('{"a": "1"}', dict[str, int]) == {"a": 1}


@pytest.mark.unit
class TestCoerceResult:
    """Result bookkeeping around the shape handlers"""

    @pytest.mark.parametrize("text", [None, ""])
    def test_empty_input(self, coercer, text):
        result = coercer.coerce_result(text, int)
        assert result.value is ABSENT
        assert result.failure is FailureKind.NO_CANDIDATE

    def test_raw_text_is_preserved(self, coercer):
        text = "Value: 5"
        assert coercer.coerce_result(text, int).raw_text == text

    def test_oversized_input_is_truncated(self):
        small = Coercer(ExtractSettings(max_text_size=10))
        diagnostics = ExtractionDiagnostics()
        result = small.coerce_result("Value: 1" + " " * 20 + "Value: 2", int, diagnostics)
        assert result.value == 1
        assert "truncated_input" in diagnostics.flags

    def test_diagnostics_record_failure(self, coercer):
        diagnostics = ExtractionDiagnostics()
        coercer.coerce_result("nothing", SequenceShape(IntegerShape()), diagnostics)
        assert diagnostics.attempted == ["object_span", "array_span", "repair"]
        assert "SequenceShape" in diagnostics.errors

    def test_unknown_shape_is_a_programming_error(self, coercer):
        with pytest.raises(TypeError):
            coercer._dispatch("x", object(), None)

    def test_module_level_coerce(self):
        assert coerce("Value: 3", shape_for(int)) == 3


@pytest.mark.unit
class TestMatchFieldNames:
    @pytest.fixture
    def shape(self) -> RecordShape:
        return RecordShape(
            name="R",
            fields=(
                FieldSpec(name="Name", shape=StringShape()),
                FieldSpec(name="items", shape=SequenceShape(StringShape())),
            ),
        )

    def test_renames_case_variants(self, shape):
        assert match_field_names({"name": "a", "ITEMS": []}, shape) == {"Name": "a", "items": []}

    def test_exact_match_wins(self, shape):
        assert match_field_names({"name": "x", "Name": "y"}, shape) == {"Name": "y"}

    def test_unknown_keys_pass_through(self, shape):
        assert match_field_names({"extra": 1}, shape) == {"extra": 1}

    def test_non_records_are_untouched(self):
        assert match_field_names([1, 2], shape_for(int)) == [1, 2]
