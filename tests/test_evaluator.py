"""Tests for AST evaluation semantics, built directly from nodes."""

import re

import pytest

from conftest import RecordingDecryptor
from propsloader_core.decryption import CallableDecryptor
from propsloader_core.errors import (
    ConfigurationError,
    DecryptionFailure,
    MissingDecryptorError,
)
from propsloader_core.evaluator import (
    equals_ignore_case,
    evaluate_expression,
    evaluate_test,
    execute,
    is_truthy,
)
from propsloader_core.nodes import (
    Assignment,
    Block,
    Choose,
    Equals,
    ErrorStatement,
    Literal,
    Matches,
    MatchPattern,
    Not,
    Table,
    TableEntry,
    TemplateExpr,
    Truthiness,
    When,
    compile_field_pattern,
)
from propsloader_core.store import PropertyStore
from propsloader_core.template import compile_template


def tmpl(text: str) -> TemplateExpr:
    return TemplateExpr(compile_template(text))


def assign(key: str, value: str, default_only: bool = False, encrypted: bool = False) -> Assignment:
    return Assignment(tmpl(key), tmpl(value), default_only, encrypted)


class TestAssignment:
    def test_override_assignment(self, store):
        store.put("k", "old")
        execute(assign("k", "new"), store)
        assert store.get("k") == "new"

    def test_templated_key_and_value(self, store):
        store.put("env", "prod")
        execute(assign("db.${env}.host", "${env}-db"), store)
        assert store.get("db.prod.host") == "prod-db"

    def test_default_sets_empty_value(self, store):
        store.put("k", "")
        execute(assign("k", "v", default_only=True), store)
        assert store.get("k") == "v"

    def test_default_keeps_existing_value(self, store):
        store.put("k", "existing")
        execute(assign("k", "v", default_only=True), store)
        assert store.get("k") == "existing"

    def test_default_copies_inherited_value_to_local_level(self):
        parent = PropertyStore({"k": "inherited"})
        child = parent.new_child()
        execute(assign("k", "v", default_only=True), child)
        assert child.local_get("k") == "inherited"

    def test_default_does_not_evaluate_value_when_present(self, store):
        decryptor = RecordingDecryptor()
        store.put("k", "existing")
        execute(assign("k", "cipher", default_only=True, encrypted=True), store, decryptor)
        assert decryptor.calls == []
        assert store.get("k") == "existing"

    def test_encrypted_value_is_decrypted(self, store):
        decryptor = RecordingDecryptor()
        execute(assign("db.password", "terces"), store)
        execute(assign("db.password", "terces", encrypted=True), store, decryptor)
        assert decryptor.calls == [("db.password", "terces")]
        assert store.get("db.password") == "secret"

    def test_callable_decryptor(self, store):
        decryptor = CallableDecryptor(lambda key, value: value.upper())
        execute(assign("k", "abc", encrypted=True), store, decryptor)
        assert store.get("k") == "ABC"

    def test_missing_decryptor(self, store):
        with pytest.raises(MissingDecryptorError) as exc:
            execute(assign("k", "abc", encrypted=True), store)
        assert exc.value.key == "k"
        assert "k" not in store

    def test_decryptor_failure_is_wrapped(self, store):
        with pytest.raises(DecryptionFailure) as exc:
            execute(assign("k", "abc", encrypted=True), store, RecordingDecryptor(fail_on="k"))
        assert isinstance(exc.value.__cause__, RuntimeError)
        assert exc.value.key == "k"


class TestBlock:
    def test_statements_see_earlier_effects(self, store):
        execute(Block((assign("a", "1"), assign("b", "${a}2"), assign("a", "3"))), store)
        assert store.to_dict() == {"a": "3", "b": "12"}

    def test_error_aborts_without_rollback(self, store):
        block = Block(
            (
                assign("a", "1"),
                ErrorStatement(tmpl("failed at ${a}")),
                assign("b", "2"),
            )
        )
        with pytest.raises(ConfigurationError, match="failed at 1"):
            execute(block, store)
        assert store.get("a") == "1"
        assert "b" not in store


class TestTests:
    @pytest.mark.parametrize("value", ["", "0", "False", "false", "FALSE", "  ", " 0 ", "\tfalse\n"])
    def test_falsy_values(self, value):
        assert not evaluate_test(Truthiness(tmpl("k")), PropertyStore({"k": value}))

    @pytest.mark.parametrize("value", ["1", "no", "anything", "true", "00", "off"])
    def test_truthy_values(self, value):
        assert evaluate_test(Truthiness(tmpl("k")), PropertyStore({"k": value}))

    def test_missing_key_is_false(self, store):
        assert not evaluate_test(Truthiness(tmpl("missing")), store)

    def test_is_truthy_helper(self):
        assert is_truthy("yes")
        assert not is_truthy(" False ")

    def test_equals_case_insensitive_by_default(self):
        store = PropertyStore({"env": "PROD"})
        assert evaluate_test(Equals(tmpl("env"), tmpl("prod")), store)
        assert not evaluate_test(Equals(tmpl("env"), tmpl("prod"), case_sensitive=True), store)
        assert evaluate_test(Equals(tmpl("env"), tmpl("PROD"), case_sensitive=True), store)

    def test_equals_ignore_case_is_character_wise(self):
        store = PropertyStore({"street": "Stra\u00dfe"})
        assert evaluate_test(Equals(tmpl("street"), tmpl("STRA\u00dfE")), store)
        assert not evaluate_test(Equals(tmpl("street"), tmpl("STRASSE")), store)
        assert equals_ignore_case("ABC", "abc")
        assert not equals_ignore_case("\u00df", "s")
        assert not equals_ignore_case("ab", "abc")

    def test_equals_missing_key_compares_empty(self, store):
        assert evaluate_test(Equals(tmpl("missing"), tmpl("")), store)

    def test_equals_value_is_templated(self):
        store = PropertyStore({"a": "x-1", "n": "1"})
        assert evaluate_test(Equals(tmpl("a"), tmpl("x-${n}")), store)

    def test_matches_requires_full_match(self):
        store = PropertyStore({"host": "web01.example.com"})
        assert evaluate_test(Matches(tmpl("host"), re.compile(r"web\d+\..*")), store)
        assert not evaluate_test(Matches(tmpl("host"), re.compile(r"web\d+")), store)

    def test_not(self):
        store = PropertyStore({"k": "1"})
        assert not evaluate_test(Not(Truthiness(tmpl("k"))), store)
        assert evaluate_test(Not(Not(Truthiness(tmpl("k")))), store)

    def test_unknown_test_node(self, store):
        with pytest.raises(TypeError):
            evaluate_test("nope", store)


class TestChoose:
    def _choose(self):
        return Choose(
            (
                When(Equals(tmpl("env"), tmpl("prod")), assign("x", "prod")),
                When(Truthiness(tmpl("debug")), assign("x", "debug")),
            ),
            otherwise=assign("x", "other"),
        )

    def test_first_true_when_wins(self):
        store = PropertyStore({"env": "prod", "debug": "1"})
        execute(self._choose(), store)
        assert store.get("x") == "prod"

    def test_second_when(self):
        store = PropertyStore({"env": "dev", "debug": "1"})
        execute(self._choose(), store)
        assert store.get("x") == "debug"

    def test_otherwise(self, store):
        execute(self._choose(), store)
        assert store.get("x") == "other"

    def test_no_match_without_otherwise_is_noop(self, store):
        execute(Choose((When(Truthiness(tmpl("k")), assign("x", "1")),)), store)
        assert store.to_dict() == {}


class TestTable:
    def _table(self, nomatch=None):
        pattern = compile_field_pattern("*-prod-*", "-")
        return Table(tmpl("${selector}"), "-", (TableEntry(pattern, assign("tier", "production")),), nomatch)

    def test_selector_matches(self):
        store = PropertyStore({"selector": "web-prod-east"})
        execute(self._table(), store)
        assert store.get("tier") == "production"

    def test_falls_through_to_nomatch(self):
        store = PropertyStore({"selector": "web-stage-east"})
        execute(self._table(nomatch=assign("tier", "other")), store)
        assert store.get("tier") == "other"

    def test_no_match_without_nomatch_is_noop(self):
        store = PropertyStore({"selector": "web-stage-east"})
        execute(self._table(), store)
        assert "tier" not in store

    def test_wildcard_cannot_cross_field_boundary(self):
        pattern = compile_field_pattern("*-east", "-")
        table = Table(tmpl("${selector}"), "-", (TableEntry(pattern, assign("hit", "1")),))
        store = PropertyStore({"selector": "web-prod-east"})
        execute(table, store)
        assert "hit" not in store

    def test_first_matching_entry_wins(self):
        entries = (
            TableEntry(compile_field_pattern("web-*", "-"), assign("r", "first")),
            TableEntry(compile_field_pattern("*-*", "-"), assign("r", "second")),
        )
        store = PropertyStore({"selector": "web-1"})
        execute(Table(tmpl("${selector}"), "-", entries), store)
        assert store.get("r") == "first"

    def test_case_sensitivity(self):
        insensitive = compile_field_pattern("WEB-*", "-")
        sensitive = compile_field_pattern("WEB-*", "-", case_sensitive=True)
        assert insensitive.fullmatch("web\nx")
        assert not sensitive.fullmatch("web\nx")

    def test_regex_fields(self):
        pattern = compile_field_pattern(r"web\d+|api-*", "-")
        assert pattern.fullmatch("web12\nanything")
        assert pattern.fullmatch("api\n")
        assert not pattern.fullmatch("web\nx")

    def test_without_separator_selector_is_single_field(self):
        pattern = compile_field_pattern("a-*", None)
        table = Table(tmpl("${selector}"), None, (TableEntry(pattern, assign("hit", "1")),))
        store = PropertyStore({"selector": "a---"})
        execute(table, store)
        assert store.get("hit") == "1"


class TestMatchPattern:
    def test_capture_bindings_are_scoped(self):
        store = PropertyStore({"0": "orig"})
        seen = {}

        body = Block(
            (
                assign("seen0", "${0}"),
                assign("seen1", "${1}"),
                assign("seen2", "${2}"),
                assign("seen3", "${3}"),
            )
        )
        execute(MatchPattern(Literal("abc"), re.compile("(a)(b)(c)"), body), store)

        for key in ("seen0", "seen1", "seen2", "seen3"):
            seen[key] = store.get(key)
        assert seen == {"seen0": "abc", "seen1": "a", "seen2": "b", "seen3": "c"}
        assert store.get("0") == "orig"
        for key in ("1", "2", "3"):
            assert key not in store

    def test_no_match_skips_body(self, store):
        execute(MatchPattern(Literal("xyz"), re.compile("(a)"), Block((assign("hit", "1"),))), store)
        assert store.to_dict() == {}

    def test_partial_match_is_not_a_match(self, store):
        execute(MatchPattern(Literal("abc"), re.compile("a"), Block((assign("hit", "1"),))), store)
        assert "hit" not in store

    def test_non_participating_group_is_removed_during_body(self):
        store = PropertyStore({"2": "stale"})
        body = Block((assign("during", "[${2}]"),))
        execute(MatchPattern(Literal("a"), re.compile("(a)|(b)"), body), store)
        assert store.get("during") == "[]"
        assert store.get("2") == "stale"

    def test_bindings_restored_when_body_raises(self):
        store = PropertyStore({"1": "before"})
        body = Block((ErrorStatement(tmpl("boom ${1}")),))
        with pytest.raises(ConfigurationError, match="boom x"):
            execute(MatchPattern(Literal("x"), re.compile("(x)"), body), store)
        assert store.get("1") == "before"
        assert "0" not in store

    def test_nested_patterns_restore_outer_bindings(self):
        store = PropertyStore()
        inner = MatchPattern(tmpl("${1}"), re.compile("(.)(.)"), Block((assign("inner", "${1}+${2}"),)))
        outer = MatchPattern(
            Literal("xy-z"),
            re.compile("(..)-(.)"),
            Block((inner, assign("outer", "${1}/${2}"))),
        )
        execute(outer, store)
        assert store.get("inner") == "x+y"
        assert store.get("outer") == "xy/z"
        assert store.to_dict() == {"inner": "x+y", "outer": "xy/z"}

    def test_capture_keys_shadow_inherited_values_only_locally(self):
        parent = PropertyStore({"1": "parent"})
        child = parent.new_child()
        execute(MatchPattern(Literal("q"), re.compile("(q)"), Block((assign("v", "${1}"),))), child)
        assert child.get("v") == "q"
        assert child.get("1") == "parent"
        assert child.local_get("1") is None


class TestExpressions:
    def test_literal_is_not_expanded(self, store):
        store.put("x", "1")
        assert evaluate_expression(Literal("${x}"), store) == "${x}"

    def test_unknown_nodes_raise_type_error(self, store):
        with pytest.raises(TypeError):
            evaluate_expression(object(), store)
        with pytest.raises(TypeError):
            execute(object(), store)
