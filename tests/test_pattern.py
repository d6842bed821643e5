import re

import pytest

from urouter import pattern
from urouter.errors import InvalidPatternError

REST = pattern.REST_GROUP


def test_exact_template():
    """Verify templates aren't regex or prefix matched."""
    m = pattern.compile_pattern("/fo.")
    assert m.try_match("fo.") == {}
    assert m.try_match("foo") is None
    assert m.try_match("fo./bar") is None
    assert m.try_match("x/fo.") is None


@pytest.mark.parametrize("template", [
    "print-request", "/print-request", "print-request/", "//print-request//"])
def test_template_separators_trimmed(template):
    m = pattern.compile_pattern(template)
    assert m.try_match("print-request") == {}


def test_root_template():
    m = pattern.compile_pattern("/")
    assert m.try_match("") == {}
    assert m.try_match("a") is None


def test_named_params():
    m = pattern.compile_pattern("cat-id-prop/:cat/:id/:prop")
    assert m.names == ("cat", "id", "prop")
    assert m.try_match("cat-id-prop/shoes/42/color") == dict(
        cat="shoes", id="42", prop="color")
    assert m.try_match("cat-id-prop/shoes/42") is None
    assert m.try_match("cat-id-prop/shoes/42/color/size") is None


def test_param_needs_a_value():
    m = pattern.compile_pattern("users/:name")
    assert m.try_match("users/") is None
    assert m.try_match("users") is None


def test_rest_capture():
    m = pattern.compile_pattern("cat-id-props/:cat/:id/...")
    assert m.has_rest
    assert m.try_match("cat-id-props/shoes/42/color/size") == {
        "cat": "shoes", "id": "42", REST: "color/size"}
    assert m.try_match("cat-id-props/shoes/42/color") == {
        "cat": "shoes", "id": "42", REST: "color"}


def test_rest_capture_is_optional():
    m = pattern.compile_pattern("cat-id-props/:cat/:id/...")
    assert m.try_match("cat-id-props/shoes/42") == {"cat": "shoes", "id": "42"}
    # the rest token only starts after a separator
    assert m.try_match("cat-id-props/shoes/42x") == {"cat": "shoes", "id": "42x"}
    assert m.try_match("cat-id-props/shoes") is None


def test_rest_only_template():
    m = pattern.compile_pattern("...")
    assert m.try_match("") == {}
    assert m.try_match("a/b/c") == {REST: "a/b/c"}


def test_rest_token_in_the_middle_is_literal():
    m = pattern.compile_pattern("a/.../b")
    assert not m.has_rest
    assert m.try_match("a/.../b") == {}
    assert m.try_match("a/x/b") is None


@pytest.mark.parametrize("template,reason", [
    ("users/:", "bad parameter name"),
    ("users/:first-name", "bad parameter name"),
    ("a/:id/b/:id", "duplicate"),
    ("a/:_rest", "reserved"),
])
def test_bad_templates(template, reason):
    with pytest.raises(InvalidPatternError) as exc_info:
        pattern.compile_pattern(template)
    assert reason in exc_info.value.reason
    assert exc_info.value.pattern == template


def test_raw_regex_is_used_verbatim():
    m = pattern.compile_pattern(re.compile(r"item-(?P<id>\d+)"))
    assert isinstance(m, pattern.RegexMatcher)
    assert m.try_match("item-7") == {"id": "7"}
    assert m.try_match("shop/item-7/x") == {"id": "7"}  # unanchored on purpose
    assert m.try_match("item-x") is None


def test_raw_regex_drops_unmatched_groups():
    m = pattern.compile_regex(r"^a(?:/(?P<b>\w+))?$")
    assert m.try_match("a") == {}
    assert m.try_match("a/z") == {"b": "z"}


def test_regex_string_compiled_up_front():
    with pytest.raises(InvalidPatternError) as exc_info:
        pattern.compile_regex(r"^(unclosed$")
    assert isinstance(exc_info.value.__cause__, re.error)


def test_regex_wrong_type():
    with pytest.raises(InvalidPatternError):
        pattern.compile_regex(42)  # type: ignore


def test_bytes_regex_rejected():
    for compile_fn in (pattern.compile_pattern, pattern.compile_regex):
        with pytest.raises(InvalidPatternError) as exc_info:
            compile_fn(re.compile(rb"^a$"))
        assert "bytes" in str(exc_info.value)


def test_predicate_results():
    seen = []

    def pred(path):
        seen.append(path)
        if path == "yes":
            return True
        if path.startswith("item-"):
            return {"id": path[5:]}
        return None

    m = pattern.compile_pattern(pred)
    assert isinstance(m, pattern.PredicateMatcher)
    assert m.try_match("yes") == {}
    assert m.try_match("item-9") == {"id": "9"}
    assert m.try_match("no") is None
    assert m.try_match("") is None
    assert seen == ["yes", "item-9", "no", ""]


def test_predicate_empty_mapping_is_no_match():
    m = pattern.compile_pattern(lambda path: {})
    assert m.try_match("anything") is None


@pytest.mark.parametrize("bad", [42, None, b"bytes/path", ["a"]])
def test_unsupported_pattern_kinds(bad):
    with pytest.raises(InvalidPatternError):
        pattern.compile_pattern(bad)


def test_every_kind_is_a_matcher():
    for spec in ("a/:b", re.compile("a"), lambda p: True):
        assert isinstance(pattern.compile_pattern(spec), pattern.Matcher)
