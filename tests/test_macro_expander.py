import pytest

from customization.config import merge_documents
from customization.errors import (
    CycleDetectedError,
    DepthExceededError,
    ExpansionTooLargeError,
    UnknownKeyError,
)
from customization.macro import MAX_EXPANSION_LENGTH, MacroExpander, expand, find_placeholders


def _config(**templates):
    return merge_documents(templates)


def test_context_values_substituted():
    result = expand(
        "Hi %NAME%, file %CURRENT_FILE%",
        {"NAME": "Refact", "CURRENT_FILE": "a.rs:10"},
        _config(),
    )
    assert result == "Hi Refact, file a.rs:10"


def test_config_keys_expand_recursively():
    config = _config(OUTER="[%INNER%]", INNER="<%LEAF%>", LEAF="leaf")
    assert expand("%OUTER% and %LEAF%", {}, config) == "[<leaf>] and leaf"


def test_context_wins_over_config_key():
    config = _config(WORKSPACE_INFO="default workspace")
    assert expand("%WORKSPACE_INFO%", {"WORKSPACE_INFO": "from editor"}, config) == "from editor"


def test_context_values_are_terminal():
    config = _config(ARGS="config args")
    selection = "print('%ARGS%')\n# 100% %CODE_SELECTION%"
    result = expand("```\n%CODE_SELECTION%\n```", {"CODE_SELECTION": selection}, config)
    assert result == "```\n" + selection + "\n```"


def test_non_string_context_values_are_stringified():
    assert expand("%CURRENT_FILE%:%CURSOR_LINE%", {"CURRENT_FILE": "a.py", "CURSOR_LINE": 42}) == "a.py:42"


def test_whitespace_and_newlines_preserved():
    config = _config(BODY="    indented\n\ttabbed\n")
    template = "def f():\n%BODY%\n\n  trailing  "
    assert expand(template, {}, config) == "def f():\n    indented\n\ttabbed\n\n\n  trailing  "


@pytest.mark.parametrize("text", [
    "no placeholders at all",
    "50% done",
    "100% sure and 20% more",
    "%not a key%",
    "%%",
    "%1ABC%",
    "trailing %",
])
def test_text_without_valid_placeholders_is_verbatim(text):
    assert expand(text, {}, _config()) == text


def test_adjacent_placeholders():
    assert expand("%A%%B%", {"A": "x", "B": "y"}) == "xy"


def test_unknown_key():
    with pytest.raises(UnknownKeyError) as exc_info:
        expand("Hello %MISSING%", {}, _config())
    assert exc_info.value.name == "MISSING"
    assert "%MISSING%" in str(exc_info.value)


def test_unknown_key_reports_expansion_path():
    config = _config(OUTER="%INNER%", INNER="%MISSING%")
    with pytest.raises(UnknownKeyError) as exc_info:
        expand("%OUTER%", {}, config)
    assert exc_info.value.path == ["OUTER", "INNER"]


def test_record_keys_are_not_templates():
    config = merge_documents({"system_prompts": {"default": {"text": "x"}}})
    with pytest.raises(UnknownKeyError):
        expand("%system_prompts%", {}, config)


def test_self_reference_is_cycle():
    config = _config(LOOP="again %LOOP%")
    with pytest.raises(CycleDetectedError) as exc_info:
        expand("%LOOP%", {}, config)
    assert exc_info.value.path == ["LOOP", "LOOP"]


def test_mutual_reference_is_cycle():
    config = _config(A="a %B%", B="b %C%", C="c %A%")
    with pytest.raises(CycleDetectedError) as exc_info:
        expand("start %A%", {}, config)
    assert exc_info.value.path == ["A", "B", "C", "A"]


def test_cycle_broken_by_context_value():
    config = _config(A="a %B%", B="b %A%")
    assert expand("%A%", {"B": "stop"}, config) == "a stop"


def test_repeated_reference_is_not_a_cycle():
    config = _config(LEAF="x", PAIR="%LEAF%%LEAF%")
    assert expand("%PAIR% %PAIR%", {}, config) == "xx xx"


def test_acyclic_chain_within_depth_expands():
    templates = {f"K{i}": f"%K{i + 1}%" for i in range(5)}
    templates["K5"] = "bottom"
    assert MacroExpander(max_depth=6).expand("%K0%", {}, _config(**templates)) == "bottom"


def test_depth_exceeded():
    templates = {f"K{i}": f"%K{i + 1}%" for i in range(5)}
    templates["K5"] = "bottom"
    with pytest.raises(DepthExceededError) as exc_info:
        MacroExpander(max_depth=3).expand("%K0%", {}, _config(**templates))
    assert exc_info.value.max_depth == 3
    assert exc_info.value.path == ["K0", "K1", "K2", "K3"]


def test_shared_key_still_checked_against_depth():
    config = _config(A="%C%", B="%D%", D="%C%", C="leaf")
    expander = MacroExpander(max_depth=2)
    assert expander.expand("%A%", {}, config) == "leaf"
    with pytest.raises(DepthExceededError) as exc_info:
        expander.expand("%A% %B%", {}, config)
    assert exc_info.value.path == ["B", "D", "C"]


def _fan_out(levels, leaf, width=10):
    templates = {f"K{i}": f"%K{i + 1}%" * width for i in range(levels)}
    templates[f"K{levels}"] = leaf
    return _config(**templates)


def test_fan_out_stops_at_size_ceiling():
    with pytest.raises(ExpansionTooLargeError) as exc_info:
        MacroExpander().expand("%K0%", {}, _fan_out(15, "x"))
    assert exc_info.value.max_length == MAX_EXPANSION_LENGTH
    assert exc_info.value.path[:2] == ["K0", "K1"]


def test_fan_out_with_empty_leaf_finishes():
    assert MacroExpander().expand("%K0%", {}, _fan_out(15, "")) == ""


def test_fan_out_within_size_ceiling_expands():
    assert MacroExpander(max_length=1000).expand("%K0%", {}, _fan_out(3, "x")) == "x" * 1000


def test_size_ceiling_reports_expansion_path():
    config = _config(A="abc%B%", B="def")
    assert MacroExpander(max_length=6).expand("%A%", {}, config) == "abcdef"
    with pytest.raises(ExpansionTooLargeError) as exc_info:
        MacroExpander(max_length=5).expand("%A%", {}, config)
    assert exc_info.value.path == ["A", "B"]


def test_context_values_count_towards_size_ceiling():
    with pytest.raises(ExpansionTooLargeError):
        MacroExpander(max_length=10).expand("%SEL%", {"SEL": "y" * 11})


def test_long_cycle_beyond_depth_still_reported_as_cycle():
    templates = {f"K{i}": f"%K{(i + 1) % 10}%" for i in range(10)}
    with pytest.raises(CycleDetectedError) as exc_info:
        MacroExpander(max_depth=4).expand("%K0%", {}, _config(**templates))
    path = exc_info.value.path
    assert path[0] == path[-1]
    assert len(path) == 11


def test_find_cycle_returns_none_for_acyclic_graph():
    expander = MacroExpander()
    templates = {"A": "%B% %C%", "B": "%C%", "C": "leaf"}
    assert expander.find_cycle("A", {}, templates) is None


@pytest.mark.parametrize("kwargs", [{"max_depth": 0}, {"max_length": 0}])
def test_invalid_ceilings(kwargs):
    with pytest.raises(ValueError):
        MacroExpander(**kwargs)


def test_expand_without_config_uses_context_only():
    assert expand("%A%", {"A": "only context"}) == "only context"


def test_find_placeholders():
    assert find_placeholders("@file %CURRENT_FILE%:%CURSOR_LINE% 50% %bad key%") == [
        "CURRENT_FILE",
        "CURSOR_LINE",
    ]
