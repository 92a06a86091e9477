import pytest

from envpath.envpath_datatypes import DirectiveKind, Strength
from envpath.envpath_tokenizer import (
    ChainToken, FULL_COLON, FULL_QM, HALF_COLON, HALF_QM, colon_style, detect_style,
    match_remix, normalize_identifier, question_style, split_chain, split_prefix,
    starts_top_level_prefix, strip_ws,
)

V = Strength.VALUE
VP = Strength.VALUE_AND_PATH


def test_strip_ws_removes_inner_and_outer_whitespace():
    assert strip_ws("  xdg - data\t-home \n") == "xdg-data-home"


@pytest.mark.parametrize("text, expected", [
    ("a:b：c", HALF_COLON),
    ("a：b:c", FULL_COLON),
    ("abc", None),
])
def test_colon_style_first_occurrence_wins(text, expected):
    assert colon_style(text) == expected


def test_question_style_is_detected_independently_of_colon_style():
    text = "$env： home ? temp ？ tmp"
    assert colon_style(text) == FULL_COLON
    assert question_style(text) == HALF_QM


def test_detect_style_generic():
    assert detect_style("x-y_z", "_", "-") == "-"


def test_split_prefix_half_width():
    assert split_prefix(" $ env : home ? temp") == ("$env", " home ? temp", HALF_COLON)


def test_split_prefix_full_width():
    assert split_prefix("$dir： dl") == ("$dir", " dl", FULL_COLON)


def test_split_prefix_without_colon():
    assert split_prefix("/usr/local/bin") is None


def test_split_chain_single_candidate():
    assert split_chain("  home ") == [ChainToken("home", V)]


def test_split_chain_double_marker_qualifies_preceding_candidate():
    assert split_chain(" home ?? temp ") == [ChainToken("home", VP), ChainToken("temp", V)]


def test_split_chain_trailing_double_marker_applies_to_last():
    assert split_chain("a ? b ??") == [ChainToken("a", V), ChainToken("b", VP)]


def test_split_chain_trailing_single_marker_is_ignored():
    assert split_chain("a ?") == [ChainToken("a", V)]


def test_split_chain_full_width():
    assert split_chain("home ？？ temp", ) == [ChainToken("home", VP), ChainToken("temp", V)]


def test_split_chain_opposite_style_is_ordinary_text():
    # Half-width comes first, so the full-width mark stays inside the token.
    assert split_chain("a ? b ？ c") == [ChainToken("a", V), ChainToken("b？c", V)]


def test_split_chain_explicit_separator():
    assert split_chain("a ？ b", qm=FULL_QM) == [ChainToken("a", V), ChainToken("b", V)]


def test_split_chain_empty():
    assert split_chain("   ") == []
    assert split_chain(" ? ") == []


def test_match_remix():
    assert match_remix("env*xdg-data-home") == (DirectiveKind.ENV, "xdg-data-home")
    assert match_remix("proj*(com.x.y):cfg") == (DirectiveKind.PROJ, "(com.x.y):cfg")
    assert match_remix("home") is None
    assert match_remix("project*cfg") is None


def test_starts_top_level_prefix():
    assert starts_top_level_prefix("$env:home")
    assert starts_top_level_prefix("$project(a.b.c):cfg")
    assert not starts_top_level_prefix("$environment")
    assert not starts_top_level_prefix("env*home")


def test_normalize_identifier_env_is_upper_snake():
    assert normalize_identifier("xdg-data-home", DirectiveKind.ENV) == "XDG_DATA_HOME"


@pytest.mark.parametrize("kind", [DirectiveKind.CONST, DirectiveKind.DIR, DirectiveKind.PROJ])
def test_normalize_identifier_tables_are_lower_snake(kind):
    assert normalize_identifier("Local-Data", kind) == "local_data"
