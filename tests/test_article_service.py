import pytest

from app.lorewiki.modules.articles.service import clamp_summary, normalize_category, slugify


@pytest.mark.parametrize(
    "title,expected",
    [
        ("Elder Dragon!", "elder-dragon"),
        ("Elder Dragon", "elder-dragon"),
        ("  The   Sword of  Ash  ", "the-sword-of-ash"),
        ("already-a-slug", "already-a-slug"),
        ("--Leading and trailing--", "leading-and-trailing"),
        ("a - b -- c", "a-b-c"),
        ("Ünïcode Café", "ncode-caf"),
        ("Tab\tand\nnewline", "tab-and-newline"),
        ("Version 2.0", "version-20"),
    ],
)
def test_slugify(title, expected):
    assert slugify(title) == expected


@pytest.mark.parametrize("title", ["", "   ", "!!!", "?? -- ??", None, 42])
def test_slugify_empty_results(title):
    assert slugify(title) == ""


@pytest.mark.parametrize(
    "value,expected",
    [
        ("world", "world"),
        ("Character", "character"),
        ("  ITEM ", "item"),
        ("system", "system"),
        ("spaceship", "world"),
        ("", "world"),
        (None, "world"),
        (3, "world"),
        (["item"], "world"),
    ],
)
def test_normalize_category(value, expected):
    assert normalize_category(value) == expected


def test_clamp_summary():
    assert clamp_summary("  fix typo  ") == "fix typo"
    assert clamp_summary("") is None
    assert clamp_summary("   ") is None
    assert clamp_summary(None) is None
    assert clamp_summary(12) is None
    assert clamp_summary("y" * 301) == "y" * 300
    assert clamp_summary("abcdef", max_length=3) == "abc"
