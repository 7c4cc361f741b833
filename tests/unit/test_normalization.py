"""
Test slug and query normalization
"""

import pytest

from app.utils.normalization import normalize_query, normalize_text, query_words, slugify


@pytest.mark.parametrize(
    "text,expected",
    [
        ("Laptops & Computers", "laptops-computers"),
        ("Home & Garden", "home-garden"),
        ("  Books   Media ", "books-media"),
        ("Jūrmala", "jurmala"),
        ("under_score--dash", "under-score-dash"),
        ("!!!", ""),
    ],
)
def test_slugify(text, expected):
    assert slugify(text) == expected


def test_slugify_custom_separator():
    assert slugify("New York", separator="_") == "new_york"


def test_normalize_text_strips_accents_and_symbols():
    assert normalize_text("Liepāja, Latvia!") == "liepaja latvia"
    assert normalize_text("") == ""


def test_normalize_query_keeps_diacritics():
    assert normalize_query("  Rīga   Old  Town ") == "rīga old town"


def test_query_words_deduplicates_and_filters_short_words():
    assert query_words("Used iPhone for sale, iPhone mint") == ["used", "iphone", "sale", "mint"]
    assert query_words("a an of") == []
