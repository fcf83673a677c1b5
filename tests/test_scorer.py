"""Tests for the multi-signal scorer.

Each signal is checked in isolation through the score breakdown, using
titles, categories and image features chosen so that no other signal fires.
"""

import pytest

from src.recommender.scorer import ProductScorer, score_products
from tests.factories import make_product, search, view


def _breakdown(activity, catalog):
    _, breakdown = ProductScorer(activity, catalog).score(return_breakdown=True)
    return breakdown


# ===== Direct views =====


def test_view_signal_counts_every_view():
    """Test that each view event adds one point to the viewed product."""
    catalog = [make_product("A", title="Clay Pot")]
    breakdown = _breakdown([view("A"), view("A")], catalog)

    assert breakdown["view"] == {"A": 2.0}


def test_view_of_product_missing_from_catalog_still_scores():
    """Test that views are scored even when the product was since deleted."""
    catalog = [make_product("A", title="Clay Pot")]
    scores = score_products([view("Z")], catalog)

    assert scores == {"Z": 1.0}


# ===== Search =====


def test_search_signal_matches_title_substring():
    """Test the pottery example: only the matching product gains points."""
    catalog = [
        make_product("X", title="Blue Pottery Vase"),
        make_product("Y", title="Wood Carving"),
    ]
    scores = score_products([search("pottery")], catalog)

    assert scores == {"X": 2.0}


def test_search_signal_is_case_insensitive():
    """Test that queries and product text are compared lowercased."""
    catalog = [make_product("X", title="Blue Pottery Vase")]

    assert score_products([search("POTTERY")], catalog) == {"X": 2.0}


def test_search_signal_matches_description_and_category():
    """Test that description and category are searched as well."""
    catalog = [
        make_product("D", title="Vase", description="glazed terracotta"),
        make_product("C", title="Bowl", category="Terracotta"),
        make_product("N", title="Spoon", category="wood"),
    ]
    scores = score_products([search("terracotta")], catalog)

    assert scores == {"D": 2.0, "C": 2.0}


def test_search_signal_accumulates_across_searches():
    """Test that every matching search adds another two points."""
    catalog = [make_product("X", title="Blue Pottery Vase")]
    scores = score_products([search("pottery"), search("blue"), search("marble")], catalog)

    assert scores == {"X": 4.0}


def test_search_without_matches_scores_nothing():
    """Test that a query matching nothing contributes nothing."""
    catalog = [make_product("X", title="Blue Pottery Vase")]

    assert score_products([search("bicycle")], catalog) == {}


def test_search_query_spaces_are_part_of_the_substring():
    """Test that a leading space in the query must be matched as well."""
    catalog = [
        make_product("X", title="Blue Vase"),
        make_product("Y", title="Vaseline Jar"),
    ]

    assert score_products([search(" vase")], catalog) == {"X": 2.0}


def test_blank_search_query_is_ignored():
    """Test that a whitespace-only query matches nothing."""
    catalog = [make_product("X", title="Blue  Vase")]

    assert score_products([search("  ")], catalog) == {}


# ===== Category affinity =====


def test_category_affinity_scenario(pottery_catalog):
    """Test that a same-category product gains affinity and a different one does not."""
    scores = score_products([view("A")], pottery_catalog)

    # B: +2 category, +1 content ({clay, jar} vs {clay, pot} = 1/3)
    assert scores == {"A": 1.0, "B": pytest.approx(3.0)}


def test_category_affinity_is_flat():
    """Test that several viewed products of one category still give +2 once."""
    catalog = [
        make_product("A1", category="pottery"),
        make_product("A2", category="pottery"),
        make_product("B", category="pottery"),
    ]
    breakdown = _breakdown([view("A1"), view("A2")], catalog)

    assert breakdown["category"] == {"B": 2.0}


def test_category_affinity_ignores_empty_categories():
    """Test that uncategorised products do not match each other."""
    catalog = [make_product("A", category=""), make_product("B", category="")]

    assert _breakdown([view("A")], catalog)["category"] == {}


# ===== Content similarity =====


def test_content_similarity_uses_jaccard_times_three():
    """Test the bonus for a half-overlapping title."""
    catalog = [
        make_product("V", title="Blue Pottery Vase"),
        make_product("P", title="Blue Pottery Bowl"),
    ]
    breakdown = _breakdown([view("V")], catalog)

    # {blue, pottery} / {blue, pottery, vase, bowl}
    assert breakdown["content"] == {"P": pytest.approx(1.5)}


def test_content_similarity_takes_best_viewed_match():
    """Test that the maximum over viewed products is used, not the sum."""
    catalog = [
        make_product("V1", title="Silver Ring"),
        make_product("V2", title="Brass Bell Lamp"),
        make_product("P", title="Brass Bell"),
    ]
    breakdown = _breakdown([view("V1"), view("V2")], catalog)

    # {brass, bell} vs {brass, bell, lamp} = 2/3
    assert breakdown["content"] == {"P": pytest.approx(2.0)}


def test_content_similarity_includes_description():
    """Test that description tokens join the title tokens."""
    catalog = [
        make_product("V", title="Scarf", description="hand woven silk"),
        make_product("P", title="Stole", description="Hand-woven silk!"),
    ]
    breakdown = _breakdown([view("V")], catalog)

    # {hand, woven, silk} shared out of {scarf, stole, hand, woven, silk}
    assert breakdown["content"] == {"P": pytest.approx(3 / 5 * 3)}


def test_content_similarity_caps_at_three():
    """Test that identical text gives exactly the maximum bonus."""
    catalog = [
        make_product("V", title="Teak Box"),
        make_product("P", title="teak box"),
    ]

    assert _breakdown([view("V")], catalog)["content"] == {"P": pytest.approx(3.0)}


def test_content_similarity_skips_viewed_products():
    """Test that viewed products never reinforce each other."""
    catalog = [
        make_product("V1", title="Teak Box"),
        make_product("V2", title="Teak Box Large"),
    ]

    assert _breakdown([view("V1"), view("V2")], catalog)["content"] == {}


# ===== Image similarity =====


def test_image_similarity_identical_features():
    """Test that identical color and hash give the full three points."""
    catalog = [
        make_product("V", color=(100, 100, 100), ahash="0000000000000000"),
        make_product("P", color=(100, 100, 100), ahash="0000000000000000"),
    ]

    assert _breakdown([view("V")], catalog)["image"] == {"P": pytest.approx(3.0)}


def test_image_similarity_hash_only():
    """Test that a candidate with only a hash still scores from it."""
    catalog = [
        make_product("V", color=(0, 0, 0), ahash="0000000000000000"),
        make_product("P", ahash="000000000000000f"),
    ]

    assert _breakdown([view("V")], catalog)["image"] == {"P": pytest.approx(1.5 * (1 - 4 / 64))}


def test_image_similarity_takes_independent_maxima():
    """Test that color and hash maxima may come from different viewed products."""
    catalog = [
        make_product("V1", color=(10, 10, 10), ahash="ffffffffffffffff"),
        make_product("V2", color=(200, 200, 200), ahash="0000000000000000"),
        make_product("P", color=(10, 10, 10), ahash="0000000000000000"),
    ]

    assert _breakdown([view("V1"), view("V2")], catalog)["image"] == {"P": pytest.approx(3.0)}


def test_image_similarity_ignores_products_without_features():
    """Test that missing features contribute nothing and are not penalised."""
    catalog = [
        make_product("V", color=(100, 100, 100), ahash="0000000000000000"),
        make_product("P", title="plain"),
    ]

    assert _breakdown([view("V")], catalog)["image"] == {}


def test_image_similarity_needs_viewed_features():
    """Test that nothing is scored when no viewed product has features."""
    catalog = [
        make_product("V"),
        make_product("P", color=(100, 100, 100), ahash="0000000000000000"),
    ]

    assert _breakdown([view("V")], catalog)["image"] == {}


def test_image_similarity_opposite_features_score_zero():
    """Test that black vs white with inverted hashes adds nothing."""
    catalog = [
        make_product("V", color=(0, 0, 0), ahash="0000000000000000"),
        make_product("P", color=(255, 255, 255), ahash="ffffffffffffffff"),
    ]

    assert _breakdown([view("V")], catalog)["image"] == {}


# ===== Duplicate title =====


def test_duplicate_title_matches_normalized_titles():
    """Test that relisted items with the same title gain the flat bonus."""
    catalog = [
        make_product("V", title="Handmade Scarf", category="a"),
        make_product("D1", title="handmade   scarf", category="b", price=12.0),
        make_product("D2", title=" HANDMADE SCARF ", category="c", price=15.0),
        make_product("N", title="Handmade Scarf Set", category="d"),
    ]
    breakdown = _breakdown([view("V")], catalog)

    assert breakdown["duplicate_title"] == {"D1": 2.0, "D2": 2.0}


def test_duplicate_title_requires_viewed_title_match():
    """Test that identical titles among unviewed products do not count."""
    catalog = [
        make_product("V", title="Wool Hat", category="a"),
        make_product("D1", title="Handmade Scarf", category="b"),
        make_product("D2", title="Handmade Scarf", category="c"),
    ]

    assert _breakdown([view("V")], catalog)["duplicate_title"] == {}


def test_duplicate_title_ignores_empty_titles():
    """Test that untitled products never count as duplicates."""
    catalog = [make_product("V", title="  "), make_product("P", title="")]

    assert _breakdown([view("V")], catalog)["duplicate_title"] == {}


# ===== Totals =====


def test_signals_sum_per_product():
    """Test that a product collects credit from several signals at once."""
    catalog = [
        make_product("V", title="Clay Pot", category="pottery"),
        make_product("P", title="Clay Pot", category="pottery"),
    ]
    scores = score_products([view("V"), search("clay")], catalog)

    # P: search 2 + category 2 + content 3 + duplicate title 2
    assert scores["P"] == pytest.approx(9.0)
    # V: view 1 + search 2
    assert scores["V"] == pytest.approx(3.0)


def test_no_signal_gives_empty_scores():
    """Test that unrelated activity produces an empty score map."""
    catalog = [make_product("A", title="Clay Pot", category="pottery")]

    assert score_products([search("bicycle")], catalog) == {}


def test_repeated_catalog_ids_are_scored_once():
    """Test that a duplicated catalog row does not double its score."""
    catalog = [
        make_product("X", title="Blue Pottery Vase"),
        make_product("X", title="Blue Pottery Vase"),
    ]

    assert score_products([search("pottery")], catalog) == {"X": 2.0}
