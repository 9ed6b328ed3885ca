"""Value score and top-N selection."""

import pytest

from app.services.deal_scoring import (
    DealCandidate,
    parse_confirmation_minutes,
    rank_deals,
    rank_scored,
    savings_percentage,
    score_deals,
    value_score,
)


def candidate(agent, price, original, rating, confirmation="2 min"):
    return DealCandidate(
        agent=agent,
        destination="Bali",
        price=price,
        original_price=original,
        hotel_rating=rating,
        confirmation_time=confirmation,
    )


# ---------------------------------------------------------------------------
# Components
# ---------------------------------------------------------------------------

def test_savings_percentage():
    assert savings_percentage(2899, 3499) == pytest.approx(17.1477, abs=1e-3)
    assert savings_percentage(100, 100) == 0
    assert savings_percentage(0, 100) == 100


def test_savings_percentage_rejects_non_positive_list_price():
    with pytest.raises(ValueError):
        savings_percentage(100, 0)
    with pytest.raises(ValueError):
        savings_percentage(100, -5)


@pytest.mark.parametrize("text,expected", [
    ("2 min", 2),
    ("2.3 min", 2),
    ("  15 minutes", 15),
    ("1", 1),
])
def test_parse_confirmation_minutes(text, expected):
    assert parse_confirmation_minutes(text) == expected


@pytest.mark.parametrize("text", ["instant", "", "min 5"])
def test_parse_confirmation_minutes_needs_leading_number(text):
    with pytest.raises(ValueError):
        parse_confirmation_minutes(text)


def test_value_score_formula():
    # 17.15 savings + 5 * 20 - 2 * 5
    assert value_score(candidate("TravelBot Pro", 2899, 3499, 5, "2 min")) == pytest.approx(107.1477, abs=1e-3)
    # 21.75 savings + 3 * 20 - 1 * 5
    assert value_score(candidate("WanderBot", 1799, 2299, 3, "1 min")) == pytest.approx(76.7486, abs=1e-3)


# ---------------------------------------------------------------------------
# Ranking
# ---------------------------------------------------------------------------

def test_rank_deals_picks_top_three_by_score():
    pool = [
        candidate("A", 900, 1000, 3, "1 min"),   # 10 + 60 - 5 = 65
        candidate("B", 800, 1000, 5, "4 min"),   # 20 + 100 - 20 = 100
        candidate("C", 500, 1000, 2, "1 min"),   # 50 + 40 - 5 = 85
        candidate("D", 950, 1000, 4, "5 min"),   # 5 + 80 - 25 = 60
        candidate("E", 700, 1000, 4, "3 min"),   # 30 + 80 - 15 = 95
    ]
    top = rank_deals(pool)
    assert [c.agent for c in top] == ["B", "E", "C"]


def test_ranked_scores_are_descending_and_unique():
    pool = [candidate(str(i), 1000 - i * 37, 1200, 1 + i % 5, f"{1 + i % 4} min") for i in range(12)]
    ranked = rank_scored(pool, top_n=5)
    scores = [s for _, s in ranked]
    assert scores == sorted(scores, reverse=True)
    assert len({id(c) for c, _ in ranked}) == 5
    assert all(c in pool for c, _ in ranked)


def test_ties_keep_input_order():
    pool = [candidate(name, 900, 1000, 4, "2 min") for name in ("first", "second", "third", "fourth")]
    assert [c.agent for c in rank_deals(pool)] == ["first", "second", "third"]


def test_top_n_larger_than_pool_returns_everything_sorted():
    pool = [candidate("low", 990, 1000, 1), candidate("high", 500, 1000, 5)]
    assert [c.agent for c in rank_deals(pool, top_n=10)] == ["high", "low"]


def test_empty_pool_and_zero_top_n():
    assert rank_deals([]) == []
    assert rank_deals([candidate("A", 900, 1000, 3)], top_n=0) == []


def test_negative_top_n_rejected():
    with pytest.raises(ValueError):
        rank_deals([candidate("A", 900, 1000, 3)], top_n=-1)


def test_score_deals_keeps_input_order():
    pool = [candidate("low", 990, 1000, 1), candidate("high", 500, 1000, 5)]
    assert [c.agent for c, _ in score_deals(pool)] == ["low", "high"]
