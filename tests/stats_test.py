import pytest
from models.results import StatusLabel
from services.stats import (
    normal_cdf,
    conversion_rate,
    compute_confidence,
    compute_lift,
    compute_status,
)


# --- normal_cdf ---

def test_normal_cdf_is_one_half_at_zero():
    assert normal_cdf(0) == 0.5

@pytest.mark.parametrize("x", [-8.0001, -9, -50])
def test_normal_cdf_saturates_to_zero(x):
    assert normal_cdf(x) == 0

@pytest.mark.parametrize("x", [8.0001, 9, 50])
def test_normal_cdf_saturates_to_one(x):
    assert normal_cdf(x) == 1

def test_normal_cdf_is_symmetric():
    for x in (0.1, 0.5, 1, 1.96, 3, 7.5):
        assert normal_cdf(x) + normal_cdf(-x) == pytest.approx(1)

def test_normal_cdf_is_increasing_and_bounded():
    xs = [i / 4 for i in range(-32, 33)]
    values = [normal_cdf(x) for x in xs]
    assert all(0 <= v <= 1 for v in values)
    assert values == sorted(values)


# --- conversion_rate ---

def test_conversion_rate_without_impressions_is_zero():
    assert conversion_rate(3, 0) == 0

def test_conversion_rate_is_not_clamped():
    assert conversion_rate(10, 5) == 200


# --- compute_confidence ---

def test_confidence_for_clear_winner():
    # 5% vs 15% over 200 visitors each
    confidence = compute_confidence(200, 10, 200, 30)
    assert confidence >= 95
    assert confidence == pytest.approx(99.9)

def test_confidence_is_symmetric_in_direction():
    assert compute_confidence(200, 10, 200, 30) == compute_confidence(200, 30, 200, 10)

@pytest.mark.parametrize("args", [
    (0, 0, 100, 10),    # no control traffic
    (100, 10, 0, 0),    # no variant traffic
    (100, 0, 100, 0),   # pooled proportion is 0
    (100, 100, 50, 50), # pooled proportion is 1
    (100, 10, 100, 10), # identical proportions
])
def test_confidence_degenerate_cases_are_zero(args):
    assert compute_confidence(*args) == 0

def test_confidence_rounds_to_one_decimal():
    confidence = compute_confidence(120, 12, 110, 17)
    assert confidence == round(confidence, 1)
    assert 0 <= confidence <= 100

@pytest.mark.parametrize("n", [20, 40, 100, 200])
def test_confidence_grows_with_sample_size(n):
    # Fixed proportions: 10% control, 15% variant
    small = compute_confidence(n, n // 10, n, n * 15 // 100)
    large = compute_confidence(10 * n, n, 10 * n, n * 15 // 10)
    assert small <= large

def test_confidence_grows_with_effect_size():
    previous = 0
    for variant_conversions in range(10, 40, 2):
        confidence = compute_confidence(200, 10, 200, variant_conversions)
        assert confidence >= previous
        previous = confidence


# --- compute_lift ---

def test_lift_relative_to_control():
    assert compute_lift(15, 5, is_control=False) == 200.0
    assert compute_lift(5, 15, is_control=False) == -66.7

def test_lift_is_zero_for_control():
    assert compute_lift(15, 5, is_control=True) == 0

def test_lift_is_zero_without_baseline():
    assert compute_lift(15, 0, is_control=False) == 0


# --- compute_status ---

@pytest.mark.parametrize("name, lift, confidence, impressions, expected", [
    ("A", 50, 99, 1000, StatusLabel.CONTROL),
    ("A", 0, 0, 0, StatusLabel.CONTROL),
    ("B", 80, 99, 4, StatusLabel.COLLECTING),
    ("B", -80, 99, 0, StatusLabel.COLLECTING),
    ("B", 12.5, 95, 5, StatusLabel.WINNING),
    ("B", 0, 95, 200, StatusLabel.LOSING),
    ("B", -3, 99.9, 200, StatusLabel.LOSING),
    ("C", 4, 70, 200, StatusLabel.PROMISING),
    ("C", -4, 94.9, 200, StatusLabel.UNDERPERFORMING),
    ("C", 4, 69.9, 200, StatusLabel.STABLE),
    ("C", 0, 0, 200, StatusLabel.STABLE),
])
def test_status_decision_table(name, lift, confidence, impressions, expected):
    assert compute_status(name, lift, confidence, impressions) == expected

def test_status_serializes_as_label():
    assert StatusLabel.WINNING == "Winning"

def test_lift_never_negative_zero():
    lift = compute_lift(40.00, 40.01, is_control=False)
    assert lift == 0
    assert str(lift) == "0.0"
