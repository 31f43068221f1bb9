import math

from models.results import StatusLabel

# The variant named "A" is the control of every experiment
CONTROL_VARIANT_NAME = "A"

# Below this many impressions a variant is still collecting data
MIN_IMPRESSIONS = 5

WINNING_CONFIDENCE = 95
PROMISING_CONFIDENCE = 70

# Abramowitz & Stegun 7.1.26 coefficients
_P = 0.3275911
_A1 = 0.254829592
_A2 = -0.284496736
_A3 = 1.421413741
_A4 = -1.453152027
_A5 = 1.061405429


def normal_cdf(x: float) -> float:
    """
    Standard normal CDF using the Abramowitz & Stegun rational approximation.

    Saturates to exactly 0 below -8 and exactly 1 above 8.
    """
    if x < -8:
        return 0.0
    if x > 8:
        return 1.0

    sign = 1 if x > 0 else -1 if x < 0 else 0
    t = 1 / (1 + _P * abs(x))
    y = 1 - (((((_A5 * t + _A4) * t + _A3) * t + _A2) * t + _A1) * t * math.exp(-x * x / 2))
    return 0.5 * (1 + sign * y)


def conversion_rate(conversions: int, impressions: int) -> float:
    if impressions == 0:
        return 0.0
    return (conversions / impressions) * 100


def compute_confidence(
    control_impressions: int,
    control_conversions: int,
    variant_impressions: int,
    variant_conversions: int,
) -> float:
    """
    Two-proportion z-test expressed as a 0-100 confidence score.

    Returns 0 whenever the test is undefined: an empty sample, a pooled
    proportion of exactly 0 or 1, or a zero standard error.
    """
    if control_impressions == 0 or variant_impressions == 0:
        return 0.0

    p_control = control_conversions / control_impressions
    p_variant = variant_conversions / variant_impressions

    pooled = (control_conversions + variant_conversions) / (control_impressions + variant_impressions)
    if pooled == 0 or pooled == 1:
        return 0.0

    se = math.sqrt(pooled * (1 - pooled) * (1 / control_impressions + 1 / variant_impressions))
    if se == 0:
        return 0.0

    z = abs(p_variant - p_control) / se
    return round((normal_cdf(z) - 0.5) * 2 * 100, 1)


def compute_lift(rate: float, control_rate: float, is_control: bool) -> float:
    # No baseline means no lift; never divide by zero
    if is_control or control_rate == 0:
        return 0.0
    lift = round(((rate - control_rate) / control_rate) * 100, 1)
    # Small negative changes round to -0.0
    return lift if lift != 0 else 0.0


def compute_status(variant_name: str, lift: float, confidence: float, impressions: int) -> StatusLabel:
    """Flat decision table; the first matching row wins."""
    if variant_name == CONTROL_VARIANT_NAME:
        return StatusLabel.CONTROL
    if impressions < MIN_IMPRESSIONS:
        return StatusLabel.COLLECTING
    if confidence >= WINNING_CONFIDENCE:
        return StatusLabel.WINNING if lift > 0 else StatusLabel.LOSING
    if confidence >= PROMISING_CONFIDENCE:
        return StatusLabel.PROMISING if lift > 0 else StatusLabel.UNDERPERFORMING
    return StatusLabel.STABLE
