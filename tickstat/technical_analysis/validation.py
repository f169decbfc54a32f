"""Parameter validation shared by indicator constructors and the factory."""

import math
from typing import Any, Optional

from .exceptions import InvalidParameterError

VALID_INPUT_FIELDS = ('open', 'high', 'low', 'close', 'volume', 'mid', 'price')


def validate_period(period: Any, name: str = "period", minimum: int = 1,
                    indicator_name: Optional[str] = None) -> int:
    """
    Validate a window length or smoothing period.

    Args:
        period (Any): The period value to validate
        name (str): Parameter name for error messages
        minimum (int): Smallest accepted value
        indicator_name (Optional[str]): Owner used to prefix error messages

    Returns:
        int: Validated period value

    Raises:
        InvalidParameterError: If period is not an integer >= minimum
    """
    # bool is an int subclass; True is not a period
    if not isinstance(period, int) or isinstance(period, bool):
        raise InvalidParameterError(name, period, "positive integer", indicator_name)

    if period < minimum:
        raise InvalidParameterError(name, period, f"integer >= {minimum}", indicator_name)

    return period


def validate_alpha(alpha: Any, indicator_name: Optional[str] = None) -> float:
    """
    Validate a custom exponential smoothing factor.

    Raises:
        InvalidParameterError: If alpha is not in (0, 1]
    """
    if not isinstance(alpha, (int, float)) or isinstance(alpha, bool):
        raise InvalidParameterError("alpha", alpha, "numeric value between 0 and 1", indicator_name)

    if not 0 < alpha <= 1:
        raise InvalidParameterError("alpha", alpha, "value in (0, 1]", indicator_name)

    return float(alpha)


def validate_multiplier(multiplier: Any, name: str = "multiplier",
                        indicator_name: Optional[str] = None) -> float:
    """
    Validate a band width multiplier (number of standard deviations).

    Raises:
        InvalidParameterError: If multiplier is not a positive finite number
    """
    if not isinstance(multiplier, (int, float)) or isinstance(multiplier, bool):
        raise InvalidParameterError(name, multiplier, "positive numeric value", indicator_name)

    if not math.isfinite(multiplier) or multiplier <= 0:
        raise InvalidParameterError(name, multiplier, "positive finite value (> 0)", indicator_name)

    return float(multiplier)


def validate_threshold(value: Any, name: str, indicator_name: Optional[str] = None) -> float:
    """
    Validate a single classification threshold.

    Raises:
        InvalidParameterError: If value is not a finite number
    """
    if not isinstance(value, (int, float)) or isinstance(value, bool) or not math.isfinite(value):
        raise InvalidParameterError(name, value, "finite numeric value", indicator_name)
    return float(value)


def validate_thresholds(upper: Any, lower: Any, upper_name: str = "overbought",
                        lower_name: str = "oversold",
                        indicator_name: Optional[str] = None) -> tuple:
    """
    Validate an (upper, lower) classification threshold pair.

    Returns:
        tuple: (upper, lower) as floats

    Raises:
        InvalidParameterError: If either bound is non-numeric or lower >= upper
    """
    upper = validate_threshold(upper, upper_name, indicator_name)
    lower = validate_threshold(lower, lower_name, indicator_name)

    if lower >= upper:
        raise InvalidParameterError(
            lower_name, lower, f"value below {upper_name} ({upper})", indicator_name
        )

    return float(upper), float(lower)


def validate_input_field(input_field: Any, indicator_name: Optional[str] = None) -> str:
    """
    Validate the sample field a scalar indicator reads from mapping samples.

    Returns:
        str: Lower-cased field name

    Raises:
        InvalidParameterError: If input field is not one of VALID_INPUT_FIELDS
    """
    if not isinstance(input_field, str):
        raise InvalidParameterError("input_field", input_field, "string", indicator_name)

    if input_field.lower() not in VALID_INPUT_FIELDS:
        raise InvalidParameterError(
            "input_field",
            input_field,
            f"one of {list(VALID_INPUT_FIELDS)}",
            indicator_name
        )

    return input_field.lower()
