"""Factory for creating technical indicators."""

import inspect
import logging
from typing import Any, Dict, List, Mapping, Optional, Type

from .base import BaseIndicator
from .exceptions import IndicatorNotFoundError, InvalidParameterError
from .indicators.composite import KDJ, MACD, BollingerBands, Stochastic
from .indicators.momentum import RSI
from .indicators.trend import EMA, SMA
from .indicators.volatility import ATR
from .validation import (  # noqa: F401  re-exported for ta.validate_*
    validate_alpha,
    validate_input_field,
    validate_multiplier,
    validate_period,
    validate_thresholds,
)

logger = logging.getLogger(__name__)


class IndicatorRegistry:
    """Registry for managing indicators with aliases."""

    def __init__(self):
        """Initialize registry with built-in indicators."""
        self._registry: Dict[str, Type[BaseIndicator]] = {}
        self._canonical: Dict[Type[BaseIndicator], str] = {}
        self._register_builtin_indicators()

    def _register_builtin_indicators(self) -> None:
        """Register built-in indicators."""
        # Trend indicators
        self.register('sma', SMA, aliases=['simple_ma', 'simple_moving_average'])
        self.register('ema', EMA, aliases=['exp_ma', 'exponential_moving_average'])

        # Momentum indicators
        self.register('rsi', RSI, aliases=['relative_strength_index'])

        # Volatility indicators
        self.register('atr', ATR, aliases=['average_true_range'])

        # Composite indicators
        self.register('macd', MACD, aliases=['moving_average_convergence_divergence'])
        self.register('bollinger_bands', BollingerBands, aliases=['bbands', 'bb'])
        self.register('stochastic', Stochastic, aliases=['stoch'])
        self.register('kdj', KDJ)

    def register(self, name: str, indicator_class: Type[BaseIndicator], aliases: Optional[List[str]] = None) -> None:
        """Register indicator with aliases."""
        name_lower = name.lower()
        self._registry[name_lower] = indicator_class
        self._canonical[indicator_class] = name_lower

        if aliases:
            for alias in aliases:
                self._registry[alias.lower()] = indicator_class

    def get(self, name: str) -> Type[BaseIndicator]:
        """Get indicator class by name."""
        if not isinstance(name, str) or name.lower() not in self._registry:
            raise IndicatorNotFoundError(str(name), self.list_indicators())

        return self._registry[name.lower()]

    def list_indicators(self) -> List[str]:
        """List canonical indicator names, without aliases."""
        return sorted(self._canonical.values())

    def get_aliases(self, name: str) -> List[str]:
        """
        Get all aliases for an indicator.

        Args:
            name (str): Indicator name

        Returns:
            List[str]: List of all names (including aliases) for the indicator
        """
        try:
            target_class = self.get(name)
        except IndicatorNotFoundError:
            return []
        return [key for key, cls in self._registry.items() if cls is target_class]


# Global registry instance
_REGISTRY = IndicatorRegistry()


def create(name: str, **kwargs) -> BaseIndicator:
    """
    Factory function to create technical indicators by name.

    Args:
        name (str): Name of the indicator to create (case-insensitive).
            Available indicators can be listed using list_indicators().
        **kwargs: Parameters to pass to the indicator constructor.

    Returns:
        BaseIndicator: Configured indicator instance ready for use

    Raises:
        IndicatorNotFoundError: If the indicator name is not recognized
        InvalidParameterError: If parameters are invalid or unknown

    Examples:
        >>> import tickstat.technical_analysis as ta
        >>> sma = ta.create('sma', period=20)
        >>> macd = ta.create('MACD', fast_period=12, slow_period=26, signal_period=9)
        >>> bbands = ta.create('bb', period=20, multiplier=2.0)
        >>> kdj = ta.create('kdj', k_period=9, golden_cross_threshold=30)
    """
    indicator_class = _REGISTRY.get(name)

    sig = inspect.signature(indicator_class.__init__)
    params = list(sig.parameters.keys())[1:]  # Skip 'self'
    try:
        sig.bind(None, **kwargs)
    except TypeError as e:
        raise InvalidParameterError(
            parameter_name="constructor",
            value=str(kwargs),
            expected=f"valid parameters for {name}: {params}",
            indicator_name=name
        ) from e

    indicator = indicator_class(**kwargs)
    logger.debug(f"Created {indicator!r} from '{name}'")
    return indicator


def create_from_config(config: Mapping[str, Mapping[str, Any]]) -> Dict[str, BaseIndicator]:
    """
    Build named indicators from a configuration mapping.

    Each entry maps an instance name to its parameters, with the indicator
    type under 'type' (defaulting to the instance name):

        indicators:
          fast_trend: {type: ema, period: 12}
          rsi: {period: 14, overbought: 75}

    Returns:
        Dict[str, BaseIndicator]: Instance name to indicator, in config order.

    Raises:
        IndicatorNotFoundError: If a type is not recognized
        InvalidParameterError: If an entry is not a mapping or its parameters are invalid
    """
    indicators: Dict[str, BaseIndicator] = {}
    for instance_name, entry in (config or {}).items():
        if entry is None:
            entry = {}
        if not isinstance(entry, Mapping):
            raise InvalidParameterError(instance_name, entry, "mapping of indicator parameters")

        params = dict(entry)
        indicator_type = params.pop('type', instance_name)
        indicators[instance_name] = create(indicator_type, **params)

    logger.info(f"Created {len(indicators)} indicators from config: {list(indicators)}")
    return indicators


def list_indicators() -> List[str]:
    """
    Get a list of all available indicator names.

    Example:
        >>> import tickstat.technical_analysis as ta
        >>> ta.list_indicators()
        ['atr', 'bollinger_bands', 'ema', 'kdj', 'macd', 'rsi', 'sma', 'stochastic']
    """
    return _REGISTRY.list_indicators()


def describe(name: str) -> Dict[str, Any]:
    """
    Get detailed information about an indicator including parameters and documentation.

    Args:
        name (str): Name of the indicator to describe (case-insensitive)

    Returns:
        Dict[str, Any]: Dictionary containing:
            - name: Canonical class name
            - aliases: List of alternative names
            - parameters: Parameter information from constructor signature
            - docstring: Class documentation
            - required_inputs: Required input fields for the indicator

    Raises:
        IndicatorNotFoundError: If the indicator name is not recognized
    """
    indicator_class = _REGISTRY.get(name)

    sig = inspect.signature(indicator_class.__init__)
    parameters = {}

    for param_name, param in sig.parameters.items():
        if param_name == 'self':
            continue

        param_info = {
            'type': param.annotation if param.annotation != inspect.Parameter.empty else 'Any',
            'default': param.default if param.default != inspect.Parameter.empty else None,
            'required': param.default == inspect.Parameter.empty
        }
        parameters[param_name] = param_info

    return {
        'name': indicator_class.__name__,
        'aliases': _REGISTRY.get_aliases(name),
        'parameters': parameters,
        'docstring': indicator_class.__doc__,
        'required_inputs': getattr(indicator_class, 'required_inputs', ()),
    }
