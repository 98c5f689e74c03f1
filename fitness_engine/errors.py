"""Typed errors raised by the fitness engine."""


class InvalidMetricRange(ValueError):
    """A physiological metric lies outside the domain a consumer can use."""

    def __init__(self, name: str, value: float, low: float, high: float):
        self.name = name
        self.value = value
        self.low = low
        self.high = high
        super().__init__(f"{name} ({value}) must be between {low} and {high}")


class InvalidAerobicIndex(InvalidMetricRange):
    """Aerobic index (VDOT) outside the range paces can be derived for."""

    def __init__(self, value: float, low: float = 30, high: float = 85):
        super().__init__('aerobic index', value, low, high)
