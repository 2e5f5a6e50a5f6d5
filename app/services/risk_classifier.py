"""
@file risk_classifier.py
@brief WMO weather-code classification

@details
Pure, total functions over any integer: hazard flag for driving and a
human-readable label. Codes outside the known bands are "Unknown".

**Hazardous bands:** drizzle/rain 51-67, showers 80-82, thunderstorm 95-99.

@author RainSafe Project
@date 2026-10-19
@license AGPL-3.0
"""

from typing import Tuple

## @brief Inclusive code ranges that make a checkpoint hazardous
HAZARDOUS_RANGES: Tuple[Tuple[int, int], ...] = ((51, 67), (80, 82), (95, 99))

## @brief Inclusive code ranges mapped to their description
DESCRIPTIONS: Tuple[Tuple[int, int, str], ...] = (
    (0, 0, "Clear sky"),
    (1, 3, "Cloudy"),
    (45, 48, "Fog"),
    (51, 55, "Drizzle"),
    (56, 57, "Freezing Drizzle"),
    (61, 65, "Rain"),
    (66, 67, "Freezing Rain"),
    (71, 77, "Snow"),
    (80, 82, "Heavy Showers"),
    (85, 86, "Snow Showers"),
    (95, 99, "Thunderstorm"),
)


def is_hazardous_code(code: int) -> bool:
    return any(low <= code <= high for low, high in HAZARDOUS_RANGES)


def describe_weather_code(code: int) -> str:
    for low, high, label in DESCRIPTIONS:
        if low <= code <= high:
            return label
    return "Unknown"


def classify(code: int) -> Tuple[bool, str]:
    """
    @brief Hazard flag and description in one call
    """
    return is_hazardous_code(code), describe_weather_code(code)
