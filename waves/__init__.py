"""
waves package

Live wave-source registry and the field evaluation kernel.
"""

from waves.registry import WaveRegistry, WaveSnapshot, EMPTY_SNAPSHOT
from waves.field import (
    NEAR_ZERO_HEIGHT,
    FieldEvaluator,
    evaluate_element,
    evaluate_field,
    height_to_color,
    quantize_height,
    wave_contribution,
)

__all__ = [
    'WaveRegistry',
    'WaveSnapshot',
    'EMPTY_SNAPSHOT',
    'NEAR_ZERO_HEIGHT',
    'FieldEvaluator',
    'evaluate_element',
    'evaluate_field',
    'height_to_color',
    'quantize_height',
    'wave_contribution',
]
