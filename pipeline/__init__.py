"""
pipeline package

Simulation driver, fixed-step update loop, configuration and logging setup.
"""

from pipeline.config import RippleConfig
from pipeline.simulation import RippleSimulation
from pipeline.update_loop import UpdateLoop, InputSourceProtocol, PresenterProtocol
from pipeline.logging_config import setup_logging

__all__ = [
    "RippleConfig",
    "RippleSimulation",
    "UpdateLoop",
    "InputSourceProtocol",
    "PresenterProtocol",
    "setup_logging",
]
