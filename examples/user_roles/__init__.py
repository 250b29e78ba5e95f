"""
Users and roles sample application showcasing ModalORM capabilities.
"""

from .definitions import build_definitions, registry
from .demo import bootstrap_adapter, run_demo, seed_sample_data

__all__ = [
    "bootstrap_adapter",
    "build_definitions",
    "registry",
    "run_demo",
    "seed_sample_data",
]
