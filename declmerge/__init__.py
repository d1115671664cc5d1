"""Merge ``declare module`` augmentations into API Extractor rollups."""

__version__ = "0.1.0"

from .config import ConfigError, ParsedConfig, load_config
from .orchestrator import MergeResult, Orchestrator, merge_module_declarations

__all__ = [
    "ConfigError",
    "MergeResult",
    "Orchestrator",
    "ParsedConfig",
    "__version__",
    "load_config",
    "merge_module_declarations",
]
