"""ClusterLens configuration system."""

from clusterlens.config.loader import check_config, find_config_file, load_config, load_config_or_default
from clusterlens.config.models import (
    AggregatorConfig,
    LensConfig,
    PollingConfig,
    RouterConfig,
    ServiceEntry,
)

__all__ = [
    "AggregatorConfig",
    "LensConfig",
    "PollingConfig",
    "RouterConfig",
    "ServiceEntry",
    "check_config",
    "find_config_file",
    "load_config",
    "load_config_or_default",
]
