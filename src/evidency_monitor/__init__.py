"""evidency_monitor — rule-based code evidence scanning for PHP projects."""

__all__ = [
    "__version__",
    "run_monitor",
    "validate_instance",
    "MonitorConfig",
    "ConfigError",
    "RunResult",
]
__version__ = "1.0.0"

# Programmatic entrypoints.
from evidency_monitor.api import (  # noqa: E402, F401
    run_monitor,
    validate_instance,
)
from evidency_monitor.core.config import ConfigError, MonitorConfig  # noqa: E402, F401
from evidency_monitor.model.run_result import RunResult  # noqa: E402, F401
