"""
bootstrap/ - Bootstrap Layer

Configuration loading, stdlib logging setup, one-shot core wiring and
the CLI / API entry points.
"""

from .config import (
    FaultcoreConfig,
    LoggingConfig,
    APIConfig,
    load_config,
    get_config,
    set_config,
    reset_config,
)

from .app import (
    CoreState,
    CoreContext,
    initialize_core,
    get_core_context,
    shutdown_core,
    reset_core,
)

from .entrypoints import (
    JSONFormatter,
    setup_logging,
    cli_main,
    api_main,
)

__all__ = [
    # Config
    "FaultcoreConfig",
    "LoggingConfig",
    "APIConfig",
    "load_config",
    "get_config",
    "set_config",
    "reset_config",
    # App
    "CoreState",
    "CoreContext",
    "initialize_core",
    "get_core_context",
    "shutdown_core",
    "reset_core",
    # Entry points
    "JSONFormatter",
    "setup_logging",
    "cli_main",
    "api_main",
]
