"""
bootstrap/entrypoints.py - Application entry points

Provides the ``faultcore`` CLI and the monitoring API server entry point.
"""

from __future__ import annotations
import argparse
import json
import logging
import sys

logger = logging.getLogger("bootstrap.entrypoints")

TEXT_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


class JSONFormatter(logging.Formatter):
    """One JSON object per record, including event logger extras."""

    def format(self, record):
        data = {
            "timestamp": self.formatTime(record),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        for attr, key in (
            ("log_level", "event_level"),
            ("log_context", "context"),
            ("log_metadata", "metadata"),
            ("log_source", "source"),
        ):
            value = getattr(record, attr, None)
            if value:
                data[key] = value
        if record.exc_info:
            data["exception"] = self.formatException(record.exc_info)
        return json.dumps(data, default=str)


def setup_logging(
    level: str = "INFO",
    log_file: str = None,
    json_format: bool = False,
    fmt: str = TEXT_FORMAT,
) -> None:
    """
    Configure application logging.

    Args:
        level: Log level (TRACE, DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_file: Optional log file path
        json_format: Use JSON format for logs
        fmt: Text format when ``json_format`` is False
    """
    # Importing levels registers the TRACE level name
    from faultcore.eventlog.levels import Severity

    severity = Severity.parse(level)
    log_level = severity.stdlib_level if severity is not None else logging.INFO

    formatter = JSONFormatter() if json_format else logging.Formatter(fmt)

    # Console handler
    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(formatter)
    console_handler.setLevel(log_level)

    # Root logger
    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)
    root_logger.addHandler(console_handler)

    # File handler
    if log_file:
        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(formatter)
        file_handler.setLevel(log_level)
        root_logger.addHandler(file_handler)

    # Reduce noise from third-party libraries
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("urllib3").setLevel(logging.WARNING)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="faultcore logging and error-handling core",
        prog="faultcore",
    )

    parser.add_argument(
        "-c", "--config",
        help="Path to configuration file",
        default=None,
    )
    parser.add_argument(
        "--log-level",
        choices=["TRACE", "DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        default=None,
        help="Log level (defaults to the configured or environment-derived level)",
    )
    parser.add_argument(
        "--log-file",
        help="Log file path",
        default=None,
    )
    parser.add_argument(
        "--json-logs",
        action="store_true",
        help="Write logs as JSON lines",
    )

    subparsers = parser.add_subparsers(dest="command")

    serve = subparsers.add_parser("serve", help="Run the monitoring API server")
    serve.add_argument("-H", "--host", help="API host", default=None)
    serve.add_argument("-p", "--port", type=int, help="API port", default=None)

    subparsers.add_parser("stats", help="Print error statistics for this process as JSON")
    subparsers.add_parser("check-config", help="Print the resolved configuration as JSON")

    return parser


def cli_main(args: list = None) -> int:
    """
    CLI entry point.

    Args:
        args: Command line arguments (defaults to sys.argv)

    Returns:
        Exit code
    """
    parser = _build_parser()
    parsed = parser.parse_args(args)

    try:
        from .config import load_config

        config = load_config(parsed.config)
        if parsed.log_level:
            config.logging.level = parsed.log_level
        if parsed.log_file:
            config.logging.log_file = parsed.log_file
        if parsed.json_logs:
            config.logging.json_logs = True

        setup_logging(
            level=config.logger_config().level.name,
            log_file=config.logging.log_file,
            json_format=config.logging.json_logs,
            fmt=config.logging.format,
        )

        command = parsed.command or "check-config"

        if command == "check-config":
            print(json.dumps(config.to_dict(), indent=2, default=str))
            return 0

        from .app import initialize_core, shutdown_core

        if command == "stats":
            initialize_core(config, install_hooks=False)
            try:
                from faultcore.errors.statistics import get_error_statistics
                print(json.dumps(get_error_statistics().to_dict(), indent=2, default=str))
            finally:
                shutdown_core()
            return 0

        if command == "serve":
            if parsed.host:
                config.api.host = parsed.host
            if parsed.port:
                config.api.port = parsed.port
            return _serve(config)

        parser.error(f"Unknown command: {command}")
        return 2

    except KeyboardInterrupt:
        print("\nInterrupted")
        return 130
    except Exception as e:
        logger.exception(f"Fatal error: {e}")
        return 1


def _serve(config) -> int:
    try:
        import uvicorn
    except ImportError:
        logger.error("uvicorn not installed. Run: pip install uvicorn")
        return 1

    from faultcore.api import create_app
    from .app import initialize_core, shutdown_core

    initialize_core(config)
    try:
        uvicorn.run(
            create_app(config),
            host=config.api.host,
            port=config.api.port,
        )
    finally:
        shutdown_core()
    return 0


def api_main(args: list = None) -> None:
    """
    API server entry point (``faultcore-api``).

    Args:
        args: Command line arguments
    """
    parser = argparse.ArgumentParser(
        description="faultcore monitoring API server",
        prog="faultcore-api",
    )
    parser.add_argument("-c", "--config", help="Path to configuration file", default=None)
    parser.add_argument("-H", "--host", help="API host", default=None)
    parser.add_argument("-p", "--port", type=int, help="API port", default=None)
    parser.add_argument(
        "--log-level",
        choices=["TRACE", "DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        default=None,
        help="Log level",
    )

    parsed = parser.parse_args(args)

    argv = []
    if parsed.config:
        argv += ["--config", parsed.config]
    if parsed.log_level:
        argv += ["--log-level", parsed.log_level]
    argv.append("serve")
    if parsed.host:
        argv += ["--host", parsed.host]
    if parsed.port:
        argv += ["--port", str(parsed.port)]

    sys.exit(cli_main(argv))


def main():
    """Main entry point for the package."""
    sys.exit(cli_main(sys.argv[1:]))


if __name__ == "__main__":
    main()
