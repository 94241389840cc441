"""Logger configuration — YAML file, then env vars, then CLI flags."""

import argparse
import logging
import os
from dataclasses import dataclass, field
from urllib.parse import urlparse

import yaml

from remote_logger.models import LogLevel

logger = logging.getLogger(__name__)

CONFIG_PATH_ENV = "REMOTE_LOGGER_CONFIG"


def _parse_bool(value) -> bool:
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in ("true", "1", "yes")


@dataclass(frozen=True)
class LoggerConfiguration:
    endpoint: str = ""
    auth_token: str = ""
    batch_size: int = 50
    flush_interval: float = 30.0
    max_retries: int = 3
    console_mirror: bool = True
    transport_enabled: bool = True
    request_timeout: float = 10.0
    min_level: LogLevel = field(default=LogLevel.DEBUG)


def validate_config(config: LoggerConfiguration) -> list[str]:
    """Return a list of problems; empty means the config can ship logs."""
    problems = []
    parsed = urlparse(config.endpoint or "")
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        problems.append(f"endpoint must be an http(s) URL, got {config.endpoint!r}")
    if not config.auth_token or not config.auth_token.strip():
        problems.append("auth_token is required")
    if config.batch_size < 1:
        problems.append(f"batch_size must be >= 1, got {config.batch_size}")
    if config.flush_interval <= 0:
        problems.append(f"flush_interval must be > 0, got {config.flush_interval}")
    if config.max_retries < 0:
        problems.append(f"max_retries must be >= 0, got {config.max_retries}")
    if config.request_timeout <= 0:
        problems.append(f"request_timeout must be > 0, got {config.request_timeout}")
    return problems


def load_yaml_config(path: str | None) -> dict:
    """Load the ``logger`` section of a YAML file. Returns empty dict if no path."""
    if not path:
        return {}
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except FileNotFoundError:
        logger.warning("Config file %s not found, using defaults", path)
        return {}
    except yaml.YAMLError as e:
        logger.warning("Invalid YAML in %s, using defaults: %s", path, e)
        return {}
    if not isinstance(data, dict):
        logger.warning("Config file %s is not a mapping, using defaults", path)
        return {}
    logger.info("Loaded YAML config from %s", path)
    section = data.get("logger", data)
    return section if isinstance(section, dict) else {}


def build_parser(description: str = "Remote logger") -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description=description)
    parser.add_argument("--config", type=str, default=None, help="YAML config file")
    parser.add_argument("--endpoint", type=str, default=None)
    parser.add_argument("--auth-token", type=str, default=None)
    parser.add_argument("--batch-size", type=int, default=None)
    parser.add_argument("--flush-interval", type=float, default=None)
    parser.add_argument("--max-retries", type=int, default=None)
    parser.add_argument("--request-timeout", type=float, default=None)
    parser.add_argument("--min-level", type=str, default=None)
    parser.add_argument("--no-console", action="store_true", default=False)
    parser.add_argument("--disable-transport", action="store_true", default=False)
    return parser


def load_config(cli_args: argparse.Namespace, yaml_data: dict | None = None) -> LoggerConfiguration:
    """Build a LoggerConfiguration. Precedence: CLI > env vars > YAML > defaults."""
    yaml_data = yaml_data or {}
    defaults = LoggerConfiguration()

    def pick(cli_value, env_name, yaml_key, default):
        if cli_value is not None:
            return cli_value
        if env_name in os.environ:
            return os.environ[env_name]
        return yaml_data.get(yaml_key, default)

    console_mirror = _parse_bool(
        pick(None, "CONSOLE_MIRROR", "console_mirror", defaults.console_mirror)
    )
    if cli_args.no_console:
        console_mirror = False

    transport_enabled = _parse_bool(
        pick(None, "TRANSPORT_ENABLED", "transport_enabled", defaults.transport_enabled)
    )
    if cli_args.disable_transport:
        transport_enabled = False

    min_level = pick(cli_args.min_level, "MIN_LEVEL", "min_level", defaults.min_level)

    return LoggerConfiguration(
        endpoint=str(pick(cli_args.endpoint, "LOG_ENDPOINT", "endpoint", defaults.endpoint)),
        auth_token=str(pick(cli_args.auth_token, "LOG_AUTH_TOKEN", "auth_token", defaults.auth_token)),
        batch_size=int(pick(cli_args.batch_size, "BATCH_SIZE", "batch_size", defaults.batch_size)),
        flush_interval=float(
            pick(cli_args.flush_interval, "FLUSH_INTERVAL", "flush_interval", defaults.flush_interval)
        ),
        max_retries=int(pick(cli_args.max_retries, "MAX_RETRIES", "max_retries", defaults.max_retries)),
        console_mirror=console_mirror,
        transport_enabled=transport_enabled,
        request_timeout=float(
            pick(cli_args.request_timeout, "REQUEST_TIMEOUT", "request_timeout", defaults.request_timeout)
        ),
        min_level=min_level if isinstance(min_level, LogLevel) else LogLevel.parse(str(min_level)),
    )


def load_config_from_argv(argv=None) -> LoggerConfiguration:
    """Parse *argv* (sys.argv when None) and build the configuration.

    The YAML path comes from ``--config`` or the REMOTE_LOGGER_CONFIG env var.
    """
    args = build_parser().parse_args(argv)
    yaml_data = load_yaml_config(args.config or os.environ.get(CONFIG_PATH_ENV))
    return load_config(args, yaml_data)
