"""Configuration module: frozen dataclass built from env vars, CLI args and an optional YAML file."""

import argparse
import logging
import os
from dataclasses import dataclass

import yaml

logger = logging.getLogger(__name__)

LOG_LEVELS = ("error", "info", "debug")

DEFAULT_MESSAGE = "Hello from snooze!\n"


class ConfigError(ValueError):
    """Raised when a configuration value is out of range or unreadable."""


@dataclass(frozen=True)
class Config:
    host: str = "0.0.0.0"
    port: int = 80
    message: str = DEFAULT_MESSAGE
    log_level: str = "info"
    buffer_size: int = 8192


def _env_port(value):
    """PORT only counts when it is a positive integer."""
    if value is None:
        return None
    try:
        port = int(value.strip())
    except ValueError:
        return None
    return port if port > 0 else None


def _env_log_level(value):
    if value is None:
        return None
    level = value.strip().lower()
    return level if level in LOG_LEVELS else None


def _env_int(value):
    if value is None:
        return None
    try:
        return int(value.strip())
    except ValueError:
        return None


def load_yaml_config(path: str | None) -> dict:
    """Load config keys from a YAML file. Returns empty dict if no path."""
    if not path:
        return {}
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except FileNotFoundError:
        logger.warning("Config file %s not found, using defaults", path)
        return {}
    except yaml.YAMLError as exc:
        raise ConfigError(f"invalid YAML in {path}: {exc}") from exc

    if not isinstance(data, dict):
        raise ConfigError(f"{path} must contain a mapping, got {type(data).__name__}")
    return data


def build_cli_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="snooze",
        description="Minimal HTTP server with controllable latency. "
                    "GET /snooze/<N> sleeps N seconds before answering.",
    )
    parser.add_argument("-m", "--message", default=None,
                        help="Set the message to send (default: %r)" % DEFAULT_MESSAGE)
    parser.add_argument("-p", "--port", type=int, default=None,
                        help="Set the port to listen on (default: 80)")
    parser.add_argument("-l", "--log-level", choices=LOG_LEVELS, default=None,
                        help="Minimum level of emitted log records (default: info)")
    parser.add_argument("--host", default=None,
                        help="Address to bind (default: 0.0.0.0)")
    parser.add_argument("--buffer-size", type=int, default=None,
                        help="Maximum bytes read for the request head (default: 8192)")
    parser.add_argument("-c", "--config", default=None,
                        help="Path to a YAML config file")
    return parser


def _pick(*candidates):
    """Return the first candidate that is not None."""
    for value in candidates:
        if value is not None:
            return value
    return None


def _as_int(name: str, value) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ConfigError(f"{name} must be an integer, got {value!r}") from None


def load_config(argv=None) -> Config:
    """Build Config. Precedence: env vars, then CLI args, then YAML, then defaults."""
    args = build_cli_parser().parse_args(argv)

    config_path = _pick(os.environ.get("CONFIG_PATH"), args.config)
    yaml_data = load_yaml_config(config_path)

    yaml_level = yaml_data.get("log_level")
    if yaml_level is not None:
        yaml_level = str(yaml_level).lower()

    config = Config(
        host=_pick(os.environ.get("HOST"), args.host,
                   yaml_data.get("host"), Config.host),
        port=_as_int("port", _pick(_env_port(os.environ.get("PORT")), args.port,
                                   yaml_data.get("port"), Config.port)),
        message=str(_pick(os.environ.get("MESSAGE"), args.message,
                          yaml_data.get("message"), Config.message)),
        log_level=_pick(_env_log_level(os.environ.get("LOG_LEVEL")), args.log_level,
                        yaml_level, Config.log_level),
        buffer_size=_as_int("buffer_size", _pick(_env_int(os.environ.get("BUFFER_SIZE")),
                                                 args.buffer_size, yaml_data.get("buffer_size"),
                                                 Config.buffer_size)),
    )
    validate(config)
    return config


def validate(config: Config) -> None:
    if not 0 <= config.port <= 65535:
        raise ConfigError(f"port must be between 0 and 65535, got {config.port}")
    if config.log_level not in LOG_LEVELS:
        raise ConfigError(f"log level must be one of {', '.join(LOG_LEVELS)}, got {config.log_level!r}")
    if config.buffer_size <= 0:
        raise ConfigError(f"buffer size must be positive, got {config.buffer_size}")
