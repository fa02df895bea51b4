"""YAML configuration file loading."""

import logging
from dataclasses import dataclass, field
from pathlib import Path

import yaml

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_DIR = Path.home() / ".nbc"
DEFAULT_CONFIG_PATH = DEFAULT_CONFIG_DIR / "config.yaml"
DEFAULT_SEEDS = ("xenon.blockstack.org",)
DEFAULT_RPC_PORT = 20443


@dataclass
class NbcConfig:
    """Top-level configuration for a crawl.

    Every field has a default so that ``nbc`` can crawl the public Stacks
    network with no config file at all.  Values are fixed for the duration
    of a run.

    Attributes:
        seeds: Peer addresses the crawl starts from.  Seeds are entry points
            only and never appear in the final peer set.
        concurrency: Upper bound on simultaneously in-flight peer queries.
        retries: Extra tries per candidate endpoint after a failed one.
        request_timeout: Per-request timeout in seconds.
        retry_delay: Pause in seconds between tries of the same endpoint.
        rpc_port: Default RPC port appended to bare peer addresses.
        maxmind_country_db: Path to a GeoLite2-Country (or -City) ``.mmdb``
            file, or None to skip country attribution.
    """

    seeds: list[str] = field(default_factory=lambda: list(DEFAULT_SEEDS))
    concurrency: int = 250
    retries: int = 4
    request_timeout: float = 5.0
    retry_delay: float = 1.0
    rpc_port: int = DEFAULT_RPC_PORT
    maxmind_country_db: str | None = None


# Keys in the YAML file that map to NbcConfig fields.
_YAML_KEY_TO_FIELD: dict[str, str] = {
    "seeds": "seeds",
    "concurrency": "concurrency",
    "retries": "retries",
    "request_timeout": "request_timeout",
    "retry_delay": "retry_delay",
    "rpc_port": "rpc_port",
    "maxmind_country_db": "maxmind_country_db",
}


def load_config(path: Path | str | None = None) -> NbcConfig:
    """Load configuration from a YAML file.

    Args:
        path: Explicit path to a YAML config file.  If ``None``, the
            default location (``~/.nbc/config.yaml``) is tried.  If the
            default file doesn't exist, an ``NbcConfig`` with all defaults
            is returned silently.

    Returns:
        A populated, validated ``NbcConfig`` instance.

    Raises:
        FileNotFoundError: If an explicit *path* was given but doesn't exist.
        ConfigError: If the file contains invalid YAML, has an unexpected
            top-level structure, or holds out-of-range values.
    """
    resolved = _resolve_path(path)

    if resolved is None:
        logger.debug("No config file found; using defaults")
        return NbcConfig()

    logger.debug("Loading config from %s", resolved)
    text = resolved.read_text(encoding="utf-8")

    try:
        raw = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ConfigError(f"Invalid YAML in {resolved}: {exc}") from exc

    if raw is None:
        # Empty file, treat as all-defaults.
        return NbcConfig()

    if not isinstance(raw, dict):
        raise ConfigError(
            f"Expected a YAML mapping at the top level in {resolved}, "
            f"got {type(raw).__name__}"
        )

    return validate(_build_config(raw, source=resolved))


def validate(cfg: NbcConfig) -> NbcConfig:
    """Check value ranges and coerce ``seeds`` to a list of strings.

    Used for file-loaded configs and again after CLI overrides.

    Returns:
        The same ``NbcConfig`` instance.

    Raises:
        ConfigError: On the first invalid value found.
    """
    if isinstance(cfg.seeds, str):
        cfg.seeds = [cfg.seeds]
    if not isinstance(cfg.seeds, (list, tuple)) or not cfg.seeds:
        raise ConfigError("seeds must be a non-empty list of peer addresses")
    cfg.seeds = [str(seed).strip() for seed in cfg.seeds]
    if not all(cfg.seeds):
        raise ConfigError("seeds must not contain empty addresses")

    if not _is_int(cfg.concurrency) or cfg.concurrency < 1:
        raise ConfigError(f"concurrency must be >= 1, got {cfg.concurrency!r}")
    if not _is_int(cfg.retries) or cfg.retries < 0:
        raise ConfigError(f"retries must be >= 0, got {cfg.retries!r}")
    if not _is_number(cfg.request_timeout) or cfg.request_timeout <= 0:
        raise ConfigError(
            f"request_timeout must be > 0, got {cfg.request_timeout!r}"
        )
    if not _is_number(cfg.retry_delay) or cfg.retry_delay < 0:
        raise ConfigError(f"retry_delay must be >= 0, got {cfg.retry_delay!r}")
    if not _is_int(cfg.rpc_port) or not 1 <= cfg.rpc_port <= 65535:
        raise ConfigError(f"rpc_port must be in 1-65535, got {cfg.rpc_port!r}")

    return cfg


class ConfigError(Exception):
    """Raised when a configuration file or value is invalid."""


# ------------------------------------------------------------------
# Internal helpers
# ------------------------------------------------------------------


def _resolve_path(path: Path | str | None) -> Path | None:
    """Return a concrete ``Path`` to read, or ``None`` if nothing to read.

    Raises:
        FileNotFoundError: If the caller supplied an explicit path that
            doesn't exist on disk.
    """
    if path is not None:
        p = Path(path).expanduser()
        if not p.is_file():
            raise FileNotFoundError(f"Config file not found: {p}")
        return p

    default = DEFAULT_CONFIG_PATH.expanduser()
    if default.is_file():
        return default
    return None


def _is_int(value: object) -> bool:
    # YAML `yes`/`true` load as bool, which is an int subclass.
    return isinstance(value, int) and not isinstance(value, bool)


def _is_number(value: object) -> bool:
    return _is_int(value) or isinstance(value, float)


def _build_config(raw: dict, source: Path) -> NbcConfig:
    """Map raw YAML dict to an ``NbcConfig``, ignoring unknown keys."""
    kwargs: dict[str, object] = {}

    for yaml_key, field_name in _YAML_KEY_TO_FIELD.items():
        if yaml_key in raw:
            kwargs[field_name] = raw[yaml_key]

    unknown = set(raw) - set(_YAML_KEY_TO_FIELD)
    if unknown:
        logger.warning(
            "Ignoring unknown config keys in %s: %s",
            source,
            ", ".join(sorted(unknown)),
        )

    return NbcConfig(**kwargs)
