"""Configuration management for the Spread Advisor.

Settings are read once from ``config.yaml`` (plus ``.env``) into frozen
dataclasses and passed explicitly to the components that need them.
"""
import os
import logging
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Tuple

import yaml
from dotenv import load_dotenv

from spread_advisor.models import ScoringWeights, SpreadBounds
from spread_advisor.utils.errors import ConfigurationError, ValidationError

logger = logging.getLogger(__name__)

CONFIG_ENV_VAR = "SPREAD_ADVISOR_CONFIG"
CONFIG_FILENAME = "config.yaml"
PACKAGE_DIR = Path(__file__).resolve().parent

# Environment variables holding provider credentials
API_KEY_ENV = {
    "openai": "OPENAI_API_KEY",
}


@dataclass(frozen=True)
class ProviderSettings:
    """Settings for a single recommendation provider."""
    name: str
    enabled: bool = True
    model: str = ""
    base_url: str = ""
    timeout: float = 30.0
    temperature: float = 0.3
    max_tokens: int = 1000
    top_p: float = 0.9
    top_k: int = 40
    api_key: Optional[str] = field(default=None, repr=False)


@dataclass(frozen=True)
class LoggingSettings:
    level: str = "INFO"
    format: str = "json"
    file: Optional[str] = None
    enabled: bool = True


def default_provider_settings() -> Dict[str, ProviderSettings]:
    return {
        "openai": ProviderSettings(
            name="openai",
            model="gpt-4",
            base_url="https://api.openai.com/v1",
            timeout=30.0,
            temperature=0.3,
            max_tokens=1000,
        ),
        "ollama": ProviderSettings(
            name="ollama",
            model="llama3",
            base_url="http://localhost:11434",
            timeout=30.0,
            temperature=0.3,
            top_p=0.9,
            top_k=40,
        ),
        "statistical": ProviderSettings(name="statistical", model="weighted-factor-v1", timeout=5.0),
    }


@dataclass(frozen=True)
class AdvisorConfig:
    """Immutable configuration for orchestration, scoring and composition."""
    ai_enabled: bool = True
    fallback_enabled: bool = True
    validity_hours: int = 24
    degraded_validity_hours: int = 1
    bounds: SpreadBounds = field(default_factory=SpreadBounds)
    weights: ScoringWeights = field(default_factory=ScoringWeights)
    provider: str = "statistical"  # adapter selection identifier
    failover_order: Tuple[str, ...] = ("openai", "ollama", "statistical")
    providers: Mapping[str, ProviderSettings] = field(default_factory=default_provider_settings)
    logging: LoggingSettings = field(default_factory=LoggingSettings)

    def provider_order(self) -> Tuple[str, ...]:
        """Selected provider first, then the failover order; enabled providers only, no repeats."""
        order = []
        for name in (self.provider,) + tuple(self.failover_order):
            if name in order:
                continue
            settings = self.providers.get(name)
            if settings is None:
                logger.warning(f"Provider '{name}' is referenced but not configured; ignoring")
                continue
            if not settings.enabled:
                logger.info(f"Skipping disabled provider: {name}")
                continue
            order.append(name)
        return tuple(order)

    @classmethod
    def get_default_config(cls) -> "AdvisorConfig":
        """Defaults with credentials taken from the environment."""
        return cls.from_dict({})

    @classmethod
    def from_dict(cls, data: Dict[str, Any], env: Optional[Mapping[str, str]] = None) -> "AdvisorConfig":
        env = os.environ if env is None else env
        data = data or {}
        advisor = data.get("advisor") or {}
        llm = data.get("llm") or {}
        log_cfg = data.get("logging") or {}

        try:
            spread = advisor.get("spread") or {}
            def_bounds = SpreadBounds()
            bounds = SpreadBounds(
                min_spread=spread.get("min", def_bounds.min_spread),
                max_spread=spread.get("max", def_bounds.max_spread),
                default_spread=spread.get("default", def_bounds.default_spread),
            )

            w = advisor.get("weights") or {}
            def_w = ScoringWeights()
            weights = ScoringWeights(
                volatility=w.get("volatility", def_w.volatility),
                volume=w.get("volume", def_w.volume),
                history=w.get("history", def_w.history),
            )

            providers = dict(default_provider_settings())
            for name, pdata in (llm.get("providers") or {}).items():
                pdata = pdata or {}
                base = providers.get(name, ProviderSettings(name=name))
                providers[name] = ProviderSettings(
                    name=name,
                    enabled=bool(pdata.get("enabled", base.enabled)),
                    model=str(pdata.get("model", base.model)),
                    base_url=str(pdata.get("base_url", base.base_url)).rstrip("/"),
                    timeout=float(pdata.get("timeout", base.timeout)),
                    temperature=float(pdata.get("temperature", base.temperature)),
                    max_tokens=int(pdata.get("max_tokens", base.max_tokens)),
                    top_p=float(pdata.get("top_p", base.top_p)),
                    top_k=int(pdata.get("top_k", base.top_k)),
                    api_key=pdata.get("api_key") or None,
                )

            # Credentials from the environment when not set in the file
            for name, env_var in API_KEY_ENV.items():
                if name in providers and not providers[name].api_key and env.get(env_var):
                    providers[name] = replace(providers[name], api_key=env[env_var])

            failover_order = llm.get("failover_order") or list(cls.failover_order)
            validity_hours = int(advisor.get("validity_hours", cls.validity_hours))
            degraded_validity_hours = int(advisor.get("degraded_validity_hours", cls.degraded_validity_hours))
        except (TypeError, ValueError, ValidationError) as e:
            raise ConfigurationError(f"Invalid configuration value: {e}") from e

        if validity_hours <= 0 or degraded_validity_hours < 0:
            raise ConfigurationError("Validity windows must be positive")

        return cls(
            ai_enabled=bool(advisor.get("ai_enabled", True)),
            fallback_enabled=bool(advisor.get("fallback_enabled", True)),
            validity_hours=validity_hours,
            degraded_validity_hours=degraded_validity_hours,
            bounds=bounds,
            weights=weights,
            provider=str(llm.get("provider", cls.provider)),
            failover_order=tuple(str(p) for p in failover_order),
            providers=providers,
            logging=LoggingSettings(
                level=str(env.get("LOG_LEVEL", log_cfg.get("level", "INFO"))),
                format=str(log_cfg.get("format", "json")),
                file=log_cfg.get("file"),
                enabled=bool(log_cfg.get("enabled", True)),
            ),
        )

    @classmethod
    def from_yaml(cls, config_path: str) -> "AdvisorConfig":
        """Load configuration from a YAML file; a missing file yields defaults."""
        try:
            with open(config_path, "r") as f:
                data = yaml.safe_load(f) or {}
        except FileNotFoundError:
            logger.warning(f"Config file not found at {config_path}, using defaults")
            return cls.get_default_config()
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Malformed YAML in {config_path}: {e}") from e

        if not isinstance(data, dict):
            raise ConfigurationError(f"Config file {config_path} must contain a mapping")
        return cls.from_dict(data)


def resolve_config_path(config_path: Optional[str] = None) -> Path:
    """
    Locate the configuration file.

    Order: explicit path, $SPREAD_ADVISOR_CONFIG, ./config.yaml, then the
    config.yaml shipped next to the package in a source checkout. The last
    candidate is returned even if missing; from_yaml then uses defaults.
    """
    if config_path:
        return Path(config_path).expanduser()
    env_cfg = os.getenv(CONFIG_ENV_VAR)
    if env_cfg:
        return Path(env_cfg).expanduser()
    local = Path.cwd() / CONFIG_FILENAME
    if local.exists():
        return local
    return PACKAGE_DIR.parent / CONFIG_FILENAME


def load_config(config_path: Optional[str] = None) -> AdvisorConfig:
    """Load .env and the YAML configuration."""
    load_dotenv()
    path = resolve_config_path(config_path)
    config = AdvisorConfig.from_yaml(str(path))
    logger.info(
        f"Configuration loaded from {path} "
        f"(ai_enabled={config.ai_enabled}, fallback_enabled={config.fallback_enabled}, "
        f"providers={list(config.provider_order())})"
    )
    return config
