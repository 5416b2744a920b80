"""
Configuration Module

Settings are resolved in this order (later wins):
    1. built-in defaults (doc_mirror.constants)
    2. sync_config.json
    3. environment variables (a .env file is loaded first)
    4. explicit overrides (CLI flags)

API keys may also live in the OS keyring under the "docmirror" service.
"""

import json
import os
from typing import Any, Dict, List, Optional

import keyring
from dotenv import load_dotenv
from keyring.errors import KeyringError

from doc_mirror import constants
from doc_mirror.exceptions import ConfigError
from doc_mirror.logger import logger

CONFIG_FILE = "sync_config.json"
KEYRING_SERVICE = "docmirror"

# setting name -> environment variable
ENV_VARS = {
    "clickup_api_key": "CLICKUP_API_KEY",
    "clickup_workspace_id": "CLICKUP_WORKSPACE_ID",
    "clickup_doc_id": "CLICKUP_DOC_ID",
    "dust_api_key": "DUST_API_KEY",
    "dust_workspace_id": "DUST_WORKSPACE_ID",
    "dust_datasource_id": "DUST_DATASOURCE_ID",
    "dust_vault_id": "DUST_VAULT_ID",
    "all_docs": "DOCMIRROR_ALL_DOCS",
    "max_depth": "DOCMIRROR_MAX_DEPTH",
    "batch_size": "DOCMIRROR_BATCH_SIZE",
}

# secrets looked up in the keyring when not set anywhere else
KEYRING_KEYS = ("clickup_api_key", "dust_api_key")

_INT_FIELDS = {"batch_size", "source_max_concurrent", "destination_max_concurrent",
               "max_retries", "source_tokens", "destination_tokens"}
_FLOAT_FIELDS = {"batch_pause", "source_min_interval", "destination_min_interval",
                 "source_refill_interval", "destination_refill_interval",
                 "retry_base_delay", "retry_max_delay", "request_timeout"}
_BOOL_FIELDS = {"all_docs", "dry_run"}


class SyncConfig:
    """All settings for one sync run."""

    def __init__(self, **settings: Any):
        # Source (ClickUp)
        self.clickup_api_key: str = ""
        self.clickup_workspace_id: str = ""
        self.clickup_doc_id: str = ""
        self.clickup_base_url: str = constants.CLICKUP_API_BASE_URL
        self.all_docs: bool = False

        # Destination (Dust)
        self.dust_api_key: str = ""
        self.dust_workspace_id: str = ""
        self.dust_vault_id: str = ""
        self.dust_datasource_id: str = ""
        self.dust_base_url: str = constants.DUST_API_BASE_URL

        # Pipeline
        self.batch_size: int = constants.DEFAULT_BATCH_SIZE
        self.batch_pause: float = constants.DEFAULT_BATCH_PAUSE
        self.max_depth: Optional[int] = None
        self.dry_run: bool = False

        # Throttles
        self.source_min_interval: float = constants.SOURCE_MIN_INTERVAL
        self.source_max_concurrent: int = constants.SOURCE_MAX_CONCURRENT
        self.source_tokens: Optional[int] = None
        self.source_refill_interval: Optional[float] = None
        self.destination_min_interval: float = constants.DESTINATION_MIN_INTERVAL
        self.destination_max_concurrent: int = constants.DESTINATION_MAX_CONCURRENT
        self.destination_tokens: Optional[int] = None
        self.destination_refill_interval: Optional[float] = None

        # Retry / network
        self.max_retries: int = constants.DEFAULT_MAX_RETRIES
        self.retry_base_delay: float = constants.DEFAULT_RETRY_BASE_DELAY
        self.retry_max_delay: float = constants.DEFAULT_RETRY_MAX_DELAY
        self.backoff: str = constants.DEFAULT_BACKOFF
        self.request_timeout: float = constants.REQUEST_TIMEOUT

        self.update(settings)

    def update(self, settings: Dict[str, Any]) -> "SyncConfig":
        """Apply settings, coercing strings from JSON/env to the right type.

        Unknown keys are ignored with a debug message; None values are skipped.

        Raises:
            ConfigError: if a value cannot be coerced
        """
        for key, value in settings.items():
            if value is None:
                continue
            if not hasattr(self, key):
                logger.debug(f"忽略未知配置项: {key}")
                continue
            setattr(self, key, _coerce(key, value))
        return self

    def missing_settings(self) -> List[str]:
        """Names of the required settings that are still empty."""
        required = ["clickup_api_key", "clickup_workspace_id", "dust_api_key",
                    "dust_workspace_id", "dust_vault_id", "dust_datasource_id"]
        if not self.all_docs:
            required.insert(2, "clickup_doc_id")
        return [name for name in required if not getattr(self, name)]

    def validate(self) -> "SyncConfig":
        """
        Check the configuration before any work starts.

        Raises:
            ConfigError: listing every missing setting, or describing an invalid value
        """
        missing = self.missing_settings()
        if missing:
            names = ", ".join(ENV_VARS.get(name, name.upper()) for name in missing)
            raise ConfigError(f"缺少必要配置: {names}", missing=missing)
        if self.batch_size < 1:
            raise ConfigError(f"batch_size 必须 >= 1 (当前: {self.batch_size})")
        if self.max_retries < 1:
            raise ConfigError(f"max_retries 必须 >= 1 (当前: {self.max_retries})")
        if self.source_max_concurrent < 1 or self.destination_max_concurrent < 1:
            raise ConfigError("并发上限必须 >= 1")
        if self.max_depth is not None and self.max_depth < 1:
            raise ConfigError(f"max_depth 必须 >= 1 (当前: {self.max_depth})")
        if self.backoff not in constants.BACKOFF_STRATEGIES:
            raise ConfigError(f"未知的退避策略: {self.backoff}")
        return self

    def to_dict(self, redact: bool = True) -> Dict[str, Any]:
        data = dict(vars(self))
        if redact:
            for key in KEYRING_KEYS:
                if data.get(key):
                    data[key] = "***"
        return data


def _coerce(key: str, value: Any) -> Any:
    try:
        if key in _BOOL_FIELDS:
            if isinstance(value, str):
                return value.strip().lower() in ("1", "true", "yes", "on")
            return bool(value)
        if key == "max_depth":
            # 0, "", "none" and "unbounded" all mean no depth limit
            if isinstance(value, str) and value.strip().lower() in ("", "none", "unbounded"):
                return None
            depth = int(value)
            return depth if depth > 0 else None
        if key in _INT_FIELDS:
            return int(value)
        if key in _FLOAT_FIELDS:
            return float(value)
    except (TypeError, ValueError) as e:
        raise ConfigError(f"配置项 {key} 的值无效: {value!r}") from e
    return str(value) if not isinstance(value, str) else value


def _read_json(config_path: str) -> Dict[str, Any]:
    if not os.path.exists(config_path):
        return {}
    try:
        with open(config_path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except json.JSONDecodeError as e:
        raise ConfigError(f"配置文件 JSON 格式错误: {e}") from e
    except OSError as e:
        raise ConfigError(f"读取配置文件失败: {e}") from e
    if not isinstance(data, dict):
        raise ConfigError(f"配置文件顶层必须是对象: {config_path}")
    return data


def _read_env() -> Dict[str, Any]:
    return {key: os.environ[env] for key, env in ENV_VARS.items() if os.environ.get(env)}


def load_secret_from_keyring(key: str) -> Optional[str]:
    """Load an API key from the OS keyring, None if unavailable."""
    try:
        return keyring.get_password(KEYRING_SERVICE, key)
    except KeyringError as e:
        logger.debug(f"无法从 keyring 读取 {key}: {e}")
        return None


def load_config(config_path: str = CONFIG_FILE, overrides: Optional[Dict[str, Any]] = None,
                use_keyring: bool = True, validate: bool = True) -> SyncConfig:
    """
    Build a SyncConfig from defaults, the JSON file, the environment and overrides.

    Args:
        config_path: Path to the JSON configuration file (may not exist)
        overrides: Values that win over everything else, e.g. CLI flags
        use_keyring: Look up missing API keys in the OS keyring
        validate: Raise ConfigError when required settings are missing

    Returns:
        The resolved configuration

    Raises:
        ConfigError: on unreadable files, bad values, or missing settings
    """
    load_dotenv()

    config = SyncConfig()
    config.update(_read_json(config_path))
    config.update(_read_env())
    config.update(overrides or {})

    if use_keyring:
        for key in KEYRING_KEYS:
            if not getattr(config, key):
                secret = load_secret_from_keyring(key)
                if secret:
                    setattr(config, key, secret)

    if validate:
        config.validate()
    return config
