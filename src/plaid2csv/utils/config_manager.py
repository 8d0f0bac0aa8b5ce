"""Configuration management for the Plaid exporter."""

import logging
import os
from typing import Any, Dict, Optional

import yaml

from ..models.core import ENVIRONMENTS, ItemConfig, ProviderConfig
from .error_handler import ConfigurationError


logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = "~/.plaid2csv/config.yaml"


class ConfigManager:
    """Loads and validates the environment-keyed provider configuration.

    The configuration file follows a hierarchical structure:
    environment → credentials and items → item_id → properties

    Example config.yaml:
        sandbox:
          client_id: "5f1a..."
          secret: "b2c3..."
          items:
            "item-abc":
              name: "First Bank"
              token: "access-sandbox-..."
              transactions:
                "acc-1": "Checking"
              investments:
                "acc-2": "Brokerage"

    Every problem here is fatal: nothing useful can be fetched with a
    partial configuration.
    """

    def __init__(self, config_path: Optional[str] = None):
        """Initialize configuration manager

        Args:
            config_path: Path to configuration file. Defaults to DEFAULT_CONFIG_PATH.
        """
        self.config_path = os.path.expanduser(config_path or DEFAULT_CONFIG_PATH)

    def load_config(self, environment: str) -> ProviderConfig:
        """Load the configuration for one environment

        Raises:
            ConfigurationError: If the file or the environment entry is invalid
        """
        data = self._load_config_file()

        if environment not in data:
            raise ConfigurationError(f"unknown environment: {environment!r}")
        if environment not in ENVIRONMENTS:
            logger.warning(f"Environment {environment!r} is not one of {', '.join(ENVIRONMENTS)}")

        config = self._parse_environment(environment, data[environment])
        logger.info(
            f"Loaded {len(config.items)} item(s) for environment {environment!r} from {self.config_path}"
        )
        return config

    def _load_config_file(self) -> Dict[str, Any]:
        if not os.path.exists(self.config_path):
            raise ConfigurationError(f"Configuration file not found: {self.config_path}")

        try:
            with open(self.config_path, 'r', encoding='utf-8') as f:
                data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Invalid YAML syntax in {self.config_path}: {e}") from e
        except OSError as e:
            raise ConfigurationError(f"Error reading configuration file {self.config_path}: {e}") from e

        if data is None:
            raise ConfigurationError(f"Configuration file {self.config_path} is empty")
        if not isinstance(data, dict):
            raise ConfigurationError(
                f"Configuration must be a dictionary, got {type(data).__name__}"
            )
        return data

    def _parse_environment(self, environment: str, body: Any) -> ProviderConfig:
        if not isinstance(body, dict):
            raise ConfigurationError(f"Environment {environment!r} must be a dictionary")

        client_id = self._require_string(body, 'client_id', f"environment {environment!r}")
        secret = self._require_string(body, 'secret', f"environment {environment!r}")

        raw_items = body.get('items') or {}
        if not isinstance(raw_items, dict):
            raise ConfigurationError(f"'items' for environment {environment!r} must be a dictionary")

        items = {}
        for item_id, properties in raw_items.items():
            item = self._parse_item(str(item_id), properties)
            items[item.item_id] = item

        if not items:
            logger.warning(f"No items configured for environment {environment!r}")

        return ProviderConfig(
            environment=environment,
            client_id=client_id,
            secret=secret,
            items=items
        )

    def _parse_item(self, item_id: str, properties: Any) -> ItemConfig:
        if not isinstance(properties, dict):
            raise ConfigurationError("item properties must be a dictionary", identifier=item_id)

        where = f"item {item_id!r}"
        return ItemConfig(
            item_id=item_id,
            name=self._require_string(properties, 'name', where),
            token=self._require_string(properties, 'token', where),
            transactions=self._parse_accounts(properties.get('transactions'), 'transactions', item_id),
            investments=self._parse_accounts(properties.get('investments'), 'investments', item_id)
        )

    def _parse_accounts(self, accounts: Any, stream: str, item_id: str) -> Dict[str, str]:
        """Parse an account_id → display name mapping; missing means none"""
        if accounts is None:
            return {}
        if not isinstance(accounts, dict):
            raise ConfigurationError(
                "account mapping must be a dictionary", stream=stream, identifier=item_id
            )

        parsed = {}
        for account_id, name in accounts.items():
            if not isinstance(name, str) or not name:
                raise ConfigurationError(
                    f"account {account_id!r} must map to a non-empty name",
                    stream=stream,
                    identifier=item_id
                )
            # YAML turns unquoted numeric ids into ints
            parsed[str(account_id)] = name
        return parsed

    @staticmethod
    def _require_string(body: Dict[str, Any], key: str, where: str) -> str:
        value = body.get(key)
        if value is None or value == '':
            raise ConfigurationError(f"missing required field {key!r} in {where}")
        if not isinstance(value, (str, int)) or isinstance(value, bool):
            raise ConfigurationError(f"{key!r} in {where} must be a string")
        return str(value)
