"""
Network Health - Manager Directory.

Read-only mapping from node public key to the wallet of the
operator ("manager") running it. Built once at process start
and passed explicitly to whoever needs it; never mutated.
"""

import json
from pathlib import Path
from types import MappingProxyType
from typing import Iterable, Mapping, Optional, Tuple, Union
import logging

from .exceptions import ConfigurationError
from .models import NodeTelemetry


logger = logging.getLogger(__name__)


class ManagerDirectory:
    """Immutable pubkey -> manager wallet lookup."""

    def __init__(self, mapping: Optional[Mapping[str, str]] = None) -> None:
        cleaned = {
            str(pubkey): str(wallet)
            for pubkey, wallet in (mapping or {}).items()
            if pubkey and wallet
        }
        self._mapping = MappingProxyType(cleaned)

    @classmethod
    def from_mapping(cls, mapping: Mapping[str, str]) -> "ManagerDirectory":
        return cls(mapping)

    @classmethod
    def from_json_file(cls, path: Union[str, Path]) -> "ManagerDirectory":
        """
        Load a directory from a JSON file.

        Accepts either a flat {pubkey: wallet} object or the
        {"mapping": {...}} envelope served by the mapping endpoint.
        """
        try:
            with open(path, 'r') as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise ConfigurationError(
                f"Cannot load manager mapping: {e}",
                config_key=str(path),
            ) from e

        if isinstance(data, dict) and isinstance(data.get("mapping"), dict):
            data = data["mapping"]
        if not isinstance(data, dict):
            raise ConfigurationError(
                "Manager mapping must be a JSON object",
                config_key=str(path),
                actual_value=type(data).__name__,
            )

        directory = cls(data)
        logger.info(f"Loaded {len(directory)} manager mappings from {path}")
        return directory

    def __len__(self) -> int:
        return len(self._mapping)

    def __contains__(self, pubkey: object) -> bool:
        return pubkey in self._mapping

    def get_manager(self, pubkey: Optional[str]) -> Optional[str]:
        if not pubkey:
            return None
        return self._mapping.get(pubkey)

    def managers_for(self, nodes: Iterable[NodeTelemetry]) -> Tuple[str, ...]:
        """Distinct managers of the given nodes, sorted."""
        wallets = {
            wallet for wallet in (self.get_manager(node.pubkey) for node in nodes)
            if wallet
        }
        return tuple(sorted(wallets))

    def as_mapping(self) -> Mapping[str, str]:
        return self._mapping
