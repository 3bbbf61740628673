# path: blueways-api/blueways/services/network_store.py

from __future__ import annotations

from pathlib import Path
from typing import Any, Optional
import hashlib
import json
import logging
import shutil

from blueways.config import BACKUP_SUFFIX, JSON_INDENT
from blueways.models.network_models import RouteNetwork

logger = logging.getLogger(__name__)


def stable_json_sha256(obj: Any) -> str:
    data = json.dumps(obj, separators=(",", ":"), sort_keys=True).encode("utf-8")
    return "sha256:" + hashlib.sha256(data).hexdigest()


class NetworkStore:
    """A route-network GeoJSON file plus its backup copy."""

    def __init__(self, path: str | Path, backup_suffix: str = BACKUP_SUFFIX, indent: int = JSON_INDENT):
        self.path = Path(path)
        self.backup_path = self.path.with_name(self.path.name + backup_suffix)
        self.indent = indent
        self._loaded_hash: Optional[str] = None

    def load(self) -> RouteNetwork:
        logger.info("Reading %s", self.path)
        with open(self.path, "r", encoding="utf-8") as f:
            data = json.load(f)
        network = RouteNetwork.model_validate(data)
        self._loaded_hash = stable_json_sha256(network.to_json_dict())
        return network

    def backup(self) -> Path:
        logger.info("Backing up to %s", self.backup_path.name)
        shutil.copy2(self.path, self.backup_path)
        return self.backup_path

    def save(self, network: RouteNetwork) -> bool:
        """Write ``network``; returns False (and leaves the file alone) if nothing changed."""
        doc = network.to_json_dict()
        if self._loaded_hash is not None and stable_json_sha256(doc) == self._loaded_hash:
            logger.info("Document unchanged; not rewriting %s", self.path.name)
            return False

        logger.info("Writing updated GeoJSON to %s", self.path.name)
        tmp = self.path.with_name(self.path.name + ".tmp")
        with open(tmp, "w", encoding="utf-8") as f:
            json.dump(doc, f, indent=self.indent, ensure_ascii=False)
            f.write("\n")
        tmp.replace(self.path)
        self._loaded_hash = stable_json_sha256(doc)
        return True
