"""Resource collection registry.

Maps a collection name to its storage and target backend, loaded from a JSON
definition such as::

    {
        "storages": {"akamaiStorage": {"type": "akamai", "options": {...}}},
        "targets": {"akamaiTarget": {"type": "akamai", "options": {...}}},
        "collections": {"persistent": {"storage": "akamaiStorage", "target": "akamaiTarget"}}
    }
"""

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Literal

from pydantic import BaseModel, Field, model_validator

from akamai_netstorage.resources.backends import (
    AkamaiStorage,
    AkamaiTarget,
    FileSystemStorage,
    FileSystemTarget,
    ResourceStorage,
    ResourceTarget,
)
from akamai_netstorage.storage.exceptions import CollectionNotFoundError

logger = logging.getLogger(__name__)

STORAGE_TYPES: dict[str, type[ResourceStorage]] = {
    "akamai": AkamaiStorage,
    "local": FileSystemStorage,
}

TARGET_TYPES: dict[str, type[ResourceTarget]] = {
    "akamai": AkamaiTarget,
    "local": FileSystemTarget,
}


class BackendDefinition(BaseModel):
    """A named storage or target backend."""

    type: Literal["akamai", "local"]
    options: dict[str, Any] = Field(default_factory=dict)


class CollectionDefinition(BaseModel):
    """A collection referencing one storage and one target by name."""

    storage: str
    target: str


class RegistryDefinition(BaseModel):
    """Complete collections file."""

    storages: dict[str, BackendDefinition] = Field(default_factory=dict)
    targets: dict[str, BackendDefinition] = Field(default_factory=dict)
    collections: dict[str, CollectionDefinition] = Field(default_factory=dict)

    @model_validator(mode="after")
    def check_references(self) -> "RegistryDefinition":
        for name, collection in self.collections.items():
            if collection.storage not in self.storages:
                raise ValueError(f'Collection "{name}" uses unknown storage "{collection.storage}"')
            if collection.target not in self.targets:
                raise ValueError(f'Collection "{name}" uses unknown target "{collection.target}"')
        return self


@dataclass
class Collection:
    """A named pairing of a storage backend and a target backend."""

    name: str
    storage: ResourceStorage
    target: ResourceTarget


class CollectionRegistry:
    """Looks up resource collections by name."""

    def __init__(self, collections: dict[str, Collection]):
        self._collections = collections

    @classmethod
    def from_definition(cls, definition: RegistryDefinition, **connector_kwargs: Any) -> "CollectionRegistry":
        """Build every backend of a definition.

        ``connector_kwargs`` are passed on to the Akamai backends' connectors.
        """
        storages: dict[str, ResourceStorage] = {}
        for name, backend in definition.storages.items():
            kwargs = connector_kwargs if backend.type == "akamai" else {}
            storages[name] = STORAGE_TYPES[backend.type](name, backend.options, **kwargs)

        targets: dict[str, ResourceTarget] = {}
        for name, backend in definition.targets.items():
            kwargs = connector_kwargs if backend.type == "akamai" else {}
            targets[name] = TARGET_TYPES[backend.type](name, backend.options, **kwargs)

        return cls({
            name: Collection(
                name=name,
                storage=storages[collection.storage],
                target=targets[collection.target],
            )
            for name, collection in definition.collections.items()
        })

    @classmethod
    def from_file(cls, path: Path, **connector_kwargs: Any) -> "CollectionRegistry":
        logger.debug(f"Loading collections from {path}")
        data = json.loads(Path(path).read_text(encoding="utf-8"))
        return cls.from_definition(RegistryDefinition.model_validate(data), **connector_kwargs)

    def names(self) -> list[str]:
        return sorted(self._collections)

    def get_collection(self, name: str) -> Collection:
        try:
            return self._collections[name]
        except KeyError:
            raise CollectionNotFoundError(f'No resource collection named "{name}"') from None
