"""
Bulk loader - seeds the recipes collection from JSON files.

Every *.json file in the data directory (sorted by name) holds a JSON array
of recipes. All files are read and validated before the store is touched;
the collection is then reset and refilled, so running the loader twice on
the same input leaves the same record set.

Usage:
    loader = RecipeLoader(store, collection="recipes")
    report = await loader.load(Path("./data"))
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, ValidationError, field_validator

from .core.errors import LoaderError
from .runtime.store import DocumentStore

logger = logging.getLogger(__name__)


class IngredientRecord(BaseModel):
    """An ingredient entry as stored: name, qty, unit."""
    model_config = ConfigDict(populate_by_name=True)

    name: str
    qty: Optional[str] = Field(default=None, validation_alias=AliasChoices("qty", "quantity"))
    unit: Optional[str] = None

    @field_validator("qty", mode="before")
    @classmethod
    def _number_to_text(cls, value: Any) -> Any:
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return str(value)
        return value


class MediaRefRecord(BaseModel):
    anchor: str
    url: str


class RecipeRecord(BaseModel):
    """
    Recipe shape accepted from data files.

    `title` and `instructions` are accepted as older names for `name` and
    `steps`.
    """
    model_config = ConfigDict(populate_by_name=True)

    id: str
    name: str = Field(validation_alias=AliasChoices("name", "title"))
    ingredients: list[IngredientRecord] = Field(default_factory=list)
    steps: list[str] = Field(
        default_factory=list, validation_alias=AliasChoices("steps", "instructions")
    )
    tags: list[str] = Field(default_factory=list)
    media: list[MediaRefRecord] = Field(default_factory=list)
    source: Optional[dict[str, Any]] = None

    @field_validator("id", mode="before")
    @classmethod
    def _id_to_text(cls, value: Any) -> Any:
        if isinstance(value, int) and not isinstance(value, bool):
            return str(value)
        return value

    @field_validator("tags")
    @classmethod
    def _unique_tags(cls, value: list[str]) -> list[str]:
        return list(dict.fromkeys(value))

    def to_document(self) -> dict[str, Any]:
        """Storage document: identifier under _id, absent optionals omitted."""
        document = self.model_dump(exclude={"id"}, exclude_none=True)
        return {"_id": self.id, **document}


@dataclass
class LoadReport:
    """Outcome of a loader run."""
    files: list[Path] = field(default_factory=list)
    inserted: int = 0
    deleted: int = 0


class RecipeLoader:
    """Reads recipe files and resets the target collection with their contents."""

    def __init__(self, store: DocumentStore, collection: str = "recipes"):
        self.store = store
        self.collection = collection

    def read(self, data_dir: Path | str) -> tuple[list[Path], list[dict[str, Any]]]:
        """
        Read and validate all data files.

        Raises:
            LoaderError: on unreadable files, invalid records or duplicate ids
        """
        data_dir = Path(data_dir)
        if not data_dir.is_dir():
            raise LoaderError("data directory not found", source=data_dir)

        files = sorted(data_dir.glob("*.json"))
        documents: list[dict[str, Any]] = []
        seen: dict[str, Path] = {}

        for path in files:
            for record in self._read_file(path):
                if record.id in seen:
                    raise LoaderError(
                        f"duplicate recipe id '{record.id}' (first seen in {seen[record.id].name})",
                        source=path,
                    )
                seen[record.id] = path
                documents.append(record.to_document())
            logger.debug(f"Read {path.name}")

        return files, documents

    def _read_file(self, path: Path) -> list[RecipeRecord]:
        try:
            raw = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            raise LoaderError(f"cannot read file: {e}", source=path) from e

        if not isinstance(raw, list):
            raise LoaderError("expected a JSON array of recipes", source=path)

        records: list[RecipeRecord] = []
        for index, item in enumerate(raw):
            try:
                records.append(RecipeRecord.model_validate(item))
            except ValidationError as e:
                raise LoaderError(f"invalid recipe at index {index}: {e}", source=path) from e
        return records

    async def load(self, data_dir: Path | str) -> LoadReport:
        """Validate every file, then reset the collection and insert all recipes."""
        files, documents = self.read(data_dir)

        report = LoadReport(files=files)
        report.deleted = await self.store.delete_many(self.collection)
        report.inserted = await self.store.insert_many(self.collection, documents)

        logger.info(
            f"Loaded {report.inserted} recipes from {len(files)} files into "
            f"'{self.collection}' (replaced {report.deleted})"
        )
        return report
