"""The schema registry: tables, relations and views of one database."""

from __future__ import annotations

import itertools
import logging
import threading
from typing import Any, Dict, List, Optional

from rowsmith.errors import InvalidArgumentError
from rowsmith.schema.relation import DeleteAction, Relation

logger = logging.getLogger(__name__)


class Database:
    """Explicit registry of schema objects, passed to whatever needs it."""

    def __init__(
        self,
        name: Optional[str] = None,
        schema: Optional[str] = None,
        driver: Optional[Any] = None,
    ) -> None:
        self.name = name
        self.schema = schema
        self.driver = driver
        self.tables: List[Any] = []
        self.relations: List[Relation] = []
        self.views: List[Any] = []
        self._aliases = itertools.count(1)
        self._alias_lock = threading.Lock()

    def next_alias(self) -> str:
        with self._alias_lock:
            return f"t{next(self._aliases)}"

    def _check_unique(self, name: str) -> None:
        if self.get_rowset(name) is not None:
            raise InvalidArgumentError("name", name, f"'{name}' is already defined in this database.")

    def add_table(self, table: Any) -> Any:
        if any(existing is table for existing in self.tables):
            return table
        if table.database is not self:
            raise InvalidArgumentError("table", table.name, "Table belongs to another database.")
        self._check_unique(table.name)
        self.tables.append(table)
        return table

    def add_view(self, view: Any) -> Any:
        if any(existing is view for existing in self.views):
            return view
        if view.database is not self:
            raise InvalidArgumentError("view", view.name, "View belongs to another database.")
        self._check_unique(view.name)
        self.views.append(view)
        return view

    def get_table(self, name: str) -> Optional[Any]:
        lowered = name.lower()
        return next((t for t in self.tables if t.name.lower() == lowered), None)

    def get_view(self, name: str) -> Optional[Any]:
        lowered = name.lower()
        return next((v for v in self.views if v.name.lower() == lowered), None)

    def get_rowset(self, name: str) -> Optional[Any]:
        return self.get_table(name) or self.get_view(name)

    def add_relation(self, name: str, *references: Any, cascade: bool = False) -> Relation:
        """Add a foreign key built from ``source.reference_on(target)`` pairs."""
        for ref in references:
            source = ref[0] if isinstance(ref, tuple) else ref.source
            if source.rowset.database is not self:
                raise InvalidArgumentError("references", ref, "Source table is not in this database.")
        relation = Relation(
            name, references, DeleteAction.CASCADE if cascade else DeleteAction.NONE
        )
        if any(rel.name.lower() == name.lower() for rel in self.relations):
            raise InvalidArgumentError("name", name, f"Relation '{name}' already exists.")
        self.relations.append(relation)
        return relation

    def get_relation(self, name: str) -> Optional[Relation]:
        lowered = name.lower()
        return next((r for r in self.relations if r.name.lower() == lowered), None)

    def create_command(self) -> Any:
        from rowsmith.command import Command

        return Command(self)

    def describe(self) -> Dict[str, Any]:
        """Summarise the registry for logging."""
        return {
            "name": self.name,
            "schema": self.schema,
            "tables": [t.name for t in self.tables],
            "relations": [r.name for r in self.relations],
            "views": [v.name for v in self.views],
        }
