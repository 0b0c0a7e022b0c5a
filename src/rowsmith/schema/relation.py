"""Foreign key relations between tables."""

from __future__ import annotations

from enum import Enum
from typing import Any, List, Sequence

from rowsmith.errors import InvalidArgumentError
from rowsmith.schema.column import Reference


class DeleteAction(str, Enum):
    NONE = "NONE"
    CASCADE = "CASCADE"


class Relation:
    """A foreign key: ordered (source, target) column pairs between two tables.

    All source columns must belong to one table and all targets to another
    (or the same) table; each target column must be part of the target's
    primary key or of a unique index.
    """

    def __init__(
        self,
        name: str,
        references: Sequence[Any],
        on_delete: DeleteAction = DeleteAction.NONE,
    ) -> None:
        if not name:
            raise InvalidArgumentError("name", name)
        refs: List[Reference] = [
            ref if isinstance(ref, Reference) else Reference(*ref) for ref in references
        ]
        if not refs:
            raise InvalidArgumentError("references", references, "A relation needs a reference.")
        source_table = refs[0].source.rowset
        target_table = refs[0].target.rowset
        for ref in refs:
            if ref.source.rowset is not source_table:
                raise InvalidArgumentError(
                    "references", ref, "All source columns must belong to one table."
                )
            if ref.target.rowset is not target_table:
                raise InvalidArgumentError(
                    "references", ref, "All target columns must belong to one table."
                )
            if not target_table.is_key_or_unique(ref.target):
                raise InvalidArgumentError(
                    "references",
                    ref,
                    f"Column '{ref.target.name}' is neither key nor unique in {target_table.name}.",
                )
        self.name = name
        self.references = refs
        self.on_delete = on_delete

    @property
    def source_table(self) -> Any:
        return self.references[0].source.rowset

    @property
    def target_table(self) -> Any:
        return self.references[0].target.rowset

    @property
    def source_columns(self) -> List[Any]:
        return [ref.source for ref in self.references]

    @property
    def target_columns(self) -> List[Any]:
        return [ref.target for ref in self.references]

    def __repr__(self) -> str:
        return f"<Relation {self.name} {self.source_table.name} -> {self.target_table.name}>"
