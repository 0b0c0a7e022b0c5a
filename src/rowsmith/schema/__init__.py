"""In-memory schema model."""

from rowsmith.schema.column import Column, Reference, TableColumn, ViewColumn
from rowsmith.schema.database import Database
from rowsmith.schema.relation import DeleteAction, Relation
from rowsmith.schema.rowset import RowSet
from rowsmith.schema.table import Index, IndexType, Table
from rowsmith.schema.view import View

__all__ = [
    "Column",
    "Database",
    "DeleteAction",
    "Index",
    "IndexType",
    "Reference",
    "Relation",
    "RowSet",
    "Table",
    "TableColumn",
    "View",
    "ViewColumn",
]
