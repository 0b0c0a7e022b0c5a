"""DDL generation: CREATE, ALTER and DROP statements for schema objects.

Objects are walked in dependency order. A database creates its schema, then
every table (native sequences first, then the table with its inline primary
key, then its secondary indexes), then every relation once all tables exist,
then the views.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Any, Iterator, List, Optional

from rowsmith.data_types import SYSDATE, DataType
from rowsmith.dialect.capabilities import DriverFeature
from rowsmith.errors import InvalidArgumentError, NotSupportedError
from rowsmith.expr.base import CTX_FULLNAME, SqlBuffer, new_buffer
from rowsmith.schema.column import TableColumn
from rowsmith.schema.database import Database
from rowsmith.schema.relation import DeleteAction, Relation
from rowsmith.schema.table import IndexType, Table
from rowsmith.schema.view import View
from rowsmith.sqlglot_support import pretty_sql

logger = logging.getLogger(__name__)


class DDLOperation(str, Enum):
    CREATE = "CREATE"
    ALTER = "ALTER"
    DROP = "DROP"


class SQLScript:
    """An ordered list of statements executed one after another."""

    def __init__(self, dialect: Optional[str] = None) -> None:
        self.dialect = dialect
        self._statements: List[str] = []

    def add_stmt(self, sql: str) -> "SQLScript":
        self._statements.append(sql)
        return self

    @property
    def statements(self) -> List[str]:
        return list(self._statements)

    def __len__(self) -> int:
        return len(self._statements)

    def __iter__(self) -> Iterator[str]:
        return iter(self._statements)

    def to_text(self, pretty: bool = False) -> str:
        """Join the statements with ``;`` terminators, optionally formatted by sqlglot."""
        statements = self._statements
        if pretty:
            statements = [pretty_sql(sql, self.dialect) for sql in statements]
        return "".join(f"{sql};\n" for sql in statements)

    def run(self, runner: Any) -> int:
        """Execute every statement with ``runner``; returns the number executed."""
        for sql in self._statements:
            runner.execute_sql(sql)
        logger.info("Executed DDL script with %d statement(s)", len(self._statements))
        return len(self._statements)


class DDLGenerator:
    """Builds DDL for one driver."""

    def __init__(self, driver: Any) -> None:
        self.driver = driver
        self.dialect = driver.dialect

    def get_ddl(self, obj: Any, operation: DDLOperation) -> List[str]:
        script = SQLScript(self.driver.name)
        self.add_to_script(operation, obj, script)
        return script.statements

    def add_to_script(self, operation: DDLOperation, obj: Any, script: SQLScript) -> None:
        if obj is None:
            raise InvalidArgumentError("obj", obj)
        operation = DDLOperation(operation)
        database = obj if isinstance(obj, Database) else _database_of(obj)
        self.driver.check_database(database)

        if isinstance(obj, Database):
            if operation == DDLOperation.CREATE:
                self._create_database(obj, script)
            elif operation == DDLOperation.DROP:
                name = obj.schema or self.driver.settings.database_name
                self._drop_object(name, "DATABASE", script)
            else:
                raise NotSupportedError(f"{operation.value} DATABASE", self.driver.name)
        elif isinstance(obj, Table):
            if operation == DDLOperation.CREATE:
                self._create_table(obj, script)
            elif operation == DDLOperation.DROP:
                self._drop_object(obj.name, "TABLE", script, obj)
            else:
                raise NotSupportedError(f"{operation.value} TABLE", self.driver.name)
        elif isinstance(obj, View):
            if operation == DDLOperation.CREATE:
                self._create_view(obj, script)
            elif operation == DDLOperation.DROP:
                self._drop_object(obj.name, "VIEW", script, obj)
            else:
                raise NotSupportedError(f"{operation.value} VIEW", self.driver.name)
        elif isinstance(obj, Relation):
            if operation == DDLOperation.CREATE:
                self._create_relation(obj, script)
            elif operation == DDLOperation.DROP:
                self._drop_relation(obj, script)
            else:
                raise NotSupportedError(f"{operation.value} CONSTRAINT", self.driver.name)
        elif isinstance(obj, TableColumn):
            self._alter_table(obj, operation, script)
        else:
            raise NotSupportedError(f"DDL for {type(obj).__name__}", self.driver.name)

    def enable_relation(self, relation: Relation, enable: bool, script: SQLScript) -> None:
        """Enabling re-creates the foreign key; disabling drops it."""
        if not isinstance(relation, Relation):
            raise InvalidArgumentError("relation", relation)
        operation = DDLOperation.CREATE if enable else DDLOperation.DROP
        self.add_to_script(operation, relation, script)

    # helpers

    def _buffer(self) -> SqlBuffer:
        return new_buffer(self.driver, auto_prepare=False)

    def _name(self, name: str, quoted: Optional[bool] = None) -> str:
        return self.driver.quote_name(name, quoted)

    def _column_list(self, columns: List[Any]) -> str:
        return ", ".join(self._name(c.name, c.quoted) for c in columns)

    def _uses_identity(self) -> bool:
        return self.dialect.identity_template is not None and not self.driver.is_supported(
            DriverFeature.SEQUENCES
        )

    def _column_desc(self, column: TableColumn) -> Optional[str]:
        """``name type [DEFAULT literal] [NOT NULL]``, or None for columns without a type."""
        name = self._name(column.name, column.quoted)
        if column.data_type == DataType.UNKNOWN:
            logger.error("Cannot create column %s of data type UNKNOWN", column.full_name)
            return None
        if column.data_type == DataType.AUTOINC and self._uses_identity():
            return f"{name} {self.dialect.identity_template.format(min_value=column.min_value)}"
        type_sql = self.dialect.column_type(column)
        if type_sql is None:
            logger.error(
                "No %s type for column %s of type %s",
                self.driver.name,
                column.full_name,
                column.data_type.value,
            )
            return None
        parts = [name, type_sql]
        if (
            self.driver.settings.ddl_column_defaults
            and not column.auto_generated
            and column.default is not None
        ):
            literal = self.driver.get_value_string(column.default, column.data_type)
            if column.default is SYSDATE:
                literal = self.dialect.default_function_template.format(literal)
            parts.append("DEFAULT " + literal)
        if column.required or column.auto_generated:
            parts.append("NOT NULL")
        return " ".join(parts)

    # database

    def _create_database(self, database: Database, script: SQLScript) -> None:
        if self.driver.is_supported(DriverFeature.CREATE_SCHEMA):
            for sql in self.dialect.create_database(self.driver, database):
                script.add_stmt(sql)
        for table in database.tables:
            self._create_table(table, script)
        if self.dialect.alter_table_constraints:
            for relation in database.relations:
                self._create_relation(relation, script)
        elif database.relations:
            logger.warning(
                "%s cannot add foreign keys to existing tables; skipping %d relation(s)",
                self.driver.name,
                len(database.relations),
            )
        for view in database.views:
            self._create_view(view, script)

    # tables

    def _create_table(self, table: Table, script: SQLScript) -> None:
        if self.driver.capabilities.native_sequences and self.dialect.create_sequence_sql:
            for column in table.columns:
                if column.data_type == DataType.AUTOINC:
                    script.add_stmt(
                        self.dialect.create_sequence_sql.format(
                            name=self._name(column.sequence_name), min_value=column.min_value
                        )
                    )

        buf = self._buffer()
        buf.append("CREATE TABLE ")
        table.add_sql(buf, CTX_FULLNAME)
        buf.append(" (")
        descriptions = [desc for desc in map(self._column_desc, table.columns) if desc]
        buf.append(",".join(f"\n   {desc}" for desc in descriptions))
        primary_key = table.primary_key
        if primary_key is not None:
            buf.append(",\n CONSTRAINT ")
            buf.append(self._name(primary_key.name))
            buf.append(f" PRIMARY KEY ({self._column_list(primary_key.columns)})")
        buf.append(")")
        script.add_stmt(buf.getvalue())

        for index in table.indexes:
            if index is primary_key or index.index_type == IndexType.PRIMARY_KEY:
                continue
            buf = self._buffer()
            buf.append("CREATE UNIQUE INDEX " if index.unique else "CREATE INDEX ")
            buf.append(self._name(index.name))
            buf.append(" ON ")
            table.add_sql(buf, CTX_FULLNAME)
            buf.append(f" ({self._column_list(index.columns)})")
            script.add_stmt(buf.getvalue())

    def _alter_table(self, column: TableColumn, operation: DDLOperation, script: SQLScript) -> None:
        buf = self._buffer()
        buf.append("ALTER TABLE ")
        column.table.add_sql(buf, CTX_FULLNAME)
        if operation == DDLOperation.DROP:
            buf.append(" DROP COLUMN ")
            buf.append(self._name(column.name, column.quoted))
            script.add_stmt(buf.getvalue())
            return
        desc = self._column_desc(column)
        if desc is None:
            raise InvalidArgumentError("column", column.name, "Column has no DDL type.")
        if operation == DDLOperation.CREATE:
            buf.append(" ADD ")
            buf.append(desc)
        else:
            phrase = self.dialect.alter_column_phrase
            if phrase is None or not self.driver.capabilities.supports_alter_column:
                raise NotSupportedError("ALTER COLUMN", self.driver.name)
            buf.append(f" {phrase} ")
            keyword = self.dialect.alter_column_type_keyword
            if keyword:
                # PostgreSQL: ALTER COLUMN name TYPE type
                name = self._name(column.name, column.quoted)
                buf.append(f"{name} {keyword} {self.dialect.column_type(column)}")
            else:
                buf.append(desc)
        script.add_stmt(buf.getvalue())

    # relations

    def _create_relation(self, relation: Relation, script: SQLScript) -> None:
        if not self.dialect.alter_table_constraints:
            raise NotSupportedError("ALTER TABLE ADD CONSTRAINT", self.driver.name)
        buf = self._buffer()
        buf.append("ALTER TABLE ")
        relation.source_table.add_sql(buf, CTX_FULLNAME)
        buf.append(" ADD CONSTRAINT ")
        buf.append(self._name(relation.name))
        buf.append(f" FOREIGN KEY ({self._column_list(relation.source_columns)}) REFERENCES ")
        relation.target_table.add_sql(buf, CTX_FULLNAME)
        buf.append(f" ({self._column_list(relation.target_columns)})")
        if relation.on_delete == DeleteAction.CASCADE:
            buf.append(" ON DELETE CASCADE")
        script.add_stmt(buf.getvalue())

    def _drop_relation(self, relation: Relation, script: SQLScript) -> None:
        if not relation.name:
            raise InvalidArgumentError("name", relation.name)
        buf = self._buffer()
        buf.append("ALTER TABLE ")
        relation.source_table.add_sql(buf, CTX_FULLNAME)
        buf.append(f" DROP {self.dialect.drop_relation_keyword} ")
        buf.append(self._name(relation.name))
        script.add_stmt(buf.getvalue())

    # views

    def _create_view(self, view: View, script: SQLScript) -> None:
        cmd = view.create_command()
        cmd.clear_order_by()
        buf = self._buffer()
        buf.append("CREATE VIEW ")
        view.add_sql(buf, CTX_FULLNAME)
        buf.append(f" ({self._column_list(view.columns)})\nAS\n")
        cmd.add_select_sql(buf)
        if buf.params:
            raise NotSupportedError("Views with statement parameters", self.driver.name)
        script.add_stmt(buf.getvalue())

    # drop

    def _drop_object(
        self, name: Optional[str], object_type: str, script: SQLScript, rowset: Any = None
    ) -> None:
        if not name:
            raise InvalidArgumentError("name", name)
        if rowset is not None:
            buf = self._buffer()
            rowset.add_sql(buf, CTX_FULLNAME)
            target = buf.getvalue()
        else:
            target = self._name(name)
        script.add_stmt(f"DROP {object_type} {target}")


def _database_of(obj: Any) -> Optional[Database]:
    if isinstance(obj, Relation):
        return obj.source_table.database
    if isinstance(obj, TableColumn):
        return obj.table.database
    return getattr(obj, "database", None)
