"""Sequence emulation through a dedicated table.

Dialects without native sequences keep one row per sequence holding its
current value and the time it was last incremented. An increment reads the
row, then updates it guarded by both the name and the timestamp read; a
concurrent caller that changed the row in between makes the update affect no
rows and the read is repeated.
"""

from __future__ import annotations

import logging
import random
import time
from datetime import datetime, timedelta
from typing import Any, Optional

from rowsmith.data_types import DataType
from rowsmith.errors import InvalidArgumentError, SequenceExhaustedError
from rowsmith.execution import ErrorKind, Ok, QueryRunner
from rowsmith.schema.table import Table

logger = logging.getLogger(__name__)

_BASE_DELAY = 0.001
_MAX_DELAY = 0.05


class SequenceTable(Table):
    """Table ``(SeqName, SeqValue, SeqTime)`` keyed by sequence name."""

    def __init__(self, name: str, database: Any) -> None:
        super().__init__(name, database)
        self.name_column = self.add_column("SeqName", DataType.VARCHAR, 40, required=True)
        self.value_column = self.add_column("SeqValue", DataType.INTEGER, required=True)
        self.time_column = self.add_column("SeqTime", DataType.DATETIME, required=True)
        self.set_primary_key(self.name_column)

    @classmethod
    def for_database(cls, database: Any, name: str) -> "SequenceTable":
        """Return the sequence table registered in ``database``, creating it if needed."""
        existing = database.get_table(name)
        if existing is None:
            return cls(name, database)
        if not isinstance(existing, SequenceTable):
            raise InvalidArgumentError(
                "sequence_table_name", name, f"'{name}' is already used by another table."
            )
        return existing

    def _next_timestamp(self, runner: QueryRunner, previous: Optional[datetime]) -> datetime:
        now = runner.driver.get_update_timestamp(runner.connection)
        if previous is not None and now <= previous:
            now = previous + timedelta(microseconds=1)
        return now

    def _read(self, runner: QueryRunner, sequence_name: str) -> Optional[Any]:
        cmd = self.database.create_command()
        cmd.select(self.value_column, self.time_column)
        cmd.where(self.name_column.is_(sequence_name))
        stmt = cmd.render_select()
        return runner.query_first_row(stmt.sql, stmt.params)

    def get_next_value(self, runner: QueryRunner, sequence_name: str, min_value: int = 1) -> int:
        """Increment ``sequence_name`` and return the new value (never below ``min_value``).

        Raises SequenceExhaustedError when every attempt lost against
        concurrent callers.
        """
        driver = runner.driver
        max_retries = driver.settings.sequence_max_retries
        for attempt in range(1, max_retries + 1):
            row = self._read(runner, sequence_name)
            cmd = self.database.create_command()
            if row is not None:
                current = driver.get_result_value(row, 0, DataType.INTEGER)
                read_time = driver.get_result_value(row, 1, DataType.DATETIME)
                next_value = max(int(current or 0) + 1, min_value)
                new_time = self._next_timestamp(runner, read_time)
                cmd.set(self.value_column, next_value)
                cmd.set(self.time_column, cmd.add_param(DataType.DATETIME, new_time))
                cmd.where(self.name_column.is_(sequence_name))
                cmd.where(self.time_column.is_(cmd.add_param(DataType.DATETIME, read_time)))
                stmt = cmd.render_update()
            else:
                next_value = min_value
                new_time = self._next_timestamp(runner, None)
                cmd.set(self.name_column, sequence_name)
                cmd.set(self.value_column, next_value)
                cmd.set(self.time_column, cmd.add_param(DataType.DATETIME, new_time))
                stmt = cmd.render_insert()

            outcome = runner.try_execute_sql(stmt.sql, stmt.params)
            if isinstance(outcome, Ok):
                if outcome.value == 1:
                    logger.info("Sequence %s incremented to %d", sequence_name, next_value)
                    return next_value
                logger.warning(
                    "Sequence %s changed concurrently (attempt %d of %d)",
                    sequence_name,
                    attempt,
                    max_retries,
                )
            elif outcome.kind == ErrorKind.CONSTRAINT_VIOLATION:
                logger.warning(
                    "Sequence %s created concurrently (attempt %d of %d)",
                    sequence_name,
                    attempt,
                    max_retries,
                )
            else:
                raise outcome.error

            delay = min(_MAX_DELAY, _BASE_DELAY * (2 ** min(attempt, 6)))
            time.sleep(random.uniform(0, delay))

        logger.error("Sequence %s not incremented after %d attempts", sequence_name, max_retries)
        raise SequenceExhaustedError(sequence_name, max_retries)
