'''
Manager

Write side of a Model. Writes always target the base table name (never the alias) and
match single records on the unqualified primary key.

Values are sent as bound parameters; there is no way to pass raw SQL as a column
value. Counter-style updates go through `apply_delta()`, which only accepts numbers.
'''
import logging

from crudtable import util
from crudtable.engine import Engine
from crudtable.table import Table
from crudtable.errors import RawExpressionError
from crudtable.query import (
    Insert, InsertBatch, Update, UpdateBatch, Delete, Delta, freeze
)


logger = logging.getLogger(__name__)


class Manager:
    engine : Engine
    table  : Table

    def _pk_where(self, id):
        return freeze({self.table.primary_key: id})

    def create(self, data):
        '''
        Insert one record and return its primary key.
        '''
        return self.engine.execute(
            Insert(self.table.name, freeze(data), self.table.primary_key)
        )

    def create_many(self, rows, batch_size=100, progress=False) -> int:
        '''
        Insert several records in a single transaction.

        Parameters:
            rows:       column-indexed dicts; all rows should carry the same columns
            batch_size: rows per INSERT statement
            progress:   show a progress bar over the batches

        Returns:
            Number of rows inserted
        '''
        return self.engine.execute(
            InsertBatch(
                self.table.name,
                tuple(freeze(row) for row in rows),
                batch_size = batch_size,
                progress   = progress,
            )
        )

    def update(self, id, data) -> int:
        if not data:
            raise ValueError(f'No values provided to update {self.table.name} record {id!r}')

        return self.engine.execute(
            Update(self.table.name, self._pk_where(id), freeze(data))
        )

    def update_many(self, rows, where_key, batch_size=100, progress=False) -> int:
        '''
        Update several records in one transaction, matching each row to an existing
        record through its `where_key` column. Every row must contain `where_key`.
        '''
        return self.engine.execute(
            UpdateBatch(
                self.table.name,
                tuple(freeze(row) for row in rows),
                util.db.check_identifier(where_key),
                batch_size = batch_size,
                progress   = progress,
            )
        )

    def update_field(self, id, field, value, escape=True) -> int:
        '''
        Set a single column on the record with primary key `id`. The value is always
        escaped; `escape=False` is rejected (see `apply_delta()` for arithmetic).
        '''
        if not escape:
            raise RawExpressionError(
                f'Unescaped assignment to "{field}" refused; use apply_delta() for '
                'arithmetic updates'
            )

        return self.update(id, {util.db.check_identifier(field): value})

    def apply_delta(self, id, field, delta) -> int:
        '''
        Add `delta` to a numeric column in a single UPDATE (`field = field + delta`), so
        concurrent adjustments don't overwrite each other.
        '''
        if not isinstance(delta, Delta):
            delta = Delta(delta)

        return self.update(id, {util.db.check_identifier(field): delta})

    def increment_field(self, id, field, diff=1) -> int:
        return self.apply_delta(id, field, diff)

    def decrement_field(self, id, field, diff=1) -> int:
        if not isinstance(diff, Delta):
            diff = Delta(diff)

        return self.apply_delta(id, field, -diff)

    def delete(self, id) -> int:
        return self.engine.execute(Delete(self.table.name, self._pk_where(id)))

    def delete_by(self, where) -> int:
        '''
        Delete every record matching `where`. An empty filter is refused rather than
        clearing the table.
        '''
        if not where:
            raise ValueError(f'Refusing to delete from {self.table.name} without a filter')

        deleted = self.engine.execute(Delete(self.table.name, freeze(where)))
        logger.info(f'Deleted {deleted} rows from table "{self.table.name}"')
        return deleted
