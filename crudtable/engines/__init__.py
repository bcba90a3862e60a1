import time
import logging
from collections import defaultdict
from contextlib import contextmanager

import sqlalchemy as sa
from tqdm.auto import tqdm

from crudtable import util
from crudtable.engine import Engine
from crudtable.query import (
    Select, Count, Insert, InsertBatch, Update, UpdateBatch, Delete, Delta
)


logger = logging.getLogger(__name__)


class SQLEngine(Engine):
    '''
    SQLAlchemy Core backend. Query specifications are compiled against lightweight
    `sa.table()` constructs, so no schema reflection is needed; the database itself
    reports unknown tables or columns.

    Parameters:
        url:    database URL, or an existing SQLAlchemy Engine to wrap
        kwargs: passed through to `sa.create_engine()`
    '''
    handlers = {
        Select      : '_select',
        Count       : '_count',
        Insert      : '_insert',
        InsertBatch : '_insert_batch',
        Update      : '_update',
        UpdateBatch : '_update_batch',
        Delete      : '_delete',
    }

    def __init__(self, url: str | sa.URL | sa.Engine, **kwargs):
        if isinstance(url, sa.Engine):
            super().__init__()
            self._manager = url
        else:
            super().__init__(url, **kwargs)

    def _create_manager(self):
        return sa.create_engine(*self.manager_args, **self.manager_kwargs)

    @contextmanager
    def connect(self):
        with self.manager.connect() as connection:
            yield connection

    @contextmanager
    def transaction(self):
        '''
        Connection with an explicit transaction, committed when the with-block exits
        cleanly and rolled back otherwise.
        '''
        with self.connect() as connection:
            trans = connection.begin()  # start a new transaction explicitly
            try:
                yield connection
                trans.commit()
            except Exception:
                trans.rollback()
                logger.warning('Transaction rolled back')
                raise

    def execute(self, query):
        try:
            return super().execute(query)
        except sa.exc.SQLAlchemyError as e:
            logger.error(f'{type(query).__name__} on table "{query.table}" failed: {e}')
            raise

    def dispose(self):
        if self._manager is not None:
            self._manager.dispose()
        super().dispose()

    @staticmethod
    def _execute(
        connection,
        statement,
        bind_params=None,
    ):
        '''
        Execute a general SQLAlchemy statement, optionally binding provided parameters.

        Parameters:
            connection:  database connection instance
            statement:   SQLAlchemy statement
            bind_params: a parameter dict, or a list of them for executemany
        '''
        return connection.execute(statement, bind_params)

    @staticmethod
    def _chunks(rows, size):
        if size < 1:
            raise ValueError(f'Batch size must be positive, got {size}')
        return [rows[i:i+size] for i in range(0, len(rows), size)]

    def _select(self, query: Select) -> list[dict]:
        columns = [util.db.projection(c) for c in query.columns]
        if not columns:
            columns = [sa.literal_column('*')]

        stmt = sa.select(*columns).select_from(
            util.db.from_clause(query.table, query.alias, query.joins)
        ).where(*util.db.where_clauses(query.where))

        if query.order_by:
            stmt = stmt.order_by(*[util.db.order_clause(o) for o in query.order_by])

        if query.limit is not None:
            stmt = stmt.limit(query.limit)

        if query.offset:
            stmt = stmt.offset(query.offset)

        with self.connect() as connection:
            return util.db.result_dicts(self._execute(connection, stmt))

    def _count(self, query: Count) -> int:
        stmt = sa.select(sa.func.count()).select_from(
            util.db.from_clause(query.table, query.alias, query.joins)
        ).where(*util.db.where_clauses(query.where))

        with self.connect() as connection:
            return self._execute(connection, stmt).scalar_one()

    def _insert(self, query: Insert):
        '''
        Returns the new row's primary key, via RETURNING when the dialect supports it and
        the DBAPI `lastrowid` otherwise.
        '''
        values = dict(query.values)
        table  = util.db.table_clause(
            query.table,
            *dict.fromkeys([*values, query.primary_key])
        )
        stmt = sa.insert(table).values(values)

        with self.transaction() as connection:
            if connection.dialect.insert_returning:
                stmt = stmt.returning(table.c[query.primary_key])
                return self._execute(connection, stmt).scalar_one()

            return self._execute(connection, stmt).lastrowid

    def _insert_batch(self, query: InsertBatch) -> int:
        '''
        Rows are grouped by the set of columns they carry; each group runs as its own
        executemany INSERT so no row loses columns the others lack.
        '''
        rows = [dict(r) for r in query.rows]
        if not rows:
            return 0

        groups = defaultdict(list)
        for row in rows:
            groups[tuple(sorted(row))].append(row)

        batches = [
            (columns, chunk)
            for columns, group in groups.items()
            for chunk in self._chunks(group, query.batch_size)
        ]

        logger.info(
            f'Inserting {len(rows)} rows into table "{query.table}" in {len(batches)} batches'
        )

        start = time.time()
        inserted = 0
        with self.transaction() as connection:
            for columns, chunk in tqdm(
                batches,
                desc=f'Batch insert into "{query.table}"',
                disable=not query.progress,
            ):
                table = util.db.table_clause(query.table, *columns)
                self._execute(connection, sa.insert(table), chunk)
                inserted += len(chunk)

        logger.info(f'Insert transaction completed successfully in {time.time()-start:.2f}s')
        return inserted

    def _update(self, query: Update) -> int:
        values = dict(query.values)
        table  = util.db.table_clause(query.table, *values)

        stmt = sa.update(table).where(
            *util.db.where_clauses(query.where)
        ).values({
            name: table.c[name] + value.amount if isinstance(value, Delta) else value
            for name, value in values.items()
        })

        with self.transaction() as connection:
            return self._execute(connection, stmt).rowcount

    def _update_batch(self, query: UpdateBatch) -> int:
        '''
        Rows are grouped by the set of columns they carry; each group runs as one
        executemany UPDATE matched on `query.key`.
        '''
        rows = [dict(r) for r in query.rows]
        missing = [i for i, row in enumerate(rows) if query.key not in row]
        if missing:
            raise ValueError(
                f'Batch update rows {missing} are missing the match key "{query.key}"'
            )

        groups = defaultdict(list)
        for row in rows:
            columns = tuple(k for k in row if k != query.key)
            if columns:
                groups[columns].append(row)

        batches = [
            (columns, chunk)
            for columns, group in groups.items()
            for chunk in self._chunks(group, query.batch_size)
        ]

        logger.info(
            f'Updating {len(rows)} rows in table "{query.table}" by "{query.key}" '
            f'in {len(batches)} batches'
        )

        start = time.time()
        affected = 0
        with self.transaction() as connection:
            for columns, chunk in tqdm(
                batches,
                desc=f'Batch update of "{query.table}"',
                disable=not query.progress,
            ):
                table = util.db.table_clause(query.table, query.key, *columns)
                stmt  = sa.update(table).where(
                    table.c[query.key] == sa.bindparam('b_match')
                ).values({
                    c: sa.bindparam(f'b_set_{i}') for i, c in enumerate(columns)
                })

                params = [
                    {
                        'b_match': row[query.key],
                        **{f'b_set_{i}': row[c] for i, c in enumerate(columns)},
                    }
                    for row in chunk
                ]
                affected += self._execute(connection, stmt, params).rowcount

        logger.info(f'Update transaction completed successfully in {time.time()-start:.2f}s')
        return affected

    def _delete(self, query: Delete) -> int:
        stmt = sa.delete(util.db.table_clause(query.table)).where(
            *util.db.where_clauses(query.where)
        )

        with self.transaction() as connection:
            return self._execute(connection, stmt).rowcount
