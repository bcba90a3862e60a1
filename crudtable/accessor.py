'''
Accessor

Read side of a Model: single-record lookups, windowed (paginated) reads, counts and
existence checks against one table. Every method builds a `crudtable.query` spec and
runs it through the bound Engine; nothing is carried over between calls.
'''
import math
from collections.abc import Mapping

from crudtable.engine import Engine
from crudtable.table import Table
from crudtable.query import Select, Count, freeze, joins_from_specs


def paginate(records, total_count, page, limit, offset) -> dict:
    '''
    Wrap a page of records with pagination metadata.

    Empty pages only report the totals; position fields (`from_num`, `to_num`,
    `curr_page`) are present only when at least one record came back.
    '''
    total_pages = math.ceil(total_count / limit)

    if not records:
        return {
            'data'        : [],
            'total_count' : total_count,
            'total_pages' : total_pages,
        }

    count_records = len(records)
    return {
        'data'        : records,
        'from_num'    : offset + 1,
        'to_num'      : offset + count_records if count_records < limit else offset + limit,
        'total_count' : total_count,
        'curr_page'   : page,
        'total_pages' : total_pages,
    }


class Accessor:
    engine : Engine
    table  : Table

    def _select(
        self,
        where    = None,
        joins    = (),
        columns  = None,
        order_by = None,
        limit    = None,
        offset   = 0,
    ) -> Select:
        if isinstance(columns, str):
            columns = (columns,)
        if isinstance(order_by, str):
            order_by = (order_by,)

        return Select(
            self.table.name,
            self.table.alias,
            columns  = tuple(columns or ()),
            where    = freeze(where),
            joins    = joins_from_specs(joins),
            order_by = tuple(order_by or ()),
            limit    = limit,
            offset   = offset,
        )

    def get_by(self, where, joins=(), columns=None) -> dict | None:
        '''
        First record matching `where`, or None. At most one row is requested.
        '''
        records = self.engine.execute(self._select(where, joins, columns, limit=1))
        return records[0] if records else None

    def get_by_id(self, id, joins=(), columns=None) -> dict | None:
        return self.get_by({self.table.pk_ref: id}, joins, columns)

    def get_field(self, id, field):
        '''
        Single column value from the record with primary key `id`.

        Note:
            Returns None both when the record doesn't exist and when the stored value is
            empty (None, 0, '', ...). Callers needing to tell these apart should use
            `get_by_id()`.
        '''
        record = self.get_by_id(id, columns=(field,))
        if not record:
            return None

        return record.get(field.rsplit('.', 1)[-1]) or None

    def get_all(self, page=1, order_by=None):
        return self.get_many_by({}, page, order_by=order_by)

    def get_many_by(
        self,
        where,
        page       = 1,
        joins      = (),
        with_count = False,
        order_by   = None,
        columns    = None,
    ):
        '''
        Page of records matching `where`.

        Parameters:
            where:      WHERE mapping; `{}` for no filter
            page:       1-based page number; values below 1 read the first page
            joins:      join specs, `(table, on, [how], [escape])` tuples or Join values
            with_count: when True, run a second count query and return a page dict (see
                        `paginate()`) instead of the bare record list
            order_by:   column or list of columns ("name", "created desc"); rows come back
                        in database order when omitted

        Note:
            The window and count queries are separate round trips, so `to_num` can run
            ahead of `total_count` if rows are deleted in between.
        '''
        limit  = self.table.per_page
        offset = 0 if page <= 1 else (page - 1) * limit

        query   = self._select(where, joins, columns, order_by).window(limit, offset)
        records = self.engine.execute(query)

        if not with_count:
            return records

        total_count = self.engine.execute(query.count())
        return paginate(records, total_count, page, limit, offset)

    def count_by(self, where, joins=()) -> int:
        return self.engine.execute(
            Count(
                self.table.name,
                self.table.alias,
                where = freeze(where),
                joins = joins_from_specs(joins),
            )
        )

    def exists_by_id(self, id) -> bool:
        return self.exists_where({self.table.primary_key: id})

    def exists_where(self, where) -> bool:
        '''
        True only when exactly one record matches; zero or several matches are both
        reported as False.
        '''
        return self.count_by(where) == 1

    def exists(self, params) -> bool:
        '''
        Mapping arguments are WHERE clauses, anything else is a primary key value.
        '''
        if isinstance(params, Mapping):
            return self.exists_where(params)
        return self.exists_by_id(params)
