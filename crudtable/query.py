'''
Query specifications

Immutable descriptions of the statements a Model asks its Engine to run. A Model never
accumulates builder state across calls: each operation assembles one of the specs
below and hands it to `Engine.execute()`, which makes the emitted queries easy to
inspect without a live connection.

Mappings (WHERE clauses, column values, batch rows) are frozen into tuples of
`(key, value)` pairs on construction; use `dict(spec.where)` to read them back.

Example:

```py
spec = Select('users', alias='u', where=freeze({'u.id': 4}), limit=1)
engine.execute(spec)          # -> list[dict]
engine.execute(spec.count())  # -> int
```
'''
from dataclasses import dataclass, replace
from collections.abc import Mapping, Iterable
from typing import Any, Self

from crudtable.errors import ConfigurationError


Pairs = tuple[tuple[str, Any], ...]


def freeze(mapping: Mapping | None) -> Pairs:
    if not mapping:
        return ()
    return tuple(mapping.items())


@dataclass(frozen=True)
class Delta:
    '''
    Numeric adjustment applied in SQL as `<column> = <column> + amount`. Only real
    numbers are accepted; the amount is always sent as a bound parameter.
    '''
    amount: int | float

    def __post_init__(self):
        if isinstance(self.amount, bool) or not isinstance(self.amount, (int, float)):
            raise TypeError(
                f'Delta amount must be an int or float, got {type(self.amount).__name__}'
            )

    def __neg__(self):
        return Delta(-self.amount)


JOIN_TYPES = {
    ''           : {},
    'inner'      : {},
    'left'       : {'isouter': True},
    'left outer' : {'isouter': True},
    'outer'      : {'isouter': True},
    'full'       : {'full': True},
    'full outer' : {'full': True},
}


@dataclass(frozen=True)
class Join:
    '''
    Join clause.

    Parameters:
        table:  joined table, optionally aliased ("posts AS p" or "posts p")
        on:     join condition, e.g. "u.id = p.user_id"; several comparisons can be
                chained with AND
        how:    join type (see `JOIN_TYPES`)
        escape: when False, `on` is trusted SQL and passed through as text. Conditions
                are expected to be written by developers, never built from user input.
    '''
    table  : str
    on     : str
    how    : str  = ''
    escape : bool = True

    def __post_init__(self):
        how = ' '.join(str(self.how).lower().split())
        if how not in JOIN_TYPES:
            raise ConfigurationError(f'Unsupported join type "{self.how}"')
        object.__setattr__(self, 'how', how)

    @property
    def join_kwargs(self) -> dict:
        return JOIN_TYPES[self.how]

    @classmethod
    def from_spec(cls, spec) -> Self | None:
        '''
        Build a Join from a 2, 3 or 4 element sequence `(table, on, [how], [escape])`.
        Join instances pass through as-is; any other arity yields None and is skipped by
        callers.
        '''
        if isinstance(spec, cls):
            return spec

        if isinstance(spec, (str, bytes)) or not isinstance(spec, Iterable):
            return None

        spec = tuple(spec)
        if not 2 <= len(spec) <= 4:
            return None

        return cls(*spec)


def joins_from_specs(specs) -> tuple[Join, ...]:
    if not specs:
        return ()

    joins = (Join.from_spec(spec) for spec in specs)
    return tuple(j for j in joins if j is not None)


@dataclass(frozen=True)
class Count:
    table : str
    alias : str             = ''
    where : Pairs           = ()
    joins : tuple[Join,...] = ()


@dataclass(frozen=True)
class Select:
    '''
    Windowed SELECT. `columns` empty means all columns; `limit` None means no LIMIT.
    `order_by` entries look like "name" or "created desc".
    '''
    table    : str
    alias    : str               = ''
    columns  : tuple[str, ...]   = ()
    where    : Pairs             = ()
    joins    : tuple[Join, ...]  = ()
    order_by : tuple[str, ...]   = ()
    limit    : int | None        = None
    offset   : int               = 0

    def count(self) -> Count:
        '''
        Count-only counterpart: same table, joins and filter, no window or projection.
        '''
        return Count(self.table, self.alias, self.where, self.joins)

    def window(self, limit, offset=0) -> Self:
        return replace(self, limit=limit, offset=offset)


@dataclass(frozen=True)
class Insert:
    table       : str
    values      : Pairs
    primary_key : str = 'id'


@dataclass(frozen=True)
class InsertBatch:
    table      : str
    rows       : tuple[Pairs, ...]
    batch_size : int  = 100
    progress   : bool = False


@dataclass(frozen=True)
class Update:
    '''
    UPDATE of all rows matching `where`. Values may be `Delta` instances for in-SQL
    arithmetic; everything else is bound as a literal.
    '''
    table  : str
    where  : Pairs
    values : Pairs


@dataclass(frozen=True)
class UpdateBatch:
    table      : str
    rows       : tuple[Pairs, ...]
    key        : str
    batch_size : int  = 100
    progress   : bool = False


@dataclass(frozen=True)
class Delete:
    table : str
    where : Pairs
