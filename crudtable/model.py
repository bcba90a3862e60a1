'''
Model

Base class for per-table data access. Subclass once per table, declaring the table
settings as class attributes:

```py
class UserModel(Model):
    table_name = 'users'
    per_page   = 50

users = UserModel(engine)
users.get_many_by({'active': True}, page=2, with_count=True)
users.increment_field(4, 'login_count')
```

Instances hold a mutable Table descriptor (see the setters below) and are not
thread-safe: create one per request or unit of work, e.g. through `Database.bind()`.
'''
import logging
from typing import Generic, TypeVar

from crudtable.engine import Engine
from crudtable.accessor import Accessor
from crudtable.manager import Manager
from crudtable.table import Table, check_per_page
from crudtable.errors import ConfigurationError
from crudtable.util.db import check_identifier


logger = logging.getLogger(__name__)

E = TypeVar('E', bound=Engine)


class Model(Accessor, Manager, Generic[E]):
    '''
    Generic table accessor combining the read (Accessor) and write (Manager) operations
    over a single table.

    Parameters:
        engine:      query backend used for every operation
        table_name:  overrides the class-level `table_name`
        alias:       overrides the class-level `table_alias`
        primary_key: overrides the class-level `primary_key`
        per_page:    overrides the class-level `per_page`
    '''
    table_name  : str | None = None
    table_alias : str        = ''
    primary_key : str        = 'id'
    per_page    : int        = 20

    def __init__(
        self,
        engine      : E,
        table_name  : str | None = None,
        alias       : str | None = None,
        primary_key : str | None = None,
        per_page    : int | None = None,
    ):
        name = table_name or self.table_name
        if not name:
            raise ConfigurationError(
                f'{type(self).__name__} must define `table_name` or receive one on init'
            )

        alias = self.table_alias if alias is None else alias

        self.engine = engine
        self.table  = Table(
            name        = check_identifier(name),
            alias       = check_identifier(alias) if alias else '',
            primary_key = check_identifier(primary_key or type(self).primary_key),
            per_page    = self.per_page if per_page is None else per_page,
        )

    def __repr__(self):
        return f'<{type(self).__name__} table="{self.table.ref}">'

    def set_table_alias(self, alias):
        '''
        Alias the table in reads (e.g. "u" for "SELECT * FROM users AS u"). Primary key
        lookups are qualified with the alias from then on. An empty alias removes it.
        '''
        self.table.alias = check_identifier(alias) if alias else ''

    def set_per_page_limit(self, num):
        '''
        Maximum number of records per page for windowed reads.
        '''
        self.table.per_page = check_per_page(num)
        logger.debug(f'{self!r} page size set to {num}')
