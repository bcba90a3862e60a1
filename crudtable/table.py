'''
Table

Table descriptor held by each Model instance: the table name, an optional alias, the
primary key column and the page size used by windowed reads.
'''
from dataclasses import dataclass

from crudtable.errors import ConfigurationError


@dataclass
class Table:
    name        : str
    alias       : str = ''
    primary_key : str = 'id'
    per_page    : int = 20

    def __post_init__(self):
        if not self.name:
            raise ConfigurationError('Table descriptor requires a table name')
        check_per_page(self.per_page)

    @property
    def ref(self) -> str:
        '''
        Display form of the table, e.g. "users AS u" when aliased.
        '''
        if self.alias:
            return f'{self.name} AS {self.alias}'
        return self.name

    @property
    def pk_ref(self) -> str:
        '''
        Qualified primary key reference, using the alias when one is set.
        '''
        return f'{self.alias or self.name}.{self.primary_key}'


def check_per_page(num):
    if isinstance(num, bool) or not isinstance(num, int) or num < 1:
        raise ConfigurationError(f'Page size must be a positive integer, got {num!r}')
    return num
