'''
Example usage for this file's utilities:

# compile a WHERE mapping into SA clauses
clauses = db.where_clauses({'age >=': 18, 'u.name like': 'a%'})

# FROM clause with an alias and a join
from_ = db.from_clause('users', 'u', [Join('posts AS p', 'u.id = p.user_id', 'left')])

# convert raw results to dictionaries, keys corresponding to col names
select_dicts = db.result_dicts(connection.execute(sa.select(...)))

Column and table references are never bound as parameters by SQL, so everything that
ends up in statement text is checked against a strict identifier grammar first. Values
always travel as bound parameters.
'''

import re
import logging
import operator

import sqlalchemy as sa

from crudtable.errors import UnsafeIdentifierError


logger = logging.getLogger(__name__)

IDENTIFIER     = re.compile(r'[A-Za-z_][A-Za-z0-9_]*')
REFERENCE      = re.compile(r'[A-Za-z_][A-Za-z0-9_]*(?:\.[A-Za-z_][A-Za-z0-9_]*)?')
WHERE_KEY      = re.compile(r'\s*([A-Za-z_][A-Za-z0-9_.]*)\s*(.*?)\s*')
TABLE_REF      = re.compile(r'\s*(\S+)(?:\s+(?:[Aa][Ss]\s+)?(\S+))?\s*')
JOIN_OPERATORS = ('<=', '>=', '!=', '<>', '=', '<', '>')

OPERATORS = {
    '='        : operator.eq,
    '!='       : operator.ne,
    '<>'       : operator.ne,
    '<'        : operator.lt,
    '<='       : operator.le,
    '>'        : operator.gt,
    '>='       : operator.ge,
    'like'     : lambda c, v: c.like(v),
    'not like' : lambda c, v: c.not_like(v),
    'in'       : lambda c, v: c.in_(v),
    'not in'   : lambda c, v: c.not_in(v),
    'is'       : lambda c, v: c.is_(v),
    'is not'   : lambda c, v: c.is_not(v),
}


def check_identifier(name: str) -> str:
    if not isinstance(name, str) or IDENTIFIER.fullmatch(name) is None:
        raise UnsafeIdentifierError(f'Invalid identifier {name!r}')
    return name

def check_reference(ref: str) -> str:
    '''
    Validate a plain (`col`) or qualified (`table.col`) column reference.
    '''
    if not isinstance(ref, str) or REFERENCE.fullmatch(ref) is None:
        raise UnsafeIdentifierError(f'Invalid column reference {ref!r}')
    return ref

def column(ref: str):
    '''
    SQLAlchemy column element for a column reference.

    Unqualified names become regular (quoted as needed) columns. Qualified names become
    literal columns so SA doesn't try to add the qualifying table/alias to the FROM list;
    the identifier check above is what keeps them safe.
    '''
    check_reference(ref)
    if '.' in ref:
        return sa.literal_column(ref)
    return sa.column(ref)

def projection(ref: str):
    '''
    Column element for a SELECT list. Qualified references are labeled with their bare
    column name so result keys don't depend on the driver's naming of literal columns.
    '''
    col = column(ref)
    if '.' in ref:
        return col.label(ref.rsplit('.', 1)[1])
    return col

def table_clause(name: str, *columns: str, alias: str = ''):
    table = sa.table(check_identifier(name), *(sa.column(check_identifier(c)) for c in columns))
    if alias:
        return table.alias(check_identifier(alias))
    return table

def parse_table_ref(ref: str) -> tuple[str, str]:
    '''
    Split "posts", "posts p" or "posts AS p" into (name, alias).
    '''
    match = TABLE_REF.fullmatch(ref) if isinstance(ref, str) else None
    if match is None:
        raise UnsafeIdentifierError(f'Invalid table reference {ref!r}')

    name, alias = match.group(1), match.group(2) or ''
    check_identifier(name)
    if alias:
        check_identifier(alias)

    return name, alias

def where_clause(key: str, value):
    '''
    Compile a single WHERE entry. The key is a column reference optionally followed by
    an operator ("age >=", "name like", "id in"); without an operator the comparison is
    equality, and None values compare with IS / IS NOT.
    '''
    match = WHERE_KEY.fullmatch(key) if isinstance(key, str) else None
    if match is None:
        raise UnsafeIdentifierError(f'Invalid WHERE key {key!r}')

    ref, op = match.group(1), ' '.join(match.group(2).lower().split())
    op = op or '='

    if op not in OPERATORS:
        raise UnsafeIdentifierError(f'Unsupported WHERE operator "{op}" in key {key!r}')

    col = column(ref)
    if value is None and op in ('=', '!=', '<>'):
        return col.is_(None) if op == '=' else col.is_not(None)

    return OPERATORS[op](col, value)

def where_clauses(where) -> list:
    if not where:
        return []

    if hasattr(where, 'items'):
        where = where.items()

    return [where_clause(k, v) for k, v in where]

def order_clause(spec: str):
    '''
    "name" -> name ASC, "created desc" -> created DESC
    '''
    parts = spec.split() if isinstance(spec, str) else []
    if not parts or len(parts) > 2:
        raise UnsafeIdentifierError(f'Invalid ORDER BY entry {spec!r}')

    col = column(parts[0])
    direction = parts[1].lower() if len(parts) == 2 else 'asc'

    if direction == 'asc':
        return col.asc()
    if direction == 'desc':
        return col.desc()

    raise UnsafeIdentifierError(f'Invalid ORDER BY direction in {spec!r}')

def join_condition(on: str, escape: bool = True):
    '''
    Compile a join condition. Escaped conditions must be `ref OP ref` comparisons joined
    with AND; unescaped conditions are taken verbatim as SQL text.
    '''
    if not escape:
        return sa.text(on)

    comparisons = []
    for part in re.split(r'\s+[Aa][Nn][Dd]\s+', on.strip()):
        for op in JOIN_OPERATORS:
            left, found, right = part.partition(op)
            if found:
                break
        else:
            raise UnsafeIdentifierError(f'Invalid join condition {on!r}')

        comparisons.append(
            OPERATORS['!=' if op == '<>' else op](column(left.strip()), column(right.strip()))
        )

    return sa.and_(*comparisons)

def from_clause(table: str, alias: str = '', joins=()):
    from_ = table_clause(table, alias=alias)

    for join in joins:
        name, join_alias = parse_table_ref(join.table)
        from_ = from_.join(
            table_clause(name, alias=join_alias),
            join_condition(join.on, join.escape),
            **join.join_kwargs,
        )

    return from_

def result_dicts(results):
    '''
    Convert raw results to dictionaries keyed by column name. Rows are zipped with the
    result keys by position, so joined rows sharing a column name (e.g. two `id`s under
    `SELECT *`) keep the last column's value instead of failing on ambiguous lookup.
    '''
    keys = list(results.keys())
    return [dict(zip(keys, row)) for row in results]
