import pytest
import sqlalchemy as sa

from crudtable import util
from crudtable import Select, Count, Join, Delta, ConfigurationError, UnsafeIdentifierError
from crudtable.query import freeze, joins_from_specs


def compiled(element):
    return str(element.compile(compile_kwargs={'literal_binds': True}))

def test_select_count():
    select = Select(
        'users',
        alias='u',
        columns=('u.name',),
        where=freeze({'u.active': True}),
        joins=(Join('posts p', 'p.user_id = u.id'),),
        limit=20,
        offset=40,
    )

    assert select.count() == Count('users', 'u', (('u.active', True),), select.joins)
    assert select.window(10).limit == 10
    assert select.window(10).offset == 0

def test_freeze():
    assert freeze(None) == ()
    assert freeze({}) == ()
    assert freeze({'a': 1, 'b': 2}) == (('a', 1), ('b', 2))

def test_join_from_spec():
    assert Join.from_spec(('posts', 'posts.uid = users.id')) == Join('posts', 'posts.uid = users.id')
    assert Join.from_spec(('posts', 'a.b = c.d', 'LEFT   OUTER')).how == 'left outer'
    assert Join.from_spec(('posts', 'a.b = c.d', 'left', False)).escape is False

    assert Join.from_spec(()) is None
    assert Join.from_spec(('posts',)) is None
    assert Join.from_spec(('posts', 'a', 'left', True, None)) is None
    assert Join.from_spec('posts') is None

    assert joins_from_specs(None) == ()

def test_join_types():
    with pytest.raises(ConfigurationError):
        Join('posts', 'a.b = c.d', 'right')
    with pytest.raises(ConfigurationError):
        Join('posts', 'a.b = c.d', 'sideways')

    assert Join('posts', 'a.b = c.d', 'full').join_kwargs == {'full': True}
    assert Join('posts', 'a.b = c.d', 'outer').join_kwargs == {'isouter': True}

def test_delta():
    assert -Delta(3) == Delta(-3)
    assert Delta(1.5).amount == 1.5

    for bad in ('1', None, True, [1]):
        with pytest.raises(TypeError):
            Delta(bad)

def test_where_clause():
    assert compiled(util.db.where_clause('name', 'leek'))        == "name = 'leek'"
    assert compiled(util.db.where_clause('stock >=', 3))         == 'stock >= 3'
    assert compiled(util.db.where_clause('stock<>', 3))          == 'stock != 3'
    assert compiled(util.db.where_clause('v.name LIKE', 'l%'))   == "v.name LIKE 'l%'"
    assert compiled(util.db.where_clause('garden_id', None))     == 'garden_id IS NULL'
    assert compiled(util.db.where_clause('garden_id !=', None))  == 'garden_id IS NOT NULL'

def test_where_clause_binds_values():
    clause = util.db.where_clause('name', "x' OR 1=1 --")
    params = clause.compile().params

    assert list(params.values()) == ["x' OR 1=1 --"]

@pytest.mark.parametrize('key', [
    'name; DROP TABLE users',
    'name = 1 OR 1',
    'name ===',
    '1name',
    'a.b.c',
    'name)',
    '',
])
def test_where_clause_rejects(key):
    with pytest.raises(UnsafeIdentifierError):
        util.db.where_clause(key, 1)

def test_order_clause():
    assert compiled(util.db.order_clause('name'))        == 'name ASC'
    assert compiled(util.db.order_clause('v.stock DESC')) == 'v.stock DESC'

    for bad in ('name sideways', 'name desc nulls', '', 'na-me'):
        with pytest.raises(UnsafeIdentifierError):
            util.db.order_clause(bad)

def test_parse_table_ref():
    assert util.db.parse_table_ref('posts')        == ('posts', '')
    assert util.db.parse_table_ref('posts p')      == ('posts', 'p')
    assert util.db.parse_table_ref(' posts AS p ') == ('posts', 'p')

    with pytest.raises(UnsafeIdentifierError):
        util.db.parse_table_ref('posts; --')

def test_join_condition():
    assert compiled(util.db.join_condition('u.id = p.user_id')) == 'u.id = p.user_id'
    assert compiled(
        util.db.join_condition('u.id = p.user_id AND p.rank >= u.rank')
    ) == 'u.id = p.user_id AND p.rank >= u.rank'

    with pytest.raises(UnsafeIdentifierError):
        util.db.join_condition('u.id = 1 OR 1=1')
    with pytest.raises(UnsafeIdentifierError):
        util.db.join_condition('u.id')

    raw = util.db.join_condition('u.id = p.user_id AND p.deleted_at IS NULL', escape=False)
    assert isinstance(raw, sa.TextClause)

def test_from_clause():
    from_ = util.db.from_clause(
        'users',
        'u',
        [Join('posts AS p', 'u.id = p.user_id', 'left')],
    )
    sql = compiled(sa.select(sa.literal_column('*')).select_from(from_))

    assert 'FROM users AS u LEFT OUTER JOIN posts AS p ON u.id = p.user_id' in sql

def test_projection():
    assert util.db.projection('v.name').name == 'name'
    assert util.db.projection('name').name   == 'name'
