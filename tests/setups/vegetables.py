'''
Shared schema and models for the test suite:

GARDEN
|
VEGETABLE (garden_id -> garden.id)
'''
import sqlalchemy as sa

from crudtable import Model, Database, Engine, Select, Count


metadata = sa.MetaData()
garden_table = sa.Table(
    'gardens',
    metadata,
    sa.Column('id',   sa.Integer, primary_key=True),
    sa.Column('name', sa.String, unique=True),
)
vegetable_table = sa.Table(
    'vegetables',
    metadata,
    sa.Column('id',        sa.Integer, primary_key=True),
    sa.Column('garden_id', sa.Integer, sa.ForeignKey('gardens.id', ondelete='CASCADE')),
    sa.Column('name',      sa.String, unique=True),

    sa.Column('color', sa.String),
    sa.Column('stock', sa.Integer, default=0),
)


class GardenModel(Model):
    table_name = 'gardens'


class VegetableModel(Model):
    table_name = 'vegetables'


def fresh_database():
    '''
    Empty in-memory database with the vegetable schema created.
    '''
    db = Database('sqlite://')
    db.recreate(metadata)
    return db

def seed(db, count, color='red', garden_id=None):
    '''
    Insert `count` vegetables named veg-1..veg-N, returning the bound VegetableModel.
    '''
    veg = db.bind(VegetableModel)
    veg.create_many([
        {'name': f'veg-{i}', 'color': color, 'stock': i, 'garden_id': garden_id}
        for i in range(1, count+1)
    ])
    return veg


class RecordingEngine(Engine):
    '''
    Engine double: records every query spec and answers reads from canned results.

    Parameters:
        rows:  records returned for every Select
        count: value returned for every Count
    '''
    def __init__(self, rows=None, count=0, result=1):
        super().__init__()
        self.rows    = list(rows or [])
        self.count   = count
        self.result  = result
        self.queries = []

    def execute(self, query):
        self.queries.append(query)

        if isinstance(query, Select):
            rows = self.rows[query.offset:]
            if query.limit is not None:
                rows = rows[:query.limit]
            return rows

        if isinstance(query, Count):
            return self.count

        return self.result

    @property
    def last(self):
        return self.queries[-1]
