'''
Database

Owns the query backend for one database and hands out Model instances bound to it.
The database is configured entirely through its URL and engine keyword arguments:

```py
db = Database('sqlite:///app.db', echo=False)
db.recreate(metadata)

users = db.bind(UserModel)
users.create({'name': 'ada'})
```
'''
import logging
from typing import Generic, TypeVar

from crudtable.engine import Engine
from crudtable.engines import SQLEngine
from crudtable.model import Model


logger = logging.getLogger(__name__)

E = TypeVar('E', bound=Engine)
M = TypeVar('M', bound=Model)


class Database(Generic[E]):
    engine_cls: type[E] = SQLEngine

    def __init__(self, url, **engine_kwargs):
        '''
        Parameters:
            url:           database URL (or an existing SQLAlchemy Engine)
            engine_kwargs: passed to the backend, e.g. `echo` or pool settings
        '''
        self.url = url
        self.engine: E = self.engine_cls(url, **engine_kwargs)

    def connect(self):
        return self.engine.connect()

    def bind(self, model_cls: type[M], **settings) -> M:
        '''
        New instance of `model_cls` on this database. Table settings given here (alias,
        per_page, ...) apply to the returned instance only.
        '''
        return model_cls(self.engine, **settings)

    def recreate(self, metadata):
        '''
        Drop and re-create all tables in the given SQLAlchemy MetaData.
        '''
        logger.info(f'Recreating {len(metadata.tables)} tables')
        metadata.drop_all(self.engine.manager)
        metadata.create_all(self.engine.manager, checkfirst=True)

    def dispose(self):
        self.engine.dispose()
