'''
crudtable: generic CRUD, pagination and counter updates over a single relational table.

Subclass `Model` once per table and bind it to a `Database` (or any `Engine`).
'''
from crudtable.errors    import (
    CrudTableError, ConfigurationError, UnsafeIdentifierError, RawExpressionError
)
from crudtable.table     import Table
from crudtable.query     import (
    Select, Count, Insert, InsertBatch, Update, UpdateBatch, Delete, Join, Delta
)
from crudtable.engine    import Engine
from crudtable.engines   import SQLEngine
from crudtable.accessor  import Accessor, paginate
from crudtable.manager   import Manager
from crudtable.model     import Model
from crudtable.database  import Database
