from crudtable.util import db
