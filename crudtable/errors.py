'''
Exception types raised by crudtable itself. Errors coming from the database driver
(`sqlalchemy.exc.*`) are never wrapped and reach the caller unchanged.
'''


class CrudTableError(Exception):
    pass


class ConfigurationError(CrudTableError, ValueError):
    '''
    Model or table descriptor is missing required settings, or was given values it can't
    operate with (e.g., a non-positive page size).
    '''


class UnsafeIdentifierError(CrudTableError, ValueError):
    '''
    Column, table or operator reference falls outside the accepted identifier grammar and
    would otherwise have to be interpolated into SQL text.
    '''


class RawExpressionError(CrudTableError, ValueError):
    '''
    Unescaped (raw SQL) assignment was requested. Arithmetic updates go through
    `Manager.apply_delta()` instead.
    '''
