'''
Engine

Query execution backend. An Engine owns whatever connection manager its storage
protocol needs (created lazily, on first use) and executes the immutable query
specifications in `crudtable.query`, one statement per `execute()` call.

Subclasses implement `_create_manager()` and `connect()`, and register a handler for
each specification type in `handlers`. Test doubles can subclass Engine directly and
override `execute()`.
'''
import logging
from contextlib import contextmanager


logger = logging.getLogger(__name__)


class Engine:
    '''
    Parameters:
        manager_args:   positional arguments passed to the manager factory
        manager_kwargs: keyword arguments passed to the manager factory
    '''
    handlers: dict[type, str] = {}

    def __init__(self, *manager_args, **manager_kwargs):
        self._manager = None

        self.manager_args   = manager_args
        self.manager_kwargs = manager_kwargs

    @property
    def manager(self):
        '''
        Connection manager (e.g., an SQLAlchemy Engine), created on first access.
        '''
        if self._manager is None:
            self._manager = self._create_manager()
        return self._manager

    def _create_manager(self):
        raise NotImplementedError

    @contextmanager
    def connect(self):
        '''
        Open a connection to the backing store for the duration of a with-block.
        '''
        raise NotImplementedError

    def execute(self, query):
        '''
        Run a single query specification and return its result (see the module docs of
        `crudtable.query` for the result type of each spec).
        '''
        handler_name = self.handlers.get(type(query))
        if handler_name is None:
            raise TypeError(
                f'{type(self).__name__} cannot execute {type(query).__name__} queries'
            )

        logger.debug(f'Executing {type(query).__name__} on table "{query.table}"')
        return getattr(self, handler_name)(query)

    def dispose(self):
        self._manager = None
