import datetime

import pytest

from app import create_app
from store import MemoryPostStore, StoreError


FIXED_NOW = datetime.datetime(2024, 5, 3, 14, 5, 7)


class FailingStore:
    '''Every operation fails the way a dropped database connection would.'''

    def _fail(self, *args, **kwargs):
        raise StoreError('connection refused')

    insert = count = select_page = select_by_id = _fail


@pytest.fixture
def memory_store():
    return MemoryPostStore(clock=lambda: FIXED_NOW)


@pytest.fixture(params=['memory', 'sql'])
def board_app(request, memory_store):
    '''The same application over both store implementations.'''
    if request.param == 'memory':
        app = create_app({'TESTING': True}, store=memory_store)
    else:
        app = create_app({'TESTING': True, 'SQLALCHEMY_DATABASE_URI': 'sqlite://'})
    yield app
    if request.param == 'sql':
        from models import db
        with app.app_context():
            db.drop_all()


@pytest.fixture
def store(board_app):
    return board_app.extensions['post_store']


@pytest.fixture
def client(board_app):
    return board_app.test_client()


@pytest.fixture
def seed(board_app, store):
    '''Insert ``count`` posts titled ``Post 1`` .. ``Post N``; returns their ids.'''
    def _seed(count, content='body'):
        with board_app.app_context():
            return [store.insert(f'Post {i}', content) for i in range(1, count + 1)]
    return _seed


@pytest.fixture
def failing_client():
    app = create_app({'TESTING': True}, store=FailingStore())
    return app.test_client()
