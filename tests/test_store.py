import pytest

from app import check_database, create_app
from models import db
from store import MemoryPostStore, PostRecord, SQLPostStore, StoreError


@pytest.fixture
def sql_app():
    app = create_app({'TESTING': True, 'SQLALCHEMY_DATABASE_URI': 'sqlite://'})
    with app.app_context():
        yield app
        db.drop_all()


def test_sql_store_window(sql_app):
    store = sql_app.extensions['post_store']
    assert isinstance(store, SQLPostStore)
    ids = [store.insert(f'P{i}', 'c') for i in range(5)]
    assert ids == sorted(ids)
    assert store.count() == 5
    assert [row.id for row in store.select_page(2, 0)] == [ids[4], ids[3]]
    assert [row.id for row in store.select_page(2, 4)] == [ids[0]]
    assert store.select_page(2, 10) == []


def test_sql_store_select_by_id(sql_app):
    store = sql_app.extensions['post_store']
    post_id = store.insert('Title', 'Content')
    row = store.select_by_id(post_id)
    assert isinstance(row, PostRecord)
    assert (row.title, row.content) == ('Title', 'Content')
    assert row.created_at is not None
    assert store.select_by_id(post_id + 100) is None


def test_sql_store_wraps_errors(sql_app):
    store = sql_app.extensions['post_store']
    db.drop_all()
    with pytest.raises(StoreError) as excinfo:
        store.count()
    assert excinfo.value.__cause__ is not None
    with pytest.raises(StoreError):
        store.insert('T', 'C')
    db.create_all()


def test_check_database(sql_app):
    assert check_database(sql_app)


def test_memory_store_assigns_sequential_ids():
    store = MemoryPostStore()
    assert [store.insert('a', 'b') for _ in range(3)] == [1, 2, 3]
    assert [row.id for row in store.select_page(20, 0)] == [3, 2, 1]
    assert store.select_by_id(4) is None


def test_unreachable_database_does_not_crash_startup(tmp_path, caplog):
    uri = f"sqlite:///{tmp_path / 'missing' / 'dir' / 'board.db'}"
    app = create_app({'TESTING': True, 'SQLALCHEMY_DATABASE_URI': uri})
    assert 'Could not create the posts table' in caplog.text
    assert not check_database(app)
    assert 'Database connection failed' in caplog.text

    response = app.test_client().get('/api/posts')
    assert response.status_code == 500
    assert 'error' in response.get_json()
