'''Data-access handles for posts.

Request handlers never touch the database directly. They receive a store
exposing four operations: ``insert``, ``count``, ``select_page`` and
``select_by_id``. ``SQLPostStore`` backs them with Flask-SQLAlchemy,
``MemoryPostStore`` with a plain list.
'''
import datetime
import threading
from dataclasses import dataclass
from typing import Callable, Optional

from flask_sqlalchemy import SQLAlchemy
from sqlalchemy.exc import SQLAlchemyError

from models import Post


class StoreError(Exception):
    '''Raised when the underlying data store fails.'''


@dataclass(frozen=True)
class PostRecord:
    id : int
    title : str
    content : str
    created_at : datetime.datetime


class SQLPostStore:

    def __init__(self, db:SQLAlchemy) -> None:
        self.db : SQLAlchemy = db

    @staticmethod
    def _record(post:Post) -> PostRecord:
        return PostRecord(id=post.id, title=post.title, content=post.content, created_at=post.created_at)

    def insert(self, title:str, content:str) -> int:
        try:
            post : Post = Post(title=title, content=content)
            self.db.session.add(post)
            self.db.session.commit()
            return post.id
        except SQLAlchemyError as e:
            self.db.session.rollback()
            raise StoreError('insert failed') from e

    def count(self) -> int:
        try:
            return self.db.session.query(Post).count()
        except SQLAlchemyError as e:
            self.db.session.rollback()
            raise StoreError('count failed') from e

    def select_page(self, limit:int, offset:int) -> list[PostRecord]:
        # limit/offset go through the query builder as bound parameters
        try:
            rows : list[Post] = (
                self.db.session.query(Post)
                .order_by(Post.id.desc())
                .limit(limit)
                .offset(offset)
                .all()
            )
        except SQLAlchemyError as e:
            self.db.session.rollback()
            raise StoreError('page select failed') from e
        return [self._record(row) for row in rows]

    def select_by_id(self, post_id:int) -> Optional[PostRecord]:
        try:
            post : Optional[Post] = self.db.session.get(Post, post_id)
        except SQLAlchemyError as e:
            self.db.session.rollback()
            raise StoreError('select by id failed') from e
        if post is None:
            return None
        return self._record(post)


class MemoryPostStore:
    '''List-backed store; ids are assigned in insertion order starting at 1.'''

    def __init__(self, clock:Callable[[], datetime.datetime]=datetime.datetime.now) -> None:
        self._rows : list[PostRecord] = []
        self._lock : threading.Lock = threading.Lock()
        self._clock = clock

    def insert(self, title:str, content:str) -> int:
        with self._lock:
            post_id : int = len(self._rows) + 1
            self._rows.append(PostRecord(id=post_id, title=title, content=content, created_at=self._clock()))
            return post_id

    def count(self) -> int:
        return len(self._rows)

    def select_page(self, limit:int, offset:int) -> list[PostRecord]:
        newest_first : list[PostRecord] = sorted(self._rows, key=lambda row: row.id, reverse=True)
        return newest_first[offset:offset + limit]

    def select_by_id(self, post_id:int) -> Optional[PostRecord]:
        for row in self._rows:
            if row.id == post_id:
                return row
        return None
