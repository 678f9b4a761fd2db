'''Server-side page window for the post list.'''
import datetime
import math
import re
from typing import Any, Optional

PAGE_SIZE : int = 20
PREVIEW_LENGTH : int = 50
ELLIPSIS : str = '...'

_LEADING_INT = re.compile(r'\s*([+-]?\d+)')


def parse_page(value:Any) -> int:
    '''Parse a page number, failing open to 1 for missing or unusable values.'''
    if value is None:
        return 1
    if isinstance(value, int) and not isinstance(value, bool):
        page : int = value
    else:
        match : Optional[re.Match] = _LEADING_INT.match(str(value))
        if not match:
            return 1
        try:
            page = int(match.group(1))
        except ValueError:
            return 1
    return page if page >= 1 else 1


def count_pages(total:int, limit:int=PAGE_SIZE) -> int:
    if total <= 0:
        return 0
    return math.ceil(total / limit)


def page_offset(page:int, limit:int=PAGE_SIZE) -> int:
    return (page - 1) * limit


def truncate_preview(text:str, length:int=PREVIEW_LENGTH) -> str:
    if len(text) > length:
        return text[:length] + ELLIPSIS
    return text


def format_display_date(value:datetime.datetime) -> str:
    '''Render a timestamp the way ko-KR locales print it, e.g. ``2024. 5. 3. 오후 2:05:07``.'''
    meridiem : str = '오전' if value.hour < 12 else '오후'
    hour : int = value.hour % 12 or 12
    return f'{value.year}. {value.month}. {value.day}. {meridiem} {hour}:{value.minute:02d}:{value.second:02d}'


def serialize_post(row:Any, preview:bool=False) -> dict[str, Any]:
    return {
        'id': row.id,
        'title': row.title,
        'content': truncate_preview(row.content) if preview else row.content,
        'date': format_display_date(row.created_at),
    }


def list_posts(store:Any, page:int, limit:int=PAGE_SIZE) -> dict[str, Any]:
    '''Count, then read one window newest-first.

    The two reads are not wrapped in a transaction, so ``totalPages`` may be
    computed against a slightly older count than the window under concurrent
    inserts.
    '''
    total : int = store.count()
    offset : int = page_offset(page, limit)
    # past the last row; skip the windowed read
    rows = store.select_page(limit, offset) if offset < total else []
    return {
        'posts': [serialize_post(row, preview=True) for row in rows],
        'totalPages': count_pages(total, limit),
        'currentPage': page,
    }


def get_post(store:Any, post_id:int) -> Optional[dict[str, Any]]:
    row = store.select_by_id(post_id)
    if row is None:
        return None
    return serialize_post(row)
