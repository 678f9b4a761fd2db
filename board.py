'''Board list/detail view models and the page controller that drives them.

Nothing here touches HTML. Templates receive the dataclasses built below and
print every post-derived string through Jinja autoescaping.
'''
import enum
import logging
import re
from dataclasses import dataclass, field
from typing import Any, Callable, Mapping, Optional

logger = logging.getLogger(__name__)

LOADING_MESSAGE : str = 'Loading posts...'
EMPTY_MESSAGE : str = 'There are no posts on this page.'
ERROR_MESSAGE : str = 'Something went wrong: {}'
NOT_FOUND_MESSAGE : str = 'The post you are looking for does not exist.'
INVALID_ACCESS_MESSAGE : str = 'Invalid access. (No post id was given)'
PREVIOUS_LABEL : str = 'Previous'
NEXT_LABEL : str = 'Next'

_FRAGMENT_PAGE = re.compile(r'#?\s*([+-]?\d+)')


def page_from_fragment(value:Optional[str]) -> int:
    '''``'#3'`` / ``'3'`` -> 3. Absent, non-numeric or non-positive -> 1.'''
    if not value:
        return 1
    match : Optional[re.Match] = _FRAGMENT_PAGE.match(value)
    if not match:
        return 1
    try:
        page : int = int(match.group(1))
    except ValueError:
        return 1
    return page if page >= 1 else 1


def fragment_for_page(page:int) -> str:
    return f'#{page}'


@dataclass(frozen=True)
class PageButton:
    label : str
    page : int
    disabled : bool = False
    active : bool = False


@dataclass(frozen=True)
class PostRow:
    post_id : int
    title : str
    content : str
    date : str


@dataclass(frozen=True)
class ListView:
    rows : list[PostRow] = field(default_factory=list)
    buttons : list[PageButton] = field(default_factory=list)
    message : Optional[str] = None
    failed : bool = False


@dataclass(frozen=True)
class DetailView:
    post_id : int
    title : str
    content : str
    date : str


@dataclass(frozen=True)
class MessageView:
    heading : str
    message : str
    back_link : bool = True


def pagination_buttons(total_pages:int, current_page:int) -> list[PageButton]:
    if total_pages <= 1:
        return []
    buttons : list[PageButton] = [
        PageButton(PREVIOUS_LABEL, current_page - 1, disabled=current_page == 1),
    ]
    for number in range(1, total_pages + 1):
        is_current : bool = number == current_page
        buttons.append(PageButton(str(number), number, disabled=is_current, active=is_current))
    buttons.append(PageButton(NEXT_LABEL, current_page + 1, disabled=current_page == total_pages))
    return buttons


def build_list_view(payload:Mapping[str, Any]) -> ListView:
    posts = payload['posts']
    buttons : list[PageButton] = pagination_buttons(int(payload['totalPages']), int(payload['currentPage']))
    if not posts:
        return ListView(buttons=buttons, message=EMPTY_MESSAGE)
    rows : list[PostRow] = [
        PostRow(post_id=post['id'], title=post['title'], content=post['content'], date=post['date'])
        for post in posts
    ]
    return ListView(rows=rows, buttons=buttons)


def build_detail_view(payload:Mapping[str, Any]) -> DetailView:
    return DetailView(post_id=payload['id'], title=payload['title'], content=payload['content'], date=payload['date'])


def not_found_view() -> MessageView:
    return MessageView('Post not found', NOT_FOUND_MESSAGE)


def invalid_access_view() -> MessageView:
    return MessageView('Error', INVALID_ACCESS_MESSAGE)


class BoardState(enum.Enum):
    IDLE = 'idle'
    LOADING = 'loading'
    RENDERED = 'rendered'
    FAILED = 'failed'


class BoardView:
    '''Owns the displayed page and its address fragment.

    ``fetch(page)`` returns a list payload ``{posts, totalPages, currentPage}``
    or raises. ``on_render(view)`` is called with every view the board shows,
    the loading placeholder included.
    '''

    def __init__(self, fetch:Callable[[int], Mapping[str, Any]], on_render:Optional[Callable[[ListView], None]]=None) -> None:
        self.fetch = fetch
        self.on_render = on_render
        self.state : BoardState = BoardState.IDLE
        self.current_page : Optional[int] = None
        self.fragment : str = ''
        self.view : ListView = ListView()

    def _show(self, view:ListView) -> ListView:
        self.view = view
        if self.on_render is not None:
            self.on_render(view)
        return view

    def load(self, fragment:Optional[str]=None) -> ListView:
        return self.request_page(page_from_fragment(fragment))

    def request_page(self, page:int) -> ListView:
        self.state = BoardState.LOADING
        self._show(ListView(message=LOADING_MESSAGE))
        try:
            view : ListView = build_list_view(self.fetch(page))
        except Exception as e:
            logger.exception('Failed to load page %s', page)
            self.state = BoardState.FAILED
            return self._show(ListView(message=ERROR_MESSAGE.format(e), failed=True))
        self.state = BoardState.RENDERED
        self.current_page = page
        self.fragment = fragment_for_page(page)
        return self._show(view)

    def handle_click(self, attributes:Mapping[str, Any]) -> Optional[ListView]:
        '''Delegated click on the control strip; clicks without ``data-page`` are ignored.'''
        value = attributes.get('data-page')
        if value is None or value == '':
            return None
        try:
            page : int = int(value)
        except (TypeError, ValueError):
            return None
        return self.request_page(page)
