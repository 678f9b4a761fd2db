import os, sys, logging
from flask import Flask, render_template, redirect, request, url_for, abort, jsonify, Response
from sqlalchemy import URL, text
from sqlalchemy.exc import SQLAlchemyError
from models import db
from store import SQLPostStore, StoreError
from pagination import parse_page, list_posts, get_post
from board import BoardView, BoardState, build_detail_view, not_found_view, invalid_access_view, fragment_for_page
from typing import Union, Optional, Any
from dotenv import load_dotenv

load_dotenv()

file_dir : str = os.path.dirname(os.path.realpath(__file__))
frozen_dir : str = os.path.dirname(sys.executable)
executable_dir : str = file_dir
if getattr(sys, 'frozen', False):
    executable_dir = frozen_dir

LOG_FORMAT : str = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


def database_uri() -> str:
    '''DATABASE_URL wins; otherwise DB_HOST/DB_USER/DB_PASSWORD/DB_DATABASE build a MySQL URL.'''
    url : Optional[str] = os.getenv('DATABASE_URL')
    if url:
        return url
    host : Optional[str] = os.getenv('DB_HOST')
    if host:
        return URL.create(
            'mysql+pymysql',
            username=os.getenv('DB_USER'),
            password=os.getenv('DB_PASSWORD'),
            host=host,
            database=os.getenv('DB_DATABASE'),
        ).render_as_string(hide_password=False)
    return 'sqlite:///data.db'


def _wants_json() -> bool:
    return request.path.startswith('/api/')


def create_app(config:Optional[dict[str, Any]]=None, store:Any=None) -> Flask:
    config = config or {}
    public_dir : str = config.get('PUBLIC_DIR') or os.getenv('PUBLIC_DIR') or os.path.join(executable_dir, 'docs')

    app : Flask = Flask(
        __name__,
        static_folder=public_dir,
        static_url_path='',
        template_folder=os.path.join(executable_dir, 'templates'),
    )
    app.config['SQLALCHEMY_DATABASE_URI'] = database_uri()
    app.config['SQLALCHEMY_TRACK_MODIFICATIONS'] = False
    app.config.update(config)
    app.json.ensure_ascii = False
    app.jinja_env.globals['fragment_for_page'] = fragment_for_page

    if store is None:
        db.init_app(app)
        with app.app_context():
            try:
                db.create_all()
            except SQLAlchemyError as e:
                app.logger.error('Could not create the posts table: %s', e)
        store = SQLPostStore(db)
    app.extensions['post_store'] = store

    @app.route('/')
    def index() -> Response:
        return redirect(url_for('static', filename='index.html'))

    @app.route('/addPost', methods=['POST'])
    def add_post() -> Union[str, Any]:
        data = request.form or request.get_json(silent=True)
        if not isinstance(data, dict):
            data = {}
        title : str = str(data.get('postTitle') or '')
        content : str = str(data.get('postContent') or '')
        if not title.strip() or not content.strip():
            return 'Both a title and content are required.', 400
        post_id : int = store.insert(title, content)
        app.logger.info('New post stored (id: %s)', post_id)
        return redirect(url_for('board'))

    @app.route('/api/posts')
    def api_posts() -> Response:
        page : int = parse_page(request.args.get('page'))
        return jsonify(list_posts(store, page))

    @app.route('/api/posts/<int:post_id>')
    def api_post(post_id:int) -> Response:
        post : Optional[dict[str, Any]] = get_post(store, post_id)
        if post is None:
            abort(404)
        return jsonify(post)

    @app.route('/board')
    def board() -> Union[str, Any]:
        board_view : BoardView = BoardView(lambda page: list_posts(store, page))
        view = board_view.load(request.args.get('page'))
        status : int = 500 if board_view.state is BoardState.FAILED else 200
        return render_template('board.html', board=board_view, view=view), status

    @app.route('/page')
    def page() -> Union[str, Any]:
        post_id : Optional[int] = request.args.get('id', type=int)
        if post_id is None:
            return render_template('message.html', view=invalid_access_view()), 400
        post : Optional[dict[str, Any]] = get_post(store, post_id)
        if post is None:
            return render_template('message.html', view=not_found_view()), 404
        return render_template('post.html', post_data=build_detail_view(post))

    @app.errorhandler(StoreError)
    def store_failed(error:StoreError) -> Union[str, Any]:
        app.logger.error('Data store failure: %s', error, exc_info=error)
        message : str = 'A server error occurred. Please check the database connection.'
        if _wants_json():
            return jsonify({'error': message}), 500
        return message, 500

    @app.errorhandler(404)
    def not_found(_error) -> Union[str, Any]:
        if _wants_json():
            return jsonify({'error': 'Post not found'}), 404
        return render_template('404.html'), 404

    return app


def check_database(app:Flask) -> bool:
    '''Probe the database once at boot; failures are logged, not raised.'''
    with app.app_context():
        try:
            db.session.execute(text('SELECT 1'))
        except SQLAlchemyError as e:
            app.logger.error('Database connection failed: %s', e)
            return False
    app.logger.info('Connected to the database.')
    return True


if __name__ == '__main__':
    logging.basicConfig(level=getattr(logging, os.getenv('LOG_LEVEL', 'INFO').upper(), logging.INFO), format=LOG_FORMAT)
    app : Flask = create_app()
    check_database(app)
    port : int = int(os.getenv('PORT', '8080'))
    app.logger.info('Bulletin board listening on %s', port)
    app.run(host='0.0.0.0', port=port)
