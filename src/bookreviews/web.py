"""Flask web API for the book catalogue and reviews."""

from functools import wraps
from typing import Callable, Optional

import structlog
from flask import Flask, g, jsonify, request
from werkzeug.exceptions import HTTPException

from .auth import IdentityService
from .catalog import CatalogManager
from .catalog.manager import DEFAULT_BOOK_PAGE_SIZE
from .config import Config, get_config
from .db.schemas import BookResponse, UserResponse
from .db.sqlite import Database
from .errors import BookReviewsError, ValidationError
from .pagination import parse_page
from .reviews.manager import DEFAULT_REVIEW_PAGE_SIZE
from .reviews.schemas import ReviewResponse

logger = structlog.get_logger(__name__)


def _json_body() -> dict:
    """Parse the request body as a JSON object."""
    data = request.get_json(silent=True)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValidationError("Request body must be a JSON object")
    return data


def _bearer_token() -> Optional[str]:
    """Extract the token from an ``Authorization: Bearer`` header."""
    header = request.headers.get("Authorization", "")
    scheme, _, token = header.partition(" ")
    if scheme.lower() != "bearer":
        return None
    return token.strip() or None


def create_app(config: Optional[Config] = None, db: Optional[Database] = None) -> Flask:
    """Create and configure the Flask application.

    Args:
        config: Settings; defaults to the environment configuration
        db: Storage client; built from ``config`` and bootstrapped if omitted
    """
    config = config or get_config()
    if db is None:
        db = Database(config.db_path, timeout=config.db_timeout)
        db.create_tables()

    app = Flask(__name__)
    app.config["DEBUG"] = config.debug
    app.config["BOOKREVIEWS"] = config
    app.extensions["bookreviews.db"] = db

    identity = IdentityService(db, secret_key=config.secret_key, token_ttl=config.token_ttl)
    catalog = CatalogManager(db)
    reviews = catalog.reviews

    def login_required(view: Callable) -> Callable:
        """Reject the request with 401 unless it carries a valid token."""

        @wraps(view)
        def wrapper(*args, **kwargs):
            g.identity = identity.verify(_bearer_token())
            return view(*args, **kwargs)

        return wrapper

    def page_args(default_limit: int):
        return parse_page(
            request.args.get("page"),
            request.args.get("limit"),
            default_limit=default_limit,
            max_limit=config.max_page_size,
        )

    # ------------------------------------------------------------------------
    # Error handlers
    # ------------------------------------------------------------------------

    @app.errorhandler(BookReviewsError)
    def handle_domain_error(exc: BookReviewsError):
        if exc.status_code >= 500:
            logger.error("Request failed", path=request.path, error=type(exc).__name__)
        return jsonify({"message": exc.message}), exc.status_code

    @app.errorhandler(HTTPException)
    def handle_http_error(exc: HTTPException):
        return jsonify({"message": exc.description}), exc.code

    @app.errorhandler(Exception)
    def handle_unexpected(exc: Exception):
        logger.error("Unhandled exception", path=request.path, exc_info=exc)
        return jsonify({"message": "Internal Server Error"}), 500

    # ------------------------------------------------------------------------
    # Auth
    # ------------------------------------------------------------------------

    @app.route("/auth/signup", methods=["POST"])
    def signup():
        """Create an account."""
        data = _json_body()
        user = identity.signup(data.get("username"), data.get("password"))
        return jsonify(UserResponse.model_validate(user).model_dump()), 201

    @app.route("/auth/login", methods=["POST"])
    def login():
        """Exchange credentials for a bearer token."""
        data = _json_body()
        token = identity.login(data.get("username"), data.get("password"))
        return jsonify({"token": token})

    # ------------------------------------------------------------------------
    # Books
    # ------------------------------------------------------------------------

    def create_book():
        """Add a book to the catalogue."""
        data = _json_body()
        book = catalog.create_book(data.get("title"), data.get("author"), data.get("genre"))
        return (
            jsonify({"id": book.id, "title": book.title, "author": book.author, "genre": book.genre}),
            201,
        )

    if config.books_require_auth:
        create_book = login_required(create_book)
    app.add_url_rule("/books", "create_book", create_book, methods=["POST"])

    @app.route("/books", methods=["GET"])
    def list_books():
        """List books with optional author/genre filters."""
        page = page_args(DEFAULT_BOOK_PAGE_SIZE)
        books = catalog.list_books(
            limit=page.limit,
            offset=page.offset,
            author=request.args.get("author"),
            genre=request.args.get("genre"),
        )
        return jsonify([BookResponse.model_validate(b).model_dump() for b in books])

    @app.route("/books/search", methods=["GET"])
    def search_books():
        """Search books by title or author."""
        books = catalog.search_books(request.args.get("q"))
        return jsonify([BookResponse.model_validate(b).model_dump() for b in books])

    @app.route("/books/<int:book_id>", methods=["GET"])
    def get_book(book_id: int):
        """Book details with its average rating."""
        detail = catalog.get_book_detail(book_id)
        body = detail.model_dump(exclude={"average_rating", "review_count"})
        body["averageRating"] = detail.average_rating
        body["reviewCount"] = detail.review_count
        return jsonify(body)

    # ------------------------------------------------------------------------
    # Reviews
    # ------------------------------------------------------------------------

    @app.route("/books/<int:book_id>/reviews", methods=["POST"])
    @login_required
    def create_review(book_id: int):
        """Submit the caller's review of a book."""
        data = _json_body()
        review = reviews.create_review(
            book_id, g.identity.user_id, data.get("rating"), data.get("comment")
        )
        return (
            jsonify(
                {
                    "id": review.id,
                    "bookId": review.book_id,
                    "rating": review.rating,
                    "comment": review.comment,
                }
            ),
            201,
        )

    @app.route("/books/<int:book_id>/reviews", methods=["GET"])
    def list_reviews(book_id: int):
        """Paginated reviews of a book."""
        page = page_args(DEFAULT_REVIEW_PAGE_SIZE)
        items = reviews.list_reviews_for_book(book_id, limit=page.limit, offset=page.offset)
        return jsonify([item.model_dump(by_alias=True) for item in items])

    @app.route("/reviews/<int:review_id>", methods=["GET"])
    def get_review(review_id: int):
        """A single review."""
        review = reviews.get_review(review_id)
        if review is None:
            return jsonify({"message": "Review not found"}), 404
        return jsonify(ReviewResponse.model_validate(review).model_dump())

    @app.route("/reviews/<int:review_id>", methods=["PUT"])
    @login_required
    def update_review(review_id: int):
        """Update the caller's own review."""
        reviews.update_review(review_id, g.identity.user_id, _json_body())
        return jsonify({"message": "Review updated successfully"})

    @app.route("/reviews/<int:review_id>", methods=["DELETE"])
    @login_required
    def delete_review(review_id: int):
        """Delete the caller's own review."""
        reviews.delete_review(review_id, g.identity.user_id)
        return jsonify({"message": "Review deleted successfully"})

    # ------------------------------------------------------------------------
    # Health
    # ------------------------------------------------------------------------

    @app.route("/health", methods=["GET"])
    def health():
        """Storage connectivity check."""
        info = db.health_check()
        status_code = 200 if info.get("status") == "healthy" else 503
        return jsonify(info), status_code

    return app


def run_server(host: str = "127.0.0.1", port: int = 3000, debug: bool = False) -> None:
    """Run the API with Flask's built-in server."""
    config = get_config()
    db = Database(config.db_path, timeout=config.db_timeout)
    db.create_tables()
    app = create_app(config, db)

    logger.info("Server starting", host=host, port=port, db_path=config.db_path)
    try:
        app.run(host=host, port=port, debug=debug, use_reloader=False)
    finally:
        db.close()
        logger.info("Server stopped")
