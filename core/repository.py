"""Repository pattern base class and shared queries for database operations.

Provides common lookups used by the service layer. Repositories only flush;
committing is left to the surrounding `database.transaction` unit of work so
a row change and its derived updates land together.
"""

from sqlalchemy import exc as sa_exc
from sqlalchemy import func, select, update
from sqlalchemy.orm import Session
from typing import TypeVar, Generic, Type, Optional, Any, Iterable
from database.models import Base, User, UserFollow
from core.exceptions import IntegrityError, NotFoundError

T = TypeVar('T', bound=Base)


class BaseRepository(Generic[T]):
    """Generic repository for common database operations.

    Attributes:
        model: SQLAlchemy model class to operate on.
        session: Database session for executing queries.
    """

    def __init__(self, model: Type[T], session: Session, resource: Optional[str] = None):
        """Initialize repository with model and session.

        Args:
            model: SQLAlchemy model class.
            session: Database session.
            resource: Name used in not-found errors (defaults to the class name).
        """
        self.model = model
        self.session = session
        self.resource = resource or model.__name__
        self.pk = model.__mapper__.primary_key[0]

    def add(self, obj: T) -> T:
        """Add an object to the session and flush it.

        Args:
            obj: Model instance to persist.

        Returns:
            The flushed object.

        Raises:
            IntegrityError: If the row collides with an existing key, e.g. an
                id taken by a concurrent insert.
        """
        self.session.add(obj)
        try:
            self.session.flush()
        except sa_exc.IntegrityError as exc:
            table = self.model.__tablename__
            raise IntegrityError(f"{self.resource} conflicts with an existing row", table=table) from exc
        return obj

    def get_by_id(self, id: Any, for_update: bool = False) -> Optional[T]:
        """Retrieve an object by its primary key.

        Args:
            id: Primary key value.
            for_update: Lock the row for the rest of the transaction.

        Returns:
            Model instance or None if not found.
        """
        if not for_update:
            return self.session.get(self.model, id)
        stmt = (
            select(self.model)
            .where(self.pk == id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        return self.session.scalars(stmt).first()

    def require(self, id: Any, for_update: bool = False) -> T:
        """Like `get_by_id` but raise `NotFoundError` when missing."""
        obj = self.get_by_id(id, for_update=for_update)
        if obj is None:
            raise NotFoundError(self.resource, id)
        return obj

    def next_id(self) -> int:
        """Return max(primary key) + 1, or 1 for an empty table."""
        return int(self.session.scalar(select(func.coalesce(func.max(self.pk), 0))) or 0) + 1

    def delete(self, obj: T) -> None:
        """Delete an object and flush.

        Args:
            obj: Model instance to delete.
        """
        self.session.delete(obj)
        self.session.flush()


def refresh_follow_counts(session: Session, user_ids: Optional[Iterable[int]] = None) -> None:
    """Recompute the derived `followers`/`following` columns from `user_follows`.

    Args:
        session: Database session.
        user_ids: Limit the refresh to these users; all users when None.
    """
    followers = (
        select(func.count())
        .select_from(UserFollow)
        .where(UserFollow.following_id == User.author_id)
        .scalar_subquery()
    )
    following = (
        select(func.count())
        .select_from(UserFollow)
        .where(UserFollow.follower_id == User.author_id)
        .scalar_subquery()
    )
    stmt = update(User).values(followers=followers, following=following)
    if user_ids is not None:
        stmt = stmt.where(User.author_id.in_(list(user_ids)))
    session.execute(stmt.execution_options(synchronize_session=False))
