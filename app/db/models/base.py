from __future__ import annotations

from sqlalchemy import event
from sqlalchemy.orm import DeclarativeBase, Session


class Base(DeclarativeBase):
    pass


class AppendOnlyMixin:
    """Rows are immutable once flushed."""


@event.listens_for(Session, "before_flush")
def _reject_append_only_mutations(session: Session, flush_context, instances) -> None:  # noqa: ARG001
    for instance in session.deleted:
        if isinstance(instance, AppendOnlyMixin):
            raise ValueError(f"{type(instance).__tablename__} is append-only")
    for instance in session.dirty:
        if isinstance(instance, AppendOnlyMixin) and session.is_modified(
            instance, include_collections=False
        ):
            raise ValueError(f"{type(instance).__tablename__} is append-only")
