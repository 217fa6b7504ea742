"""
Database abstraction for Postgres and an in-memory test implementation.
"""

from __future__ import annotations

import itertools
import logging
import threading
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Dict, Iterator, Optional, Protocol

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Text,
    create_engine,
    select,
)
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

from taskboard.errors import ConflictError, StoreUnavailableError

logger = logging.getLogger(__name__)


class DbClient(Protocol):
    """Interface for database access."""

    def create_user(
        self, email: str, password_hash: str, firstname: str, lastname: str
    ) -> "UserRecord":
        ...

    def get_user(self, user_id: int) -> Optional["UserRecord"]:
        ...

    def get_user_by_email(self, email: str) -> Optional["UserRecord"]:
        ...

    def create_task(
        self,
        user_id: int,
        *,
        task: str,
        type: str,
        timeofentry: datetime,
        remindertime: datetime,
        completestatus: bool = False,
        currentstatus: bool = False,
    ) -> "TaskRecord":
        ...

    def list_tasks(
        self, user_id: int, *, completestatus: bool, currentstatus: bool
    ) -> list["TaskRecord"]:
        ...

    def list_tasks_reminding_before(
        self, user_id: int, cutoff: datetime, limit: int
    ) -> list["TaskRecord"]:
        ...

    def update_task_status(
        self, user_id: int, task_id: int, *, completestatus: bool, currentstatus: bool
    ) -> Optional["TaskRecord"]:
        ...

    def update_task_content(
        self, user_id: int, task_id: int, *, task: str, type: str
    ) -> Optional["TaskRecord"]:
        ...

    def add_carousel_image(self, imgurl: str, maker: str) -> "CarouselImageRecord":
        ...

    def list_carousel_images(self) -> list["CarouselImageRecord"]:
        ...


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Return ``value`` as an aware UTC datetime; naive values are taken as UTC."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


@dataclass
class UserRecord:
    id: int
    email: str
    password_hash: str
    firstname: str
    lastname: str

    def as_dict(self) -> dict:
        """Public view of the user; the password hash is never included."""
        return {
            "id": self.id,
            "email": self.email,
            "firstname": self.firstname,
            "lastname": self.lastname,
        }


@dataclass
class TaskRecord:
    id: int
    user_id: int
    task: str
    type: str
    timeofentry: datetime
    remindertime: datetime
    completestatus: bool = False
    currentstatus: bool = False

    def as_dict(self) -> dict:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "task": self.task,
            "type": self.type,
            "timeofentry": self.timeofentry,
            "remindertime": self.remindertime,
            "completestatus": self.completestatus,
            "currentstatus": self.currentstatus,
        }


@dataclass
class CarouselImageRecord:
    id: int
    imgurl: str
    maker: str

    def as_dict(self) -> dict:
        return {"id": self.id, "imgurl": self.imgurl, "maker": self.maker}


def _newest_first(tasks: list[TaskRecord]) -> list[TaskRecord]:
    return sorted(tasks, key=lambda t: (t.timeofentry, t.id), reverse=True)


class InMemoryDbClient:
    """Simple in-memory database for development and tests."""

    def __init__(self):
        self.users: Dict[int, UserRecord] = {}
        self.tasks: Dict[int, TaskRecord] = {}
        self.carousel_images: Dict[int, CarouselImageRecord] = {}
        self._ids = itertools.count(1)
        self._lock = threading.Lock()

    def reset(self) -> None:
        """Clear all stored data (useful in tests)."""
        self.users.clear()
        self.tasks.clear()
        self.carousel_images.clear()

    def create_user(
        self, email: str, password_hash: str, firstname: str, lastname: str
    ) -> UserRecord:
        with self._lock:
            if self.get_user_by_email(email):
                raise ConflictError("Email already registered")
            record = UserRecord(
                id=next(self._ids),
                email=email,
                password_hash=password_hash,
                firstname=firstname,
                lastname=lastname,
            )
            self.users[record.id] = record
            return record

    def get_user(self, user_id: int) -> Optional[UserRecord]:
        return self.users.get(user_id)

    def get_user_by_email(self, email: str) -> Optional[UserRecord]:
        for user in self.users.values():
            if user.email == email:
                return user
        return None

    def create_task(
        self,
        user_id: int,
        *,
        task: str,
        type: str,
        timeofentry: datetime,
        remindertime: datetime,
        completestatus: bool = False,
        currentstatus: bool = False,
    ) -> TaskRecord:
        record = TaskRecord(
            id=next(self._ids),
            user_id=user_id,
            task=task,
            type=type,
            timeofentry=as_utc(timeofentry),
            remindertime=as_utc(remindertime),
            completestatus=completestatus,
            currentstatus=currentstatus,
        )
        self.tasks[record.id] = record
        return record

    def _owned(self, user_id: int, task_id: int) -> Optional[TaskRecord]:
        task = self.tasks.get(task_id)
        if task is None or task.user_id != user_id:
            return None
        return task

    def list_tasks(
        self, user_id: int, *, completestatus: bool, currentstatus: bool
    ) -> list[TaskRecord]:
        return _newest_first(
            [
                t
                for t in self.tasks.values()
                if t.user_id == user_id
                and t.completestatus == completestatus
                and t.currentstatus == currentstatus
            ]
        )

    def list_tasks_reminding_before(
        self, user_id: int, cutoff: datetime, limit: int
    ) -> list[TaskRecord]:
        cutoff = as_utc(cutoff)
        due = [
            t
            for t in self.tasks.values()
            if t.user_id == user_id and t.remindertime < cutoff
        ]
        return _newest_first(due)[:limit]

    def update_task_status(
        self, user_id: int, task_id: int, *, completestatus: bool, currentstatus: bool
    ) -> Optional[TaskRecord]:
        task = self._owned(user_id, task_id)
        if task is None:
            return None
        task.completestatus = completestatus
        task.currentstatus = currentstatus
        return task

    def update_task_content(
        self, user_id: int, task_id: int, *, task: str, type: str
    ) -> Optional[TaskRecord]:
        record = self._owned(user_id, task_id)
        if record is None:
            return None
        record.task = task
        record.type = type
        return record

    def add_carousel_image(self, imgurl: str, maker: str) -> CarouselImageRecord:
        record = CarouselImageRecord(id=next(self._ids), imgurl=imgurl, maker=maker)
        self.carousel_images[record.id] = record
        return record

    def list_carousel_images(self) -> list[CarouselImageRecord]:
        return list(self.carousel_images.values())


class PostgresDbClient:
    """
    SQLAlchemy-backed implementation. Accepts any SQLAlchemy URL (e.g., Postgres or SQLite for tests).
    """

    def __init__(
        self,
        database_url: str,
        *,
        pool_size: int = 5,
        max_overflow: int = 10,
        pool_timeout: float = 10.0,
        statement_timeout_ms: int | None = 5000,
    ):
        if not database_url:
            raise ValueError("DATABASE_URL is required for PostgresDbClient")
        engine_kwargs: dict = {"future": True, "pool_pre_ping": True}
        if database_url.startswith("sqlite"):
            # One shared connection so an in-memory database is visible to
            # every worker thread.
            engine_kwargs.update(
                connect_args={"check_same_thread": False}, poolclass=StaticPool
            )
        else:
            engine_kwargs.update(
                pool_size=pool_size,
                max_overflow=max_overflow,
                pool_timeout=pool_timeout,
                pool_recycle=1800,
            )
            if statement_timeout_ms and database_url.startswith("postgres"):
                engine_kwargs["connect_args"] = {
                    "options": f"-c statement_timeout={statement_timeout_ms}"
                }
        self.engine = create_engine(database_url, **engine_kwargs)
        self.Session = sessionmaker(
            bind=self.engine, class_=Session, expire_on_commit=False, future=True
        )
        try:
            Base.metadata.create_all(self.engine)
        except SQLAlchemyError as exc:
            self.engine.dispose()
            raise StoreUnavailableError("Database unavailable") from exc
        logger.info("Store ready dialect=%s", self.engine.dialect.name)

    @contextmanager
    def _session(self) -> Iterator[Session]:
        try:
            with self.Session() as session:
                yield session
        except IntegrityError:
            raise
        except SQLAlchemyError as exc:
            raise StoreUnavailableError("Database unavailable") from exc

    @staticmethod
    def _to_user_record(row: "UserRow") -> UserRecord:
        return UserRecord(
            id=row.id,
            email=row.email,
            password_hash=row.password,
            firstname=row.firstname,
            lastname=row.lastname,
        )

    @staticmethod
    def _to_task_record(row: "TaskRow") -> TaskRecord:
        return TaskRecord(
            id=row.id,
            user_id=row.user_id,
            task=row.task,
            type=row.type,
            timeofentry=as_utc(row.timeofentry),
            remindertime=as_utc(row.remindertime),
            completestatus=row.completestatus,
            currentstatus=row.currentstatus,
        )

    @staticmethod
    def _to_image_record(row: "CarouselImageRow") -> CarouselImageRecord:
        return CarouselImageRecord(id=row.id, imgurl=row.imgurl, maker=row.maker)

    def create_user(
        self, email: str, password_hash: str, firstname: str, lastname: str
    ) -> UserRecord:
        try:
            with self._session() as session:
                row = UserRow(
                    email=email,
                    password=password_hash,
                    firstname=firstname,
                    lastname=lastname,
                )
                session.add(row)
                session.commit()
                session.refresh(row)
                return self._to_user_record(row)
        except IntegrityError as exc:
            raise ConflictError("Email already registered") from exc

    def get_user(self, user_id: int) -> Optional[UserRecord]:
        with self._session() as session:
            row = session.get(UserRow, user_id)
            return self._to_user_record(row) if row else None

    def get_user_by_email(self, email: str) -> Optional[UserRecord]:
        with self._session() as session:
            stmt = select(UserRow).where(UserRow.email == email)
            row = session.execute(stmt).scalar_one_or_none()
            return self._to_user_record(row) if row else None

    def create_task(
        self,
        user_id: int,
        *,
        task: str,
        type: str,
        timeofentry: datetime,
        remindertime: datetime,
        completestatus: bool = False,
        currentstatus: bool = False,
    ) -> TaskRecord:
        with self._session() as session:
            row = TaskRow(
                user_id=user_id,
                task=task,
                type=type,
                timeofentry=as_utc(timeofentry),
                remindertime=as_utc(remindertime),
                completestatus=completestatus,
                currentstatus=currentstatus,
            )
            session.add(row)
            session.commit()
            session.refresh(row)
            return self._to_task_record(row)

    def list_tasks(
        self, user_id: int, *, completestatus: bool, currentstatus: bool
    ) -> list[TaskRecord]:
        with self._session() as session:
            stmt = (
                select(TaskRow)
                .where(
                    TaskRow.user_id == user_id,
                    TaskRow.completestatus == completestatus,
                    TaskRow.currentstatus == currentstatus,
                )
                .order_by(TaskRow.timeofentry.desc(), TaskRow.id.desc())
            )
            return [self._to_task_record(row) for row in session.scalars(stmt)]

    def list_tasks_reminding_before(
        self, user_id: int, cutoff: datetime, limit: int
    ) -> list[TaskRecord]:
        with self._session() as session:
            stmt = (
                select(TaskRow)
                .where(
                    TaskRow.user_id == user_id,
                    TaskRow.remindertime < as_utc(cutoff),
                )
                .order_by(TaskRow.timeofentry.desc(), TaskRow.id.desc())
                .limit(limit)
            )
            return [self._to_task_record(row) for row in session.scalars(stmt)]

    def _get_owned(self, session: Session, user_id: int, task_id: int):
        stmt = select(TaskRow).where(TaskRow.id == task_id, TaskRow.user_id == user_id)
        return session.execute(stmt).scalar_one_or_none()

    def update_task_status(
        self, user_id: int, task_id: int, *, completestatus: bool, currentstatus: bool
    ) -> Optional[TaskRecord]:
        with self._session() as session:
            row = self._get_owned(session, user_id, task_id)
            if not row:
                return None
            row.completestatus = completestatus
            row.currentstatus = currentstatus
            session.commit()
            session.refresh(row)
            return self._to_task_record(row)

    def update_task_content(
        self, user_id: int, task_id: int, *, task: str, type: str
    ) -> Optional[TaskRecord]:
        with self._session() as session:
            row = self._get_owned(session, user_id, task_id)
            if not row:
                return None
            row.task = task
            row.type = type
            session.commit()
            session.refresh(row)
            return self._to_task_record(row)

    def add_carousel_image(self, imgurl: str, maker: str) -> CarouselImageRecord:
        with self._session() as session:
            row = CarouselImageRow(imgurl=imgurl, maker=maker)
            session.add(row)
            session.commit()
            session.refresh(row)
            return self._to_image_record(row)

    def list_carousel_images(self) -> list[CarouselImageRecord]:
        with self._session() as session:
            rows = session.scalars(select(CarouselImageRow))
            return [self._to_image_record(row) for row in rows]


Base = declarative_base()


class UserRow(Base):
    __tablename__ = "logindata"

    id = Column(Integer, primary_key=True, autoincrement=True)
    email = Column(String(255), unique=True, nullable=False, index=True)
    # bcrypt hash, salt embedded
    password = Column(String(255), nullable=False)
    firstname = Column(String(255), nullable=False)
    lastname = Column(String(255), nullable=False)


class TaskRow(Base):
    __tablename__ = "post"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("logindata.id"), nullable=False, index=True)
    task = Column(Text, nullable=False)
    type = Column(String(255), nullable=False)
    timeofentry = Column(DateTime(timezone=True), nullable=False)
    remindertime = Column(DateTime(timezone=True), nullable=False)
    completestatus = Column(Boolean, nullable=False, default=False)
    currentstatus = Column(Boolean, nullable=False, default=False)


class CarouselImageRow(Base):
    __tablename__ = "carouselimages"

    id = Column(Integer, primary_key=True, autoincrement=True)
    imgurl = Column(Text, nullable=False)
    maker = Column(String(255), nullable=False)
