from typing import List, Optional
from contextlib import asynccontextmanager

from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy import select, delete

from tracker.config import Config
from tracker.data_models.roster import StudentRecord
from tracker.database.models import Base, Student
from tracker.utils.exceptions import DuplicateRegistrationError, StorageError
from tracker.utils.logger import setup_logger

class Database:
    def __init__(self, database_url: Optional[str] = None):
        self.logger = setup_logger(__name__)
        self.database_url = database_url or Config.DATABASE_URL
        self.engine = None
        self.session_factory = None

    async def initialize(self):
        """Initialize the database connection and create tables"""
        self.logger.info("Initializing database...")

        # Convert sqlite URL to async if needed
        database_url = self.database_url
        if database_url.startswith('sqlite:///'):
            database_url = database_url.replace('sqlite:///', 'sqlite+aiosqlite:///')

        self.engine = create_async_engine(
            database_url,
            echo=Config.DEBUG,
        )

        self.session_factory = async_sessionmaker(
            self.engine,
            class_=AsyncSession,
            expire_on_commit=False
        )

        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

        self.logger.info("Database initialized successfully")

    @asynccontextmanager
    async def get_session(self):
        """Get a database session"""
        async with self.session_factory() as session:
            try:
                yield session
            except Exception:
                await session.rollback()
                raise
            finally:
                await session.close()

    @asynccontextmanager
    async def transaction(self):
        """
        Create a transaction boundary for atomic operations.

        All operations within the context are committed together on success,
        or rolled back together on failure. Exceptions must be allowed to
        propagate out of the context for rollback to occur.
        """
        async with self.session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise
            finally:
                await session.close()

    async def close(self):
        """Close the database connection"""
        if self.engine:
            await self.engine.dispose()

    # Roster operations

    async def list_students(self) -> List[StudentRecord]:
        """All registered students ordered by name."""
        try:
            async with self.get_session() as session:
                result = await session.execute(
                    select(Student).order_by(Student.name, Student.id)
                )
                return [student.to_record() for student in result.scalars().all()]
        except SQLAlchemyError as e:
            self.logger.error(f"Error fetching students: {e}", exc_info=True)
            raise StorageError("list_students", str(e))

    async def create_student(
        self,
        name: str,
        roll_number: str,
        branch: str,
        section: str,
        leetcode_username: str,
        discord_id: Optional[int] = None
    ) -> StudentRecord:
        """
        Register a student.

        Raises:
            DuplicateRegistrationError: roll number already registered
            StorageError: any other database failure
        """
        student = Student(
            name=name,
            roll_number=roll_number,
            branch=branch,
            section=section,
            leetcode_username=leetcode_username,
            discord_id=discord_id
        )
        try:
            async with self.transaction() as session:
                session.add(student)
                await session.flush()
                await session.refresh(student)
                record = student.to_record()
        except IntegrityError:
            self.logger.info(f"Duplicate registration attempt for roll number {roll_number}")
            raise DuplicateRegistrationError(roll_number)
        except SQLAlchemyError as e:
            self.logger.error(f"Error registering student {roll_number}: {e}", exc_info=True)
            raise StorageError("create_student", str(e))

        self.logger.info(f"Registered student {record.roll_number} ({record.name}) with handle '{record.leetcode_username}'")
        return record

    async def remove_student(self, roll_number: str) -> bool:
        """Delete a registration. Returns False when nothing matched."""
        try:
            async with self.transaction() as session:
                result = await session.execute(
                    delete(Student).where(Student.roll_number == roll_number)
                )
                removed = result.rowcount > 0
        except SQLAlchemyError as e:
            self.logger.error(f"Error removing student {roll_number}: {e}", exc_info=True)
            raise StorageError("remove_student", str(e))

        if removed:
            self.logger.info(f"Removed student {roll_number}")
        return removed
