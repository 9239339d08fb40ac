from sqlalchemy import (
    Column, Integer, String, DateTime, Text, BigInteger
)
from sqlalchemy.orm import declarative_base
from sqlalchemy.sql import func

from tracker.data_models.roster import StudentRecord

Base = declarative_base()

class Student(Base):
    __tablename__ = 'students'

    id = Column(Integer, primary_key=True)
    name = Column(String(100), nullable=False, index=True)
    roll_number = Column(String(20), nullable=False, unique=True)
    branch = Column(String(20), nullable=False)
    section = Column(String(10), nullable=False)
    leetcode_username = Column(String(50), nullable=False, default='')

    # Discord user who submitted the registration
    discord_id = Column(BigInteger, nullable=True, index=True)

    registered_at = Column(DateTime, default=func.now())

    def to_record(self) -> StudentRecord:
        return StudentRecord(
            id=self.id,
            name=self.name,
            roll_number=self.roll_number,
            branch=self.branch,
            section=self.section,
            leetcode_username=self.leetcode_username or '',
            discord_id=self.discord_id,
            registered_at=self.registered_at,
        )

    def __repr__(self):
        return f"<Student(roll_number='{self.roll_number}', name='{self.name}', handle='{self.leetcode_username}')>"

class Configuration(Base):
    __tablename__ = 'configurations'

    key = Column(String(100), primary_key=True)
    value = Column(Text, nullable=False)  # JSON-encoded
    updated_at = Column(DateTime, default=func.now(), onupdate=func.now())

    def __repr__(self):
        return f"<Configuration(key='{self.key}')>"

class AuditLog(Base):
    __tablename__ = 'audit_logs'

    id = Column(Integer, primary_key=True)
    user_id = Column(BigInteger, nullable=False)
    action = Column(String(50), nullable=False)
    details = Column(Text)  # JSON-encoded
    created_at = Column(DateTime, default=func.now())

    def __repr__(self):
        return f"<AuditLog(action='{self.action}', user_id={self.user_id})>"
