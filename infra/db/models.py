from sqlalchemy import Column, String, Float, Text, DateTime, ForeignKey
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from infra.db.session import Base

class FileRecord(Base):
    __tablename__ = "files"
    id = Column(String, primary_key=True)
    type = Column(String, nullable=False)   # 'cv' | 'report'
    path = Column(String, nullable=False)
    name = Column(String, nullable=False)
    created_at = Column(DateTime, server_default=func.now())

class JobRecord(Base):
    __tablename__ = "jobs"
    id = Column(String, primary_key=True)
    status = Column(String, nullable=False, default="queued")
    job_title = Column(String, nullable=False)
    profile_file_id = Column(String, nullable=False)
    deliverable_file_id = Column(String, nullable=False)
    error_message = Column(Text, nullable=True)
    created_at = Column(DateTime, nullable=False)
    updated_at = Column(DateTime, nullable=False)
    result = relationship("JobResultRecord", back_populates="job", uselist=False,
                          cascade="all, delete-orphan")

class JobResultRecord(Base):
    __tablename__ = "job_results"
    job_id = Column(String, ForeignKey("jobs.id"), primary_key=True)
    profile_match_score = Column(Float, nullable=False)
    profile_feedback = Column(Text, nullable=False)
    deliverable_score = Column(Float, nullable=False)
    deliverable_feedback = Column(Text, nullable=False)
    summary = Column(Text, nullable=False)
    job = relationship("JobRecord", back_populates="result")
