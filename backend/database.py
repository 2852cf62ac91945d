"""
Database setup and models for SQLite storage
"""

import logging
from sqlalchemy import create_engine, Column, Integer, Float, String, DateTime
from sqlalchemy.orm import sessionmaker, declarative_base
from config import DATABASE_URL
from utils import now_local

logger = logging.getLogger(__name__)

# Create engine and session
engine = create_engine(DATABASE_URL, connect_args={"check_same_thread": False})
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()


class AltitudeReadingDB(Base):
    """Database model for classified altitude readings"""
    __tablename__ = "altitude_readings"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    timestamp = Column(DateTime(timezone=True), index=True)
    altitude = Column(Float)
    pressure = Column(Float)
    floor = Column(Integer)
    walking_floors = Column(Integer)
    steps = Column(Integer)
    transport_type = Column(String)  # 'stairs', 'elevator', ...
    activity = Column(String)
    created_at = Column(DateTime(timezone=True), default=now_local)


class MonitoringSessionDB(Base):
    """Database model for monitoring sessions"""
    __tablename__ = "monitoring_sessions"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    started_at = Column(DateTime(timezone=True), index=True)
    stopped_at = Column(DateTime(timezone=True), nullable=True)


def init_db(bind=engine):
    """Initialize the database - create all tables"""
    Base.metadata.create_all(bind=bind)
    logger.info("Database initialized")


def get_db():
    """Get database session"""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


if __name__ == "__main__":
    # Run this file directly to initialize the database
    logging.basicConfig(level=logging.INFO)
    init_db()
