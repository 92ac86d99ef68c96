from sqlalchemy import Column, DateTime, Integer, String
from sqlalchemy.orm import declarative_base

# Separate base: this view is owned by the server, metadata.create_all must never touch it
Base = declarative_base()


class SessionActivity(Base):
    __tablename__ = "pg_stat_activity"
    __table_args__ = {"schema": "pg_catalog"}

    pid = Column(Integer, primary_key=True)
    datname = Column(String)
    usename = Column(String)
    application_name = Column(String, nullable=True)
    state = Column(String, nullable=True)
    state_change = Column(DateTime(timezone=True), nullable=True)
