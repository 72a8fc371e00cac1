"""Import history — tracks uploaded renewal spreadsheets."""

from sqlalchemy import Column, Integer, String, DateTime
from sqlalchemy.sql import func

from app.infrastructure.database import Base


class ImportRun(Base):
    __tablename__ = "import_runs"

    id = Column(Integer, primary_key=True, autoincrement=True)
    filename = Column(String(500), nullable=False)
    original_name = Column(String(500), nullable=False)
    status = Column(String(50), default="processing")  # processing, completed, failed
    sheet_name = Column(String(200), nullable=True)
    header_row = Column(Integer, nullable=True)
    rows_read = Column(Integer, default=0)
    rows_invalid = Column(Integer, default=0)
    duplicates_skipped = Column(Integer, default=0)
    clients_created = Column(Integer, default=0)
    policies_created = Column(Integer, default=0)
    error_message = Column(String(1000), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    def __repr__(self):
        return f"<ImportRun {self.original_name} - {self.status}>"
