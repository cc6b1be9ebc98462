from sqlalchemy import Column, Integer, String, Text, Boolean, Numeric, DateTime

from yogastudio.core.database import Base
from yogastudio.core.validations import utcnow


class News(Base):
    __tablename__ = "news"

    id = Column(Integer, primary_key=True)
    title = Column(String(255), nullable=False)
    content = Column(Text, nullable=False)
    is_published = Column(Boolean, nullable=False, default=True, index=True)
    published_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)


class AggregatorRecord(Base):
    """Visit sold through a third-party aggregator (ClassPass-like services)"""

    __tablename__ = "aggregators"

    id = Column(Integer, primary_key=True)
    aggregator_name = Column(String(150), nullable=False)
    client_name = Column(String(200), nullable=False)
    price = Column(Numeric(10, 2), nullable=False, default=0)
    notes = Column(Text, nullable=True)
    website_url = Column(String(512), nullable=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)


class StudioInfo(Base):
    """Key/value studio settings"""

    __tablename__ = "studio_info"

    key = Column(String(100), primary_key=True)
    value = Column(Text, nullable=True)
