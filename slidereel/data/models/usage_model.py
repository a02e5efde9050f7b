from sqlalchemy import Column, Date, Integer, String, UniqueConstraint

from slidereel.data.models.base import Base


class UsageCounterModel(Base):
    __tablename__ = "usage_counters"
    __table_args__ = (
        UniqueConstraint("user_id", "metric", "period_start", name="uq_usage_period"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(String(36), nullable=False, index=True)
    metric = Column(String(50), nullable=False)
    period_start = Column(Date, nullable=False)
    count = Column(Integer, nullable=False, default=0)
