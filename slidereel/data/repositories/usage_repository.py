from datetime import date, datetime, timezone
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import async_sessionmaker

from slidereel.application.ports import UsageCounterPort
from slidereel.data.models import UsageCounterModel
from slidereel.infra.config.logging_config import get_logger


def current_period_start(now: Optional[datetime] = None) -> date:
    """Usage periods are calendar months (UTC)."""
    now = now or datetime.now(timezone.utc)
    return date(now.year, now.month, 1)


class UsageRepository(UsageCounterPort):
    def __init__(self, session_factory: async_sessionmaker):
        self.session_factory = session_factory
        self._log = get_logger("repo.usage")

    async def increment(self, user_id: str, metric: str, amount: int = 1) -> int:
        period_start = current_period_start()
        async with self.session_factory() as session:
            result = await session.execute(
                select(UsageCounterModel)
                .where(
                    UsageCounterModel.user_id == user_id,
                    UsageCounterModel.metric == metric,
                    UsageCounterModel.period_start == period_start,
                )
                .with_for_update()
            )
            counter = result.scalar_one_or_none()
            if counter is None:
                counter = UsageCounterModel(
                    user_id=user_id, metric=metric, period_start=period_start, count=0
                )
                session.add(counter)
            counter.count = (counter.count or 0) + amount
            total = counter.count
            await session.commit()
        self._log.info("usage.increment", user_id=user_id, metric=metric, total=total)
        return total
