"""Recurrence configuration (tagged union on ``type``)."""

from typing import Annotated, Literal

from pydantic import Field, PositiveInt

from .base import DomainModel


class DailyRepeat(DomainModel):
    """Повтор каждые ``interval`` дней."""

    type: Literal["daily"] = "daily"
    interval: PositiveInt = 1


class MonthlyRepeat(DomainModel):
    """
    Повтор раз в месяц.

    День месяца не хранится: он берётся из поля ``date`` самой задачи.
    ``interval`` всегда 1 (так его пишет формат резервной копии).
    """

    type: Literal["monthly"] = "monthly"
    interval: int = 1


# None-вариант = отсутствие поля repeat у задачи
RepeatConfig = Annotated[DailyRepeat | MonthlyRepeat, Field(discriminator="type")]
