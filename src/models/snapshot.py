"""Snapshot table - key-value persistence for the store document."""

from sqlalchemy import Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base, TimestampMixin


class StoreSnapshot(Base, TimestampMixin):
    """
    Одна строка = один документ стора под своим ключом.

    Ядро не знает о таблице: для него это непрозрачная граница load/save,
    как localStorage в браузере. ``id`` - ключ хранилища (например "todo-storage").
    """

    __tablename__ = "store_snapshots"

    id: Mapped[str] = mapped_column(String(100), primary_key=True)
    payload: Mapped[str] = mapped_column(Text, nullable=False)  # JSON документ
    revision: Mapped[int] = mapped_column(Integer, default=1, nullable=False)

    def __repr__(self) -> str:
        return f"<StoreSnapshot(id='{self.id}', revision={self.revision})>"
