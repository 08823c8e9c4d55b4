from sqlalchemy import Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from global84.api.database import Base


class Document(Base):
    __tablename__ = "documents"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    path: Mapped[str] = mapped_column(String(512), nullable=False, unique=True)
    collection: Mapped[str] = mapped_column(String(512), nullable=False, index=True)
    doc_id: Mapped[str] = mapped_column(String(128), nullable=False)
    data_json: Mapped[str] = mapped_column(Text, nullable=False, default="{}")
