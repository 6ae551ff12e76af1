"""
Inventory Service — Inventory SQLAlchemy Model
================================================

What:  ORM model representing the `inventory` table.
Who:   Used by SqlInventoryRepository for CRUD operations and by Alembic.

Table Design:
    - id: Auto-incrementing integer, exposed to clients as an opaque string.
      On SQLite, AUTOINCREMENT prevents reuse of ids freed by deletes;
      PostgreSQL sequences never reuse values.
    - inventory_name: Required, non-empty (enforced by the repository).
    - description: NOT NULL, defaults to the empty string.
    - photo: Photo store key, NULL when no photo is attached. Weak reference,
      no foreign key: the blob lives on disk, not in the database.
"""

from sqlalchemy import Integer, String, Text, text
from sqlalchemy.orm import Mapped, mapped_column

from inventory_service.database import Base


class InventoryRecord(Base):
    """
    One inventory item row.

    Query Patterns:
        - List all: SELECT ... ORDER BY id  (insertion order)
        - Get one:  SELECT ... WHERE id = :id  (primary key lookup)
    """

    __tablename__ = "inventory"
    __table_args__ = {"sqlite_autoincrement": True}

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    inventory_name: Mapped[str] = mapped_column(String(255), nullable=False)

    description: Mapped[str] = mapped_column(
        Text,
        nullable=False,
        default="",
        server_default=text("''"),
    )

    photo: Mapped[str | None] = mapped_column(String(255), nullable=True, default=None)

    def __repr__(self) -> str:
        return f"<InventoryRecord(id={self.id}, inventory_name='{self.inventory_name}')>"
