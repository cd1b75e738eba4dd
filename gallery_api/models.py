"""
SQLAlchemy models for the gallery.
All database models inherit from Base (declarative base).
"""
from sqlalchemy import (
    Boolean,
    Column,
    Date,
    DateTime,
    ForeignKey,
    Integer,
    Numeric,
    String,
    Text,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from gallery_api.database import Base


class Painting(Base):
    """
    Painting shown in the public catalog.

    ``order`` is the display rank: higher values are listed first.
    """
    __tablename__ = "paintings"

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String(255), nullable=False)
    medium = Column(String(255), nullable=False, default="")
    year = Column(String(16), nullable=False, default="", index=True)
    image_url = Column(String(1024), nullable=True)
    description = Column(Text, nullable=True)
    price = Column(Numeric(12, 2, asdecimal=False), nullable=True)
    is_available = Column(Boolean, nullable=False, default=True, index=True)
    featured = Column(Boolean, nullable=False, default=False, index=True)
    order = Column(Integer, nullable=False, default=0, index=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    category_links = relationship(
        "PaintingCategory",
        back_populates="painting",
        cascade="all, delete-orphan",
        order_by="PaintingCategory.name",
        lazy="selectin",
    )

    @property
    def categories(self) -> list[str]:
        return [link.name for link in self.category_links]

    def set_categories(self, names) -> None:
        """Replace the category set, keeping links that are still wanted."""
        wanted = list(dict.fromkeys(n.strip() for n in names if n and n.strip()))
        keep = [link for link in self.category_links if link.name in wanted]
        present = {link.name for link in keep}
        keep.extend(PaintingCategory(name=n) for n in wanted if n not in present)
        self.category_links = keep

    def __repr__(self) -> str:
        return f"<Painting(id={self.id}, title={self.title!r}, order={self.order})>"


class PaintingCategory(Base):
    """Category membership of a painting (one row per painting/category pair)."""
    __tablename__ = "painting_categories"

    painting_id = Column(
        Integer,
        ForeignKey("paintings.id", ondelete="CASCADE"),
        primary_key=True,
    )
    name = Column(String(100), primary_key=True, index=True)

    painting = relationship("Painting", back_populates="category_links")


class Exhibition(Base):
    """Exhibition record; exclusively owns its photos."""
    __tablename__ = "exhibitions"

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    date = Column(Date, nullable=False)
    location = Column(String(255), nullable=True)
    order = Column(Integer, nullable=False, default=0, index=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    photos = relationship(
        "ExhibitionPhoto",
        back_populates="exhibition",
        cascade="all, delete-orphan",
        order_by=lambda: [ExhibitionPhoto.order.desc(), ExhibitionPhoto.id],
        lazy="selectin",
    )

    def __repr__(self) -> str:
        return f"<Exhibition(id={self.id}, title={self.title!r}, order={self.order})>"


class ExhibitionPhoto(Base):
    """Photo belonging to exactly one exhibition, ranked within it."""
    __tablename__ = "exhibition_photos"

    id = Column(Integer, primary_key=True, index=True)
    exhibition_id = Column(
        Integer,
        ForeignKey("exhibitions.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    image_url = Column(String(1024), nullable=False)
    title = Column(String(255), nullable=True)
    order = Column(Integer, nullable=False, default=0, index=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    exhibition = relationship("Exhibition", back_populates="photos")
