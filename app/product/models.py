# app/product/models.py
from sqlalchemy import Column, DateTime, ForeignKey, Integer, String
from sqlalchemy.orm import relationship
from app.core.database import Base


class Product(Base):
    __tablename__ = "products"

    product_id = Column(String(20), primary_key=True, index=True)
    product_name = Column(String(60), nullable=False)
    product_description = Column(String(400))
    user_id = Column(String(36), ForeignKey("users.id"))
    release_date = Column(DateTime)
    update_user_id = Column(String(36), ForeignKey("users.id"))
    update_date = Column(DateTime)
    display = Column(Integer, nullable=False, default=1)
    deleted = Column(Integer, nullable=False, default=0)

    code = relationship("ProductCode", back_populates="product", uselist=False)
    tickets = relationship("Ticket", back_populates="product")


class ProductCode(Base):
    __tablename__ = "product_codes"

    product_id = Column(String(20), ForeignKey("products.product_id"), primary_key=True)
    code = Column(String(20), unique=True, nullable=False)
    # next ticket sequence number for this product; only ever incremented
    count = Column(Integer, nullable=False, default=1)

    product = relationship("Product", back_populates="code")
