from sqlalchemy import Column, BigInteger, Integer, String, Numeric, DateTime, func
from app.db.database import Base


class Product(Base):
    __tablename__ = "products"
    # Keeps SQLite from handing out the id of a deleted row again
    __table_args__ = {"sqlite_autoincrement": True}

    # SQLite only autoincrements a column declared INTEGER, which is 64-bit there
    id = Column(BigInteger().with_variant(Integer, "sqlite"), primary_key=True, autoincrement=True)
    name = Column(String(100), nullable=False, unique=True)
    description = Column(String(1000))
    price = Column(Numeric(10, 2), nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    def __repr__(self) -> str:
        return f"<Product id={self.id} name={self.name!r} price={self.price}>"
