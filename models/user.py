from datetime import datetime

from pydantic import BaseModel
from sqlalchemy import Column, Integer, DateTime, String

from models.base import Base


# Owner of carts and orders. Credentials and tokens live with the
# authentication layer; only the identity needed by checkout is stored here.
class User(Base):
    __tablename__ = 'users'

    id = Column(Integer, primary_key=True)
    email = Column(String(255), nullable=False, unique=True)
    name = Column(String(200), nullable=False)
    created_at = Column(DateTime, nullable=False, default=datetime.now)


class UserDTO(BaseModel):
    id: int | None = None
    email: str | None = None
    name: str | None = None
    created_at: datetime | None = None
