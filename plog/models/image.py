from sqlalchemy import Column, String
from plog.db.base import BaseModel

class Image(BaseModel):
    __tablename__ = "images"

    original_name = Column(String(255), nullable=False)
    access_url = Column(String(500), nullable=False)
