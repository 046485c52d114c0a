from fastapi_users_db_sqlalchemy import SQLAlchemyBaseUserTableUUID

from blogspace.database import Base


class User(SQLAlchemyBaseUserTableUUID, Base):
    __tablename__ = "users"
