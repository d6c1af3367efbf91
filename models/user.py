from models.base_model import Base, BaseModel
from sqlalchemy import BigInteger, CheckConstraint, Column, Integer, String

# largest value the level/experience/gems columns hold
MAX_INT64 = 2**63 - 1


class User(BaseModel, Base):
    """Identity and progression aggregate."""
    __tablename__ = "users"
    __table_args__ = (
        CheckConstraint("level >= 0", name="ck_users_level_non_negative"),
        CheckConstraint("experience >= 0", name="ck_users_experience_non_negative"),
        CheckConstraint("gems >= 0", name="ck_users_gems_non_negative"),
    )

    username = Column(String(64), nullable=False, unique=True, index=True)
    email = Column(String(255), nullable=False, unique=True, index=True)
    password_hash = Column(String(255), nullable=False)
    level = Column(Integer, nullable=False, default=0)
    experience = Column(BigInteger, nullable=False, default=0)
    gems = Column(BigInteger, nullable=False, default=0)

    def __init__(self, *args, **kwargs):
        kwargs.setdefault("level", 0)
        kwargs.setdefault("experience", 0)
        kwargs.setdefault("gems", 0)
        super().__init__(*args, **kwargs)
