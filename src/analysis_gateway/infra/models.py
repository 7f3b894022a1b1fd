from sqlalchemy import (
    Column, String, DateTime, BigInteger, Integer, ForeignKey,
    Index, CheckConstraint, text as sa_text,
)
from sqlalchemy.sql import func

from src.analysis_gateway.infra.db import Base


class PlanORM(Base):
    __tablename__ = "plans"

    plan_id = Column(Integer, primary_key=True, autoincrement=False)
    name = Column(String, nullable=False)
    total_requests = Column(Integer, nullable=False)

    __table_args__ = (
        CheckConstraint("total_requests >= 0", name="total_requests_non_negative"),
    )


class UserORM(Base):
    """
    Пользователь внешнего identity provider'а: id приходит снаружи,
    локально храним только тариф и счётчик запросов.
    """
    __tablename__ = "users"

    id = Column(BigInteger().with_variant(Integer, "sqlite"), primary_key=True, autoincrement=False)
    email = Column(String, nullable=False)
    plan_id = Column(Integer, ForeignKey("plans.plan_id"), nullable=False)
    used_requests = Column(Integer, nullable=False, server_default=sa_text("0"))
    reset_date = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    __table_args__ = (
        CheckConstraint("used_requests >= 0", name="used_requests_non_negative"),
        Index("idx_users_plan", "plan_id"),
    )
