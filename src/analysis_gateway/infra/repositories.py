from __future__ import annotations

from typing import Optional
from datetime import datetime

from sqlalchemy.orm import Session
from sqlalchemy import select, update

from src.analysis_gateway.infra.models import UserORM, PlanORM

from src.analysis_gateway.domain.value_objects import QuotaRecord
from src.analysis_gateway.domain.entities.user import User
from src.analysis_gateway.domain.entities.plan import Plan


# mappers ORM -> Domain
def _user_dom(u: UserORM) -> User:
    return User(
        id=int(u.id),
        email=str(u.email),
        plan_id=int(u.plan_id),
        used_requests=int(u.used_requests or 0),
        reset_date=u.reset_date,
        created_at=u.created_at,
    )


def _plan_dom(p: PlanORM) -> Plan:
    return Plan(
        plan_id=int(p.plan_id),
        name=str(p.name),
        total_requests=int(p.total_requests),
    )


def _quota_dom(u: UserORM, p: PlanORM) -> QuotaRecord:
    return QuotaRecord(
        user_id=int(u.id),
        plan_id=int(p.plan_id),
        used_requests=int(u.used_requests or 0),
        total_requests=int(p.total_requests),
        reset_date=u.reset_date,
    )


# repos
class SqlUserRepo:
    def __init__(self, db: Session):
        self.db = db

    def get_by_id(self, user_id: int) -> Optional[User]:
        u = self.db.query(UserORM).filter(UserORM.id == user_id).first()
        return _user_dom(u) if u else None

    def get_with_plan(self, user_id: int) -> Optional[QuotaRecord]:
        row = (
            self.db.query(UserORM, PlanORM)
            .join(PlanORM, PlanORM.plan_id == UserORM.plan_id)
            .filter(UserORM.id == user_id)
            .first()
        )
        if not row:
            return None
        u, p = row
        return _quota_dom(u, p)

    def try_reserve(self, user_id: int, count: int) -> Optional[tuple[int, int]]:
        """
        Атомарно увеличивает used_requests на count, если после увеличения
        счётчик не превысит лимит тарифа. Проверка и инкремент -- один
        UPDATE, поэтому конкурентные резервы одного пользователя
        сериализуются блокировкой строки в БД.

        Возвращает (used_requests, total_requests) из того же UPDATE или
        None, если строка не обновлена (лимит или нет пользователя).
        """
        total = (
            select(PlanORM.total_requests)
            .where(PlanORM.plan_id == UserORM.plan_id)
            .correlate(UserORM)
            .scalar_subquery()
        )
        stmt = (
            update(UserORM)
            .where(UserORM.id == user_id, UserORM.used_requests + count <= total)
            .values(used_requests=UserORM.used_requests + count)
            .returning(UserORM.used_requests, total.label("total_requests"))
            .execution_options(synchronize_session=False)
        )
        row = self.db.execute(stmt).first()
        if row is None:
            return None
        return int(row[0]), int(row[1])

    def create(self, user_id: int, email: str, plan_id: int, reset_date: datetime) -> User:
        u = UserORM(id=user_id, email=email, plan_id=plan_id, used_requests=0, reset_date=reset_date)
        self.db.add(u)
        self.db.flush()
        return _user_dom(u)

    def update_plan(self, user_id: int, email: str, plan_id: int, reset_date: datetime) -> User:
        u = self.db.query(UserORM).filter(UserORM.id == user_id).one()
        u.email = email
        u.plan_id = plan_id
        u.reset_date = reset_date
        self.db.flush()
        return _user_dom(u)


class SqlPlanRepo:
    def __init__(self, db: Session):
        self.db = db

    def get_by_id(self, plan_id: int) -> Optional[Plan]:
        p = self.db.query(PlanORM).filter(PlanORM.plan_id == plan_id).first()
        return _plan_dom(p) if p else None

    def upsert(self, plan_id: int, name: str, total_requests: int) -> Plan:
        p = self.db.query(PlanORM).filter(PlanORM.plan_id == plan_id).first()
        if p:
            p.name = name
            p.total_requests = total_requests
        else:
            p = PlanORM(plan_id=plan_id, name=name, total_requests=total_requests)
            self.db.add(p)
        self.db.flush()
        return _plan_dom(p)
