import hmac
import logging
import re
from datetime import datetime, timedelta, timezone

from sqlalchemy.exc import IntegrityError

from src.analysis_gateway.core.settings import settings
from src.analysis_gateway.domain.contracts.uow import UoW
from src.analysis_gateway.domain.errors import InvalidRequest, Unauthorized
from src.analysis_gateway.domain.value_objects import QuotaRecord

logger = logging.getLogger(__name__)

EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


class UsersService:
    def __init__(self, uow: UoW):
        self.uow = uow

    def upsert_plan(self, user_id: int, email: str, plan_id: int, key: str) -> tuple[bool, QuotaRecord]:
        """
        Создаёт пользователя или переназначает ему тариф.
        Счётчик used_requests при смене тарифа не сбрасывается.
        Возвращает (created, актуальная квота).
        """
        if not EMAIL_RE.match(email or ""):
            raise InvalidRequest("Invalid email format")

        if not settings.SUBSCRIPTION_API_KEY or not hmac.compare_digest(
            str(key).encode("utf-8"), settings.SUBSCRIPTION_API_KEY.encode("utf-8")
        ):
            raise Unauthorized("Invalid API key")

        if not self.uow.plans.get_by_id(plan_id):
            raise InvalidRequest("Invalid plan ID")

        reset_date = datetime.now(timezone.utc) + timedelta(days=settings.PLAN_PERIOD_DAYS)

        try:
            existing = self.uow.users.get_by_id(user_id)
            if existing:
                self.uow.users.update_plan(user_id, email=email, plan_id=plan_id, reset_date=reset_date)
                logger.info(
                    "updated user %s: plan %s -> %s, reset_date=%s",
                    user_id, existing.plan_id, plan_id, reset_date.isoformat(),
                )
            else:
                self.uow.users.create(user_id, email=email, plan_id=plan_id, reset_date=reset_date)

            self.uow.commit()
            created = existing is None
        except IntegrityError:
            # пользователя успел создать параллельный запрос: переназначаем тариф
            self.uow.rollback()
            if existing is not None:
                raise
            try:
                self.uow.users.update_plan(user_id, email=email, plan_id=plan_id, reset_date=reset_date)
                self.uow.commit()
            except Exception:
                self.uow.rollback()
                raise
            created = False
        except Exception:
            self.uow.rollback()
            raise

        if created:
            logger.info("created user %s on plan %s", user_id, plan_id)
        elif existing is None:
            logger.info("user %s created concurrently, updated to plan %s", user_id, plan_id)

        record = self.uow.users.get_with_plan(user_id)
        return created, record
