import logging

from src.analysis_gateway.domain.contracts.uow import UoW
from src.analysis_gateway.domain.errors import InvalidRequest, NotFound, QuotaExceeded
from src.analysis_gateway.domain.value_objects import QuotaRecord, QuotaSnapshot

logger = logging.getLogger(__name__)


class QuotaLedger:
    def __init__(self, uow: UoW):
        self.uow = uow

    def reserve(self, user_id: int, count: int) -> QuotaSnapshot:
        """
        Резервирует count запросов из квоты пользователя.
        Либо инкремент целиком проходит, либо ничего не меняется.
        """
        if count <= 0:
            raise InvalidRequest("Reservation count must be positive")

        try:
            reserved = self.uow.users.try_reserve(user_id, count)
            if reserved is None:
                self.uow.rollback()
                if self.uow.users.get_with_plan(user_id) is None:
                    raise NotFound("User not found")
                raise QuotaExceeded()
            self.uow.commit()
        except Exception:
            self.uow.rollback()
            raise

        used, total = reserved
        snapshot = QuotaSnapshot(used=used, total=total)

        logger.info(
            "updated quota for user %s: used=%s total=%s remaining=%s",
            user_id, snapshot.used, snapshot.total, snapshot.remaining,
        )
        return snapshot

    def status(self, user_id: int) -> QuotaRecord:
        record = self.uow.users.get_with_plan(user_id)
        if record is None:
            raise NotFound("User not found")
        return record
