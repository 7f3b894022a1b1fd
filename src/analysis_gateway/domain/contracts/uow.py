from typing import Protocol
from src.analysis_gateway.domain.contracts.repositories import UserRepo, PlanRepo

class UoW(Protocol):
    users: UserRepo
    plans: PlanRepo

    def commit(self) -> None: ...
    def rollback(self) -> None: ...
