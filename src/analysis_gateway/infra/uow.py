from sqlalchemy.orm import Session

from src.analysis_gateway.infra.repositories import SqlUserRepo, SqlPlanRepo

class SqlAlchemyUoW:
    def __init__(self, db: Session):
        self.db = db

        self.users = SqlUserRepo(db)
        self.plans = SqlPlanRepo(db)

    def commit(self) -> None:
        self.db.commit()

    def rollback(self) -> None:
        self.db.rollback()
