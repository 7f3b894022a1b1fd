from sqlalchemy import create_engine, MetaData
from sqlalchemy.orm import sessionmaker, DeclarativeBase
import dotenv

from src.analysis_gateway.core.settings import settings

dotenv.load_dotenv()

NAMING_CONVENTION = {
    "ix": "ix_%(table_name)s_%(column_0_name)s",
    "uq": "uq_%(table_name)s_%(column_0_name)s",
    "ck": "ck_%(table_name)s_%(constraint_name)s",
    "fk": "fk_%(table_name)s_%(column_0_name)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s",
}

class Base(DeclarativeBase):
    # Задаем naming convention для стабильных diff'ов и корректного drop/alter
    metadata = MetaData(naming_convention=NAMING_CONVENTION)

def make_engine(dsn: str):
    connect_args = {}
    if dsn.startswith("sqlite"):
        # сессии живут в потоках threadpool'а FastAPI
        connect_args["check_same_thread"] = False
    return create_engine(dsn, pool_pre_ping=True, connect_args=connect_args)

def make_session_factory(engine):
    return sessionmaker(bind=engine, autoflush=False, autocommit=False, expire_on_commit=False)

if not settings.DATABASE_URL:
    raise RuntimeError("DATABASE_URL is not set")

engine = make_engine(settings.DATABASE_URL)
SessionLocal = make_session_factory(engine)
