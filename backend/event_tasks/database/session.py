from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker
from event_tasks.core.config import DATABASE_URL

if not DATABASE_URL:
    raise RuntimeError("DATABASE_URL nao configurada. Defina a variavel de ambiente antes de iniciar a API.")

engine = create_engine(
    DATABASE_URL,
    pool_pre_ping=True,
)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine, expire_on_commit=False)


if engine.dialect.name == "sqlite":
    @event.listens_for(engine, "connect")
    def enable_sqlite_foreign_keys(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()
