from __future__ import annotations
import json
import logging
from pathlib import Path
from sqlalchemy import create_engine, func, select
from sqlalchemy.orm import sessionmaker, declarative_base
from sqlalchemy.pool import StaticPool
from .settings import settings

logger = logging.getLogger(__name__)

DATABASE_URL = settings.database_url or "sqlite:///./shadowing.db"
SEED_FILE = Path(__file__).resolve().parent / "data" / "sentences.json"

_engine_kwargs = {"future": True}
if DATABASE_URL.startswith("sqlite"):
	_engine_kwargs["connect_args"] = {"check_same_thread": False}
	# In-memory SQLite lives per connection; share one across the pool
	if ":memory:" in DATABASE_URL or DATABASE_URL in ("sqlite://", "sqlite:///"):
		_engine_kwargs["poolclass"] = StaticPool

engine = create_engine(DATABASE_URL, **_engine_kwargs)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine, future=True)
Base = declarative_base()


def get_db():
	db = SessionLocal()
	try:
		yield db
	finally:
		db.close()


def seed_sentences(path: Path = SEED_FILE) -> int:
	"""Load the bundled sentence catalog into an empty table. Returns rows added."""
	from .models import Sentence

	with SessionLocal() as db:
		existing = db.scalar(select(func.count()).select_from(Sentence))
		if existing:
			return 0
		rows = json.loads(path.read_text(encoding="utf-8"))["sentences"]
		for row in rows:
			db.add(Sentence(id=row["id"], korean=row["korean"], english=row["english"], category=row["category"]))
		db.commit()
	logger.info("[Sentences] Seeded %d sentences", len(rows))
	return len(rows)
