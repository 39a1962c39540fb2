from __future__ import annotations
from typing import Optional
from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from sqlalchemy import select
from sqlalchemy.orm import Session
from ..db import get_db
from ..deps import rate_limiter
from ..models import SENTENCE_CATEGORIES, Sentence


router = APIRouter(prefix="/api", tags=["sentences"], dependencies=[Depends(rate_limiter)])


@router.get("/sentences")
async def list_sentences(category: Optional[str] = None, db: Session = Depends(get_db)):
	stmt = select(Sentence).order_by(Sentence.id)
	if category:
		if category not in SENTENCE_CATEGORIES:
			return JSONResponse(
				status_code=400,
				content={"ok": False, "error": "Invalid category", "validCategories": list(SENTENCE_CATEGORIES)},
			)
		stmt = stmt.where(Sentence.category == category)
	rows = db.scalars(stmt).all()
	return {
		"total": len(rows),
		"categories": list(SENTENCE_CATEGORIES),
		"sentences": [r.to_dict() for r in rows],
	}
