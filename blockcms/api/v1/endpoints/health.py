# blockcms/api/v1/endpoints/health.py
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from blockcms.core.settings import settings
from blockcms.db.session import get_db

router = APIRouter()


@router.get("/ping")
def ping():
    return {"status": "ok", "app": settings.APP_NAME, "env": settings.ENV}


@router.get("/db")
def db_health(db: Session = Depends(get_db)):
    try:
        db.execute(text("SELECT 1"))
    except SQLAlchemyError:
        raise HTTPException(status_code=503, detail="Database unavailable")
    return {"status": "ok"}
