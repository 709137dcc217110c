from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session

from dental_portal.api.deps import get_db
from dental_portal.services import classroom_service, course_service


router = APIRouter(tags=["courses"])


@router.get("/courses")
def list_courses(request: Request, q: Optional[str] = None, db: Session = Depends(get_db)):
    data = course_service.list_courses(db, q=q)
    return {"request_id": request.state.request_id, "data": data, "error": None}


@router.get("/courses/{course_id}")
def course_detail(request: Request, course_id: int, db: Session = Depends(get_db)):
    data = course_service.get_course_detail(db, course_id, with_classrooms=True)
    return {"request_id": request.state.request_id, "data": data, "error": None}


@router.get("/courses/{course_id}/classrooms")
def course_classrooms(request: Request, course_id: int, db: Session = Depends(get_db)):
    data = classroom_service.list_classrooms(db, course_id=course_id)
    return {"request_id": request.state.request_id, "data": data, "error": None}
