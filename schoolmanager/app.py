import logging
import os
import re
from contextlib import asynccontextmanager
from typing import List, Dict, Any, Optional

import uvicorn
from fastapi import FastAPI, HTTPException, Query, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from schoolmanager.core.errors import (
    ConflictingIdentity,
    CreditLimitExceeded,
    DuplicateIdentity,
    InvalidStudentDetails,
    RosterError,
    StudentNotFound,
    StudentNotSuspended,
    StudentSuspended,
)
from schoolmanager.core.models import Student, Subject
from schoolmanager.persistence.session import RosterSession, open_session

logger = logging.getLogger(__name__)

PROJECT_ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))


def data_root() -> str:
    return os.environ.get("SCHOOLMANAGER_DATA_DIR") or os.path.join(PROJECT_ROOT, "data")


@asynccontextmanager
async def lifespan(app: FastAPI):
    app.state.session = open_session(data_root())
    yield
    # exiting the system always writes the roster back
    result = app.state.session.save()
    if not result.passed:
        logger.error("Roster not saved: %s", result.explanation)


app = FastAPI(title="School Manager", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

ERROR_STATUS = {
    InvalidStudentDetails: 422,
    StudentNotFound: status.HTTP_404_NOT_FOUND,
    DuplicateIdentity: status.HTTP_409_CONFLICT,
    ConflictingIdentity: status.HTTP_409_CONFLICT,
    StudentSuspended: status.HTTP_409_CONFLICT,
    StudentNotSuspended: status.HTTP_409_CONFLICT,
    CreditLimitExceeded: status.HTTP_409_CONFLICT,
}


@app.exception_handler(RosterError)
async def roster_error_handler(request: Request, exc: RosterError):
    code = ERROR_STATUS.get(type(exc), status.HTTP_400_BAD_REQUEST)
    return JSONResponse(status_code=code, content={"error": type(exc).__name__, "detail": str(exc)})


def session(request: Request) -> RosterSession:
    return request.app.state.session


def parse_positions(text: str, size: int) -> List[int]:
    """
    Free text of subject numbers -> unique positions in [0, size], in input order.
    Anything else (words, repeats, out-of-range numbers) is dropped.
    """
    positions: List[int] = []
    for token in re.split(r"[\s,]+", text or ""):
        if not re.fullmatch(r"[+-]?\d+", token):
            continue
        n = int(token)
        if 0 <= n <= size and n not in positions:
            positions.append(n)
    return positions


def subject_out(subject: Subject) -> Dict[str, Any]:
    return {"name": subject.name, "credit": subject.credit}


def student_out(sess: RosterSession, student: Student) -> Dict[str, Any]:
    summary = sess.engine.summarize(student)
    return {
        "name": student.name,
        "identity_number": student.identity_number,
        "active": student.active,
        "state": summary.state.value,
        "subjects": [subject_out(s) for s in summary.subjects],
        "total_credit": summary.total_credit,
        "remaining_credit": summary.remaining_credit,
        "display": str(student),
    }


# --------- Request models ----------
class StudentRef(BaseModel):
    name: str


class NewStudent(BaseModel):
    name: str
    identity_number: int
    positions: str = ""


class SubjectSelection(BaseModel):
    name: str
    positions: str


# --------- Endpoints ----------
@app.get("/subjects")
def subjects(request: Request) -> List[Dict[str, Any]]:
    return [
        {"position": pos, **subject_out(s)}
        for pos, s in session(request).catalog.positions()
    ]


@app.get("/students")
def students(request: Request, active: Optional[bool] = Query(None),
             name: Optional[str] = Query(None)) -> List[Dict[str, Any]]:
    sess = session(request)
    with sess.lock:
        if name is not None:
            found = sess.registry.find_all_by_name(name)
        else:
            found = sess.registry.list_students()
        if active is not None:
            found = [s for s in found if s.active == active]
        return [student_out(sess, s) for s in found]


@app.get("/students/by-subjects")
def students_by_subjects(request: Request, positions: str = Query(...)) -> Dict[str, Any]:
    sess = session(request)
    picked = parse_positions(positions, sess.catalog.size())
    if not picked:
        raise HTTPException(status_code=422, detail="Invalid input! Enter subject number(s).")
    selected = sess.catalog.select_by_positions(picked)
    with sess.lock:
        return {
            "subjects": [subject_out(s) for s in selected],
            "students": [student_out(sess, s) for s in sess.engine.students_by_positions(picked)],
        }


@app.get("/students/{identity_number}")
def student_detail(request: Request, identity_number: int, name: str = Query(...)) -> Dict[str, Any]:
    sess = session(request)
    with sess.lock:
        return student_out(sess, sess.engine.lookup(name, identity_number))


@app.post("/students", status_code=status.HTTP_201_CREATED)
def add_student(request: Request, body: NewStudent) -> Dict[str, Any]:
    sess = session(request)
    picked = sess.catalog.select_by_positions(parse_positions(body.positions, sess.catalog.size()))
    with sess.lock:
        student = sess.engine.register_student(body.name, body.identity_number, picked)
        return student_out(sess, student)


@app.delete("/students/{identity_number}")
def delete_student(request: Request, identity_number: int, name: str = Query(...)) -> Dict[str, Any]:
    sess = session(request)
    with sess.lock:
        return student_out(sess, sess.engine.remove_student(name, identity_number))


@app.post("/students/{identity_number}/suspend")
def suspend_student(request: Request, identity_number: int, body: StudentRef) -> Dict[str, Any]:
    sess = session(request)
    with sess.lock:
        return student_out(sess, sess.engine.suspend(body.name, identity_number))


@app.post("/students/{identity_number}/unsuspend")
def unsuspend_student(request: Request, identity_number: int, body: StudentRef) -> Dict[str, Any]:
    sess = session(request)
    with sess.lock:
        return student_out(sess, sess.engine.unsuspend(body.name, identity_number))


@app.post("/students/{identity_number}/enroll")
def enroll_student(request: Request, identity_number: int, body: SubjectSelection) -> Dict[str, Any]:
    sess = session(request)
    picked = sess.catalog.select_by_positions(parse_positions(body.positions, sess.catalog.size()))
    with sess.lock:
        added = sess.engine.enroll(body.name, identity_number, picked)
        student = sess.engine.lookup(body.name, identity_number)
        return {"changed": [subject_out(s) for s in added], "student": student_out(sess, student)}


@app.post("/students/{identity_number}/unenroll")
def unenroll_student(request: Request, identity_number: int, body: SubjectSelection) -> Dict[str, Any]:
    sess = session(request)
    picked = sess.catalog.select_by_positions(parse_positions(body.positions, sess.catalog.size()))
    with sess.lock:
        removed = sess.engine.unenroll(body.name, identity_number, picked)
        student = sess.engine.lookup(body.name, identity_number)
        return {"changed": [subject_out(s) for s in removed], "student": student_out(sess, student)}


@app.post("/save")
def save(request: Request) -> Dict[str, Any]:
    result = session(request).save()
    if not result.passed:
        raise HTTPException(status_code=500, detail=result.explanation)
    return {"saved": True, "detail": result.explanation}


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    port = 8000
    uvicorn.run("schoolmanager.app:app", host="0.0.0.0", port=port, reload=True)
