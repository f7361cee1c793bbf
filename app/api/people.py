from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Response
from sqlalchemy import select
from sqlalchemy.orm import Session

from app.db.models import Person
from app.db.session import get_db
from app.models.schemas import PersonIn, PersonOut

router = APIRouter(prefix="/api", tags=["people"])


def _to_out(person: Person) -> PersonOut:
    return PersonOut(id=person.id, first_name=person.first_name, last_name=person.last_name)


def _get_or_404(db: Session, person_id: int) -> Person:
    person = db.get(Person, person_id)
    if person is None:
        raise HTTPException(status_code=404, detail="Person not found")
    return person


@router.get("/people", response_model=list[PersonOut])
def list_people(db: Session = Depends(get_db)) -> list[PersonOut]:
    rows = db.execute(select(Person).order_by(Person.id)).scalars().all()
    return [_to_out(p) for p in rows]


@router.post("/people", response_model=PersonOut)
def create_person(payload: PersonIn, db: Session = Depends(get_db)) -> PersonOut:
    person = Person(first_name=payload.first_name, last_name=payload.last_name)
    db.add(person)
    db.commit()
    return _to_out(person)


@router.get("/people/{person_id}", response_model=PersonOut)
def get_person(person_id: int, db: Session = Depends(get_db)) -> PersonOut:
    return _to_out(_get_or_404(db, person_id))


@router.put("/people/{person_id}", response_model=PersonOut)
def update_person(person_id: int, payload: PersonIn, db: Session = Depends(get_db)) -> PersonOut:
    person = _get_or_404(db, person_id)
    person.first_name = payload.first_name
    person.last_name = payload.last_name
    db.commit()
    return _to_out(person)


@router.delete("/people/{person_id}", status_code=204)
def delete_person(person_id: int, db: Session = Depends(get_db)) -> Response:
    person = _get_or_404(db, person_id)
    db.delete(person)
    db.commit()
    return Response(status_code=204)
