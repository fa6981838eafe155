from fastapi import APIRouter, HTTPException, Depends, Query
from datetime import date
from typing import List, Optional, Dict, Any, Type
from pydantic import BaseModel
import logging

from moodbuddy.core.models import TrackingCategory
from moodbuddy.web.dependencies import ServiceContainer, get_container, get_user_id
from moodbuddy.web import schemas

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["entries"])

# Маршруты с синхронной сессией SQLAlchemy объявлены через def и выполняются в пуле потоков

def _entry_response(container: ServiceContainer, user_id: str, category: TrackingCategory,
                    entry: Dict[str, Any]) -> Dict[str, Any]:
    """Запись вместе с результатом геймификации"""
    result = container.gamification.update_streak_on_entry(user_id, category)
    return {"entry": entry, "gamification": result.to_dict()}

def register_entry_routes(kind: str, category: TrackingCategory,
                          create_schema: Type[BaseModel], update_schema: Type[BaseModel]) -> None:
    """CRUD маршруты для одного типа записей"""
    label = kind.capitalize()

    def repository(container: ServiceContainer):
        return getattr(container.repos, kind)

    @router.get(f"/{kind}", response_model=List[Dict[str, Any]], name=f"list_{kind}")
    def list_entries(
        limit: int = Query(50, ge=1, le=500),
        user_id: str = Depends(get_user_id),
        container: ServiceContainer = Depends(get_container)
    ):
        return repository(container).list(user_id, limit=limit)

    @router.post(f"/{kind}", response_model=Dict[str, Any], name=f"create_{kind}")
    def create_entry(
        payload: create_schema,
        user_id: str = Depends(get_user_id),
        container: ServiceContainer = Depends(get_container)
    ):
        entry = repository(container).create(user_id, payload.model_dump(exclude_none=True))
        return _entry_response(container, user_id, category, entry)

    @router.put(f"/{kind}/{{entry_id}}", response_model=Dict[str, Any], name=f"update_{kind}")
    def update_entry(
        entry_id: str,
        payload: update_schema,
        user_id: str = Depends(get_user_id),
        container: ServiceContainer = Depends(get_container)
    ):
        entry = repository(container).update(entry_id, payload.model_dump(exclude_unset=True), user_id=user_id)
        if entry is None:
            raise HTTPException(status_code=404, detail=f"{label} entry not found")
        return entry

    @router.delete(f"/{kind}/{{entry_id}}", response_model=Dict[str, Any], name=f"delete_{kind}")
    def delete_entry(
        entry_id: str,
        user_id: str = Depends(get_user_id),
        container: ServiceContainer = Depends(get_container)
    ):
        if not repository(container).delete(entry_id, user_id=user_id):
            raise HTTPException(status_code=404, detail=f"{label} entry not found")
        return {"success": True}

register_entry_routes("mood", TrackingCategory.MOOD, schemas.MoodEntryCreate, schemas.MoodEntryUpdate)
register_entry_routes("sleep", TrackingCategory.SLEEP, schemas.SleepEntryCreate, schemas.SleepEntryUpdate)
register_entry_routes("journal", TrackingCategory.JOURNAL, schemas.JournalEntryCreate, schemas.JournalEntryUpdate)
register_entry_routes("exercise", TrackingCategory.EXERCISE, schemas.ExerciseEntryCreate, schemas.ExerciseEntryUpdate)
register_entry_routes("weight", TrackingCategory.WEIGHT, schemas.WeightEntryCreate, schemas.WeightEntryUpdate)

# ===== MEDICATIONS =====

@router.get("/medications", response_model=List[Dict[str, Any]])
def list_medications(
    user_id: str = Depends(get_user_id),
    container: ServiceContainer = Depends(get_container)
):
    return container.repos.medications.list(user_id)

@router.post("/medications", response_model=Dict[str, Any])
def create_medication(
    payload: schemas.MedicationCreate,
    user_id: str = Depends(get_user_id),
    container: ServiceContainer = Depends(get_container)
):
    return container.repos.medications.create(user_id, payload.model_dump(exclude_none=True))

@router.get("/medications/taken", response_model=List[Dict[str, Any]])
def list_medication_taken(
    medication_id: Optional[str] = Query(None),
    day: Optional[date] = Query(None, alias="date"),
    user_id: str = Depends(get_user_id),
    container: ServiceContainer = Depends(get_container)
):
    """Отметки о приеме: все или по конкретному лекарству, с фильтром по дню"""
    if medication_id:
        return container.repos.medication_taken.list_for_medication(medication_id, day, user_id=user_id)
    return container.repos.medication_taken.list_for_day(user_id, day)

@router.post("/medications/taken", response_model=Dict[str, Any])
def create_medication_taken(
    payload: schemas.MedicationTakenCreate,
    user_id: str = Depends(get_user_id),
    container: ServiceContainer = Depends(get_container)
):
    if container.repos.medications.get(payload.medication_id, user_id=user_id) is None:
        raise HTTPException(status_code=404, detail="Medication not found")

    entry = container.repos.medication_taken.create(user_id, payload.model_dump(exclude_none=True))
    return _entry_response(container, user_id, TrackingCategory.MEDICATION, entry)

@router.put("/medications/{medication_id}", response_model=Dict[str, Any])
def update_medication(
    medication_id: str,
    payload: schemas.MedicationUpdate,
    user_id: str = Depends(get_user_id),
    container: ServiceContainer = Depends(get_container)
):
    medication = container.repos.medications.update(
        medication_id, payload.model_dump(exclude_unset=True), user_id=user_id
    )
    if medication is None:
        raise HTTPException(status_code=404, detail="Medication not found")
    return medication

@router.delete("/medications/{medication_id}", response_model=Dict[str, Any])
def delete_medication(
    medication_id: str,
    user_id: str = Depends(get_user_id),
    container: ServiceContainer = Depends(get_container)
):
    if not container.repos.medications.delete(medication_id, user_id=user_id):
        raise HTTPException(status_code=404, detail="Medication not found")
    return {"success": True}
