from pydantic import BaseModel, ConfigDict, Field
from typing import List, Optional, Dict, Any
from datetime import datetime

from moodbuddy.core.models import MoodLevel, SleepQuality

class EntrySchema(BaseModel):
    model_config = ConfigDict(use_enum_values=True, extra="forbid")

# ===== MOOD =====

class MoodEntryCreate(EntrySchema):
    mood: MoodLevel
    notes: Optional[str] = Field(None, max_length=2000)

class MoodEntryUpdate(EntrySchema):
    mood: Optional[MoodLevel] = None
    notes: Optional[str] = Field(None, max_length=2000)

# ===== SLEEP =====

class SleepEntryCreate(EntrySchema):
    bedtime: datetime
    wake_time: datetime
    hours_slept: int = Field(..., ge=0, le=24)
    quality: SleepQuality
    notes: Optional[str] = Field(None, max_length=2000)

class SleepEntryUpdate(EntrySchema):
    bedtime: Optional[datetime] = None
    wake_time: Optional[datetime] = None
    hours_slept: Optional[int] = Field(None, ge=0, le=24)
    quality: Optional[SleepQuality] = None
    notes: Optional[str] = Field(None, max_length=2000)

# ===== JOURNAL =====

class JournalEntryCreate(EntrySchema):
    title: Optional[str] = Field(None, max_length=200)
    content: str = Field(..., min_length=1, max_length=20000)

class JournalEntryUpdate(EntrySchema):
    title: Optional[str] = Field(None, max_length=200)
    content: Optional[str] = Field(None, min_length=1, max_length=20000)

# ===== EXERCISE =====

class ExerciseEntryCreate(EntrySchema):
    exercised: bool = True
    activity_type: Optional[str] = Field(None, max_length=64)
    duration_minutes: Optional[int] = Field(None, ge=0, le=1440)
    notes: Optional[str] = Field(None, max_length=2000)

class ExerciseEntryUpdate(EntrySchema):
    exercised: Optional[bool] = None
    activity_type: Optional[str] = Field(None, max_length=64)
    duration_minutes: Optional[int] = Field(None, ge=0, le=1440)
    notes: Optional[str] = Field(None, max_length=2000)

# ===== WEIGHT =====

class WeightEntryCreate(EntrySchema):
    weight: float = Field(..., gt=0, le=1000)
    unit: str = Field("kg", pattern="^(kg|lbs)$")
    notes: Optional[str] = Field(None, max_length=2000)

class WeightEntryUpdate(EntrySchema):
    weight: Optional[float] = Field(None, gt=0, le=1000)
    unit: Optional[str] = Field(None, pattern="^(kg|lbs)$")
    notes: Optional[str] = Field(None, max_length=2000)

# ===== MEDICATIONS =====

class MedicationCreate(EntrySchema):
    name: str = Field(..., min_length=1, max_length=200)
    dosage: str = Field(..., min_length=1, max_length=100)
    frequency: str = Field(..., min_length=1, max_length=100)
    times: List[str] = Field(default_factory=list)
    is_active: bool = True

class MedicationUpdate(EntrySchema):
    name: Optional[str] = Field(None, min_length=1, max_length=200)
    dosage: Optional[str] = Field(None, min_length=1, max_length=100)
    frequency: Optional[str] = Field(None, min_length=1, max_length=100)
    times: Optional[List[str]] = None
    is_active: Optional[bool] = None

class MedicationTakenCreate(EntrySchema):
    medication_id: str
    scheduled_time: str = Field(..., min_length=1, max_length=16)
    taken_at: Optional[datetime] = None

# ===== CHAT =====

class ChatRequest(BaseModel):
    message: str = Field(..., min_length=1, max_length=4000)
    context: Optional[str] = Field(None, max_length=8000)

class ChatResponse(BaseModel):
    response: str
    provider: str
    conversation_id: Optional[int] = None

class UserProfileUpdate(BaseModel):
    preferences: Optional[Dict[str, Any]] = None
    mental_health_profile: Optional[Dict[str, Any]] = None
    personal_details: Optional[Dict[str, Any]] = None

class HealthCheck(BaseModel):
    status: str
    service: str
    version: str
    timestamp: float
    database: Dict[str, Any]
