# medbook/schemas/medical_tests/medical_test.py
from pydantic import BaseModel, ConfigDict, Field
from typing import Literal, Optional
from datetime import datetime

TestCategory = Literal[
    "radiology",
    "laboratory",
    "cardiology",
    "neurology",
    "pathology",
    "endoscopy",
    "pulmonology",
    "other",
]


class MedicalTestBase(BaseModel):
    name: str = Field(min_length=2, max_length=200)
    description: str = Field(max_length=1000)
    category: TestCategory
    subcategory: Optional[str] = None
    hospital_id: Optional[str] = None
    price: float = Field(ge=0)
    currency: str = "RWF"
    duration: Optional[str] = None  # minutes, e.g. "30"
    preparation_instructions: Optional[str] = None
    is_insurance_covered: bool = True
    is_available: bool = True


class MedicalTestCreate(MedicalTestBase):
    pass


class MedicalTestResponse(MedicalTestBase):
    model_config = ConfigDict(from_attributes=True)

    id: str
    created_at: datetime


class MedicalTestUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=2, max_length=200)
    description: Optional[str] = Field(default=None, max_length=1000)
    category: Optional[TestCategory] = None
    subcategory: Optional[str] = None
    hospital_id: Optional[str] = None
    price: Optional[float] = Field(default=None, ge=0)
    currency: Optional[str] = None
    duration: Optional[str] = None
    preparation_instructions: Optional[str] = None
    is_insurance_covered: Optional[bool] = None
    is_available: Optional[bool] = None
