# medbook/schemas/hospitals/hospital.py
import json
from pydantic import BaseModel, Field
from typing import List, Optional
from datetime import datetime


class HospitalBase(BaseModel):
    name: str = Field(min_length=2, max_length=150)
    email: str = Field(max_length=100)
    phone: str = Field(max_length=20)
    province: Optional[str] = None
    district: Optional[str] = None
    sector: Optional[str] = None
    street: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    facilities: List[str] = []
    registration_number: Optional[str] = None


class HospitalCreate(HospitalBase):
    pass


class HospitalResponse(HospitalBase):
    id: str
    is_active: bool
    created_at: datetime

    @classmethod
    def from_model(cls, h) -> "HospitalResponse":
        return cls(
            id=h.id,
            name=h.name,
            email=h.email,
            phone=h.phone,
            province=h.province,
            district=h.district,
            sector=h.sector,
            street=h.street,
            latitude=h.latitude,
            longitude=h.longitude,
            facilities=json.loads(h.facilities) if h.facilities else [],
            registration_number=h.registration_number,
            is_active=h.is_active,
            created_at=h.created_at,
        )


class HospitalUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=2, max_length=150)
    email: Optional[str] = Field(default=None, max_length=100)
    phone: Optional[str] = Field(default=None, max_length=20)
    province: Optional[str] = None
    district: Optional[str] = None
    sector: Optional[str] = None
    street: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    facilities: Optional[List[str]] = None
    registration_number: Optional[str] = None
    is_active: Optional[bool] = None
