from typing import List, Optional
from fastapi import APIRouter, Depends, HTTPException, Query

from ..dependencies import get_catalog_service
from ..schemas.hospitals.hospital import HospitalResponse
from ..schemas.medical_tests.medical_test import MedicalTestResponse
from ..services.catalog.catalog_service import CatalogService

hospitals_router = APIRouter(prefix="/hospitals", tags=["Hospitals"])
medical_tests_router = APIRouter(prefix="/medical-tests", tags=["Medical Tests"])


@hospitals_router.get("/", response_model=List[HospitalResponse])
async def get_hospitals(catalog: CatalogService = Depends(get_catalog_service)):
    return [HospitalResponse.from_model(h) for h in await catalog.list_hospitals()]


@hospitals_router.get("/{hospital_id}", response_model=HospitalResponse)
async def get_hospital(hospital_id: str, catalog: CatalogService = Depends(get_catalog_service)):
    hospital = await catalog.get_hospital(hospital_id)
    if not hospital:
        raise HTTPException(status_code=404, detail="Hospital not found")
    return HospitalResponse.from_model(hospital)


@medical_tests_router.get("/", response_model=List[MedicalTestResponse])
async def get_medical_tests(
    hospital_id: Optional[str] = Query(None),
    category: Optional[str] = Query(None),
    catalog: CatalogService = Depends(get_catalog_service),
):
    tests = await catalog.list_tests(hospital_id=hospital_id, category=category)
    return [MedicalTestResponse.model_validate(t) for t in tests]


@medical_tests_router.get("/{test_id}", response_model=MedicalTestResponse)
async def get_medical_test(test_id: str, catalog: CatalogService = Depends(get_catalog_service)):
    test = await catalog.get_test(test_id)
    if not test:
        raise HTTPException(status_code=404, detail="Medical test not found")
    return MedicalTestResponse.model_validate(test)
