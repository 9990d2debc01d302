# app/schemas/catalog_schema.py
# 目錄資料的輸出格式 (只讀)
from pydantic import BaseModel
from typing import Optional


class CountryOut(BaseModel):
    country_id: int
    name: str

    class Config:
        from_attributes = True


class CityOut(BaseModel):
    city_id: int
    name: str
    country: Optional[CountryOut] = None

    class Config:
        from_attributes = True


class JobTypeOut(BaseModel):
    job_type_id: int
    name: str

    class Config:
        from_attributes = True


class SpecializationOut(BaseModel):
    specialization_id: int
    name: str
    job_type_id: int

    class Config:
        from_attributes = True


class LanguageOut(BaseModel):
    language_id: int
    name: str

    class Config:
        from_attributes = True


class ContractualOut(BaseModel):
    contractual_id: int
    name: str

    class Config:
        from_attributes = True


class StatusOut(BaseModel):
    status_id: int
    name: str

    class Config:
        from_attributes = True
