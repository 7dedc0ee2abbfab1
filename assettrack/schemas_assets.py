"""
assettrack/schemas_assets.py

Pydantic schemas for asset creation and the machine-readable asset API.
Security: the secret hash never appears in any response schema.
"""

from __future__ import annotations

from datetime import datetime
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

try:
    from assettrack.models import AssetRecord
except ModuleNotFoundError:
    from models import AssetRecord


# ========================================================================
# REQUEST SCHEMAS
# ========================================================================

class AssetCreateRequest(BaseModel):
    """Fields submitted by the create-asset form.

    Field names follow the form inputs (desktopSetupDate, assetPassword).
    Blank required fields are collected by missing_fields() rather than
    rejected here, so the route can answer with one InvalidInput listing all.
    """
    model_config = ConfigDict(populate_by_name=True)

    id: str = Field("", max_length=100, description="Display id printed next to the code")
    name: str = Field("", max_length=200, description="Unique asset name (registry key)")
    location: str = Field("", max_length=200, description="Where the asset lives")
    department: Optional[str] = Field(None, max_length=200)
    setup_date: Optional[str] = Field(None, alias="desktopSetupDate", max_length=50)
    secret: str = Field("", alias="assetPassword", description="Viewing secret (plaintext, hashed on create)")

    @field_validator("id", "name", "location", mode="before")
    @classmethod
    def trim(cls, v):
        if isinstance(v, str):
            return v.strip()
        return v or ""

    def missing_fields(self) -> List[str]:
        required = {"id": self.id, "name": self.name, "location": self.location, "assetPassword": self.secret}
        return [field for field, value in required.items() if not value]

    def record_fields(self) -> Dict[str, Optional[str]]:
        return {
            "id": self.id,
            "location": self.location,
            "department": self.department,
            "setup_date": self.setup_date,
        }


# ========================================================================
# RESPONSE SCHEMAS
# ========================================================================

class ScanEventResponse(BaseModel):
    timestamp: datetime
    device: str


class AssetResponse(BaseModel):
    """Public view of an asset record (no secret hash)."""
    id: str
    name: str
    location: str
    department: str = ""
    desktopSetupDate: str = ""
    scanCount: int = 0
    scanHistory: List[ScanEventResponse] = Field(default_factory=list)

    @classmethod
    def from_record(cls, record: AssetRecord) -> "AssetResponse":
        return cls(
            id=record.id,
            name=record.name,
            location=record.location,
            department=record.department,
            desktopSetupDate=record.setup_date,
            scanCount=record.scan_count,
            scanHistory=[ScanEventResponse(timestamp=e.timestamp, device=e.device) for e in record.scan_history],
        )


class AssetNotFoundResponse(BaseModel):
    error: str = "Asset not found"
    id: str


class HealthResponse(BaseModel):
    status: str
    assets: int
