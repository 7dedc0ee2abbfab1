import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator


def now_utc() -> datetime:
    return datetime.now(timezone.utc)


# Registry records
# Aliases are the camelCase keys used in assets.json snapshots
class ScanEvent(BaseModel):
    model_config = ConfigDict(frozen=True)

    timestamp: datetime
    device: str = "Unknown Device"


class AssetRecord(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str
    name: str
    location: str
    department: str = ""
    setup_date: str = Field("", alias="desktopSetupDate")
    secret_hash: str = Field(..., alias="assetPassword")
    scan_history: List[ScanEvent] = Field(default_factory=list, alias="scanHistory")

    @field_validator("department", "setup_date", mode="before")
    @classmethod
    def blank_if_missing(cls, v: Optional[str]) -> str:
        return v or ""

    @property
    def scan_count(self) -> int:
        return len(self.scan_history)

    @property
    def last_scan(self) -> Optional[ScanEvent]:
        return self.scan_history[-1] if self.scan_history else None


# Session payloads (closed union: anything else in the table is a bug)
@dataclass(frozen=True)
class AdminSession:
    created_at: float = field(default_factory=time.time)


@dataclass(frozen=True)
class AssetVerifiedSession:
    asset_name: str
    created_at: float = field(default_factory=time.time)

    def grants(self, asset_name: str) -> bool:
        return self.asset_name == asset_name


SessionPayload = Union[AdminSession, AssetVerifiedSession]
