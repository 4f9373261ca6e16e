from __future__ import annotations

from typing import Any, Dict, Optional
from pydantic import BaseModel, Field, ConfigDict, field_validator

from cloudguard.core.alert import Category, Severity, Status, parse_category, parse_severity, parse_status


class AlertOut(BaseModel):
    id: str
    severity: Severity
    category: Category
    status: Status
    description: str
    timestamp: str

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "id": "ALT-1F2E3D4C",
                "severity": "High",
                "category": "S3",
                "status": "New",
                "description": "Bucket prod-logs allows public read",
                "timestamp": "2025-01-01T00:00:00Z",
            }
        }
    )


class AlertCreate(BaseModel):
    id: Optional[str] = Field(None, description="Alert id; generated when omitted")
    severity: Severity
    category: Category
    description: str = Field(..., description="Human readable finding")
    timestamp: Optional[str] = Field(None, description="ISO-8601 creation time; defaults to now")

    @field_validator("severity", mode="before")
    @classmethod
    def _fold_severity(cls, v: Any) -> Any:
        return parse_severity(v) if isinstance(v, str) else v

    @field_validator("category", mode="before")
    @classmethod
    def _fold_category(cls, v: Any) -> Any:
        return parse_category(v) if isinstance(v, str) else v

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "severity": "Medium",
                "category": "IAM",
                "description": "Access key older than 90 days for user deploy-bot",
            }
        }
    )


class StatusUpdate(BaseModel):
    status: Status = Field(..., description="Requested status; must be the next lifecycle stage")

    @field_validator("status", mode="before")
    @classmethod
    def _fold_status(cls, v: Any) -> Any:
        # "in-progress" and "inprogress" name the same stage; non-strings fall through and fail
        return parse_status(v) if isinstance(v, str) else v

    model_config = ConfigDict(json_schema_extra={"example": {"status": "Acknowledged"}})


class StatsResponse(BaseModel):
    statuses: Dict[str, int]
    categories: Dict[str, int]


class ErrorResponse(BaseModel):
    ok: bool = False
    request_id: str
    error: Dict[str, Any]
    hint: Optional[str] = None
