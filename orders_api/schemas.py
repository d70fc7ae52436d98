from __future__ import annotations

from typing import List, Optional, Union

from pydantic import BaseModel


class DashboardFiltersModel(BaseModel):
    period: Union[int, str] = "all"
    site: str = "all"


class MetaStatusResponse(BaseModel):
    available: bool
    error: Optional[str] = None
    last_update: Optional[str] = None
    orders: int = 0


class MetaListResponse(BaseModel):
    values: List[Union[int, str]]
