from datetime import datetime
from typing import Optional

from pydantic import model_validator

from pixelshelf.schemas.common import CamelModel


class LikeIn(CamelModel):
    asset_id: Optional[str] = None
    project_id: Optional[str] = None

    @model_validator(mode="after")
    def _exactly_one_target(self):
        if bool(self.asset_id) == bool(self.project_id):
            raise ValueError("Exactly one of assetId or projectId must be provided")
        return self


class LikeOut(CamelModel):
    id: str
    user_id: str
    asset_id: Optional[str] = None
    project_id: Optional[str] = None
    created_at: datetime
