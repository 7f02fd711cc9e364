from pydantic import BaseModel


class UploadOut(BaseModel):
    object_key: str
    url: str
    expires_at: int
