from pydantic import BaseModel


class CourseBrief(BaseModel):
    id: int
    title: str

    class Config:
        from_attributes = True
