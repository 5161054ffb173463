from pydantic import BaseModel, field_validator


class KlineModel(BaseModel):
    c: float    # close price
    x: bool = False

    @field_validator("c")
    @classmethod
    def positive_close(cls, v: float) -> float:
        if not v > 0:
            raise ValueError("close price must be positive")
        return v


class KlineEventModel(BaseModel):
    s: str
    k: KlineModel


class StreamFrameModel(BaseModel):
    stream: str = ""
    data: KlineEventModel
