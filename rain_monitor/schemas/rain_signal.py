from typing import Union

from pydantic import BaseModel, StrictBool, StrictInt, field_validator


class RainSignal(BaseModel):
    # 1 = raining, 0 = dry (ESP8266 rain sensor payload). JSON true/false also accepted.
    isRaining: Union[StrictBool, StrictInt]

    @field_validator("isRaining")
    @classmethod
    def _zero_or_one(cls, v):
        if v not in (0, 1):
            raise ValueError("isRaining must be 0 or 1")
        return int(v)

    @property
    def raining(self) -> bool:
        return self.isRaining == 1
