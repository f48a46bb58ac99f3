# stockroom/schemas/result.py
from typing import Callable, Generic, Literal, Optional, TypeVar, Union
from pydantic import BaseModel, ConfigDict, Field

T = TypeVar("T")


# Three-state envelope returned by every repository operation.
# `status` is the discriminator when a result is serialized.
class Loading(BaseModel):
    status: Literal["loading"] = "loading"

    def map(self, transform: Callable) -> "Loading":
        return self


class Success(BaseModel, Generic[T]):
    model_config = ConfigDict(arbitrary_types_allowed=True)

    status: Literal["success"] = "success"
    data: T

    def map(self, transform: Callable) -> "Success":
        return Success(data=transform(self.data))


class Error(BaseModel):
    model_config = ConfigDict(arbitrary_types_allowed=True)

    status: Literal["error"] = "error"
    message: str
    # Original exception, kept for diagnostics only
    cause: Optional[BaseException] = Field(default=None, exclude=True)

    def map(self, transform: Callable) -> "Error":
        return self


Result = Union[Loading, Success, Error]
