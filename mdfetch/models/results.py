from typing import Literal, Optional, Union
from pydantic import BaseModel, ConfigDict, Field


class ErrorInfo(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: str = Field(..., description="Exception class name, e.g. FetchError")
    message: str
    status_code: Optional[int] = None

    @classmethod
    def from_exception(cls, exc: BaseException) -> "ErrorInfo":
        return cls(
            kind=type(exc).__name__,
            message=str(exc) or type(exc).__name__,
            status_code=getattr(exc, "status_code", None),
        )


class FetchSuccess(BaseModel):
    model_config = ConfigDict(frozen=True)

    url: str
    markdown: str
    success: Literal[True] = True


class FetchFailure(BaseModel):
    model_config = ConfigDict(frozen=True)

    url: str
    error: ErrorInfo
    success: Literal[False] = False


FetchResult = Union[FetchSuccess, FetchFailure]


class ScreenshotSuccess(BaseModel):
    model_config = ConfigDict(frozen=True)

    url: str
    filepath: str
    success: Literal[True] = True


class ScreenshotFailure(BaseModel):
    model_config = ConfigDict(frozen=True)

    url: str
    error: ErrorInfo
    success: Literal[False] = False


ScreenshotResult = Union[ScreenshotSuccess, ScreenshotFailure]
