from typing import Dict, List, Literal, Optional
from pydantic import BaseModel, ConfigDict, Field
from mdfetch.constants import (
    DEFAULT_TIMEOUT,
    DEFAULT_USER_AGENT,
    DEFAULT_WAIT_UNTIL,
    DEFAULT_VIEWPORT_WIDTH,
    DEFAULT_VIEWPORT_HEIGHT,
)

WaitUntil = Literal["load", "domcontentloaded", "networkidle0", "networkidle2"]
ImageFormat = Literal["png", "jpeg", "webp"]


class FetchOptions(BaseModel):
    model_config = ConfigDict(frozen=True)

    headers: Dict[str, str] = Field(default_factory=dict, description="Extra request headers, merged over the User-Agent")
    proxy: Optional[str] = Field(None, description="Explicit proxy URL; overrides the environment")
    timeout: int = Field(default=DEFAULT_TIMEOUT, gt=0, description="Per-attempt timeout in milliseconds")
    user_agent: str = DEFAULT_USER_AGENT


class BrowserOptions(BaseModel):
    model_config = ConfigDict(frozen=True)

    executable_path: Optional[str] = Field(None, description="Chrome/Chromium binary; searched for when omitted")
    wait_until: WaitUntil = DEFAULT_WAIT_UNTIL
    timeout: int = Field(default=DEFAULT_TIMEOUT, gt=0)
    user_agent: Optional[str] = None
    proxy: Optional[str] = None
    headless: bool = True


class ConversionOptions(BaseModel):
    model_config = ConfigDict(frozen=True)

    heading_style: Literal["atx", "setext"] = "atx"
    code_block_style: Literal["fenced", "indented"] = "fenced"
    bullet_list_marker: Literal["-", "+", "*"] = "-"


class ProcessOptions(BaseModel):
    model_config = ConfigDict(frozen=True)

    use_browser: bool = False
    use_readability: bool = True
    selector: Optional[str] = Field(None, description="CSS selector whose first match becomes the content")
    fetch_options: FetchOptions = Field(default_factory=FetchOptions)
    browser_options: Optional[BrowserOptions] = None
    conversion_options: Optional[ConversionOptions] = None
    verbose: bool = False


class ScreenshotOptions(BaseModel):
    model_config = ConfigDict(frozen=True)

    full_page: bool = True
    width: int = Field(default=DEFAULT_VIEWPORT_WIDTH, gt=0)
    height: int = Field(default=DEFAULT_VIEWPORT_HEIGHT, gt=0)
    device_scale_factor: float = Field(default=1, ge=1, le=3)
    output_dir: str = "."
    format: ImageFormat = "png"
    quality: Optional[int] = Field(None, ge=0, le=100, description="Only used for jpeg and webp")
    browser_options: BrowserOptions = Field(default_factory=BrowserOptions)
    delay: int = Field(default=0, ge=0, description="Pause before capturing, in milliseconds")
    selector: Optional[str] = None
    hide_selectors: List[str] = Field(default_factory=list)
    verbose: bool = False
