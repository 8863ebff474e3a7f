"""Stack frame data models."""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class RawFrame(BaseModel):
    """A minified stack location as reported by the browser."""

    model_config = ConfigDict(frozen=True)

    script_url: str = Field(min_length=1)
    line: int = Field(ge=1)  # 1-based
    column: int = Field(ge=0)  # 0-based
    function_name: Optional[str] = None


class ResolvedFrame(BaseModel):
    """A stack location mapped back to original source, or the raw fallback."""

    model_config = ConfigDict(frozen=True)

    source: str
    line: int
    column: int
    name: Optional[str] = None
    resolved: bool = True
    context_line: Optional[str] = None

    @classmethod
    def unresolved(cls, frame: RawFrame) -> "ResolvedFrame":
        """Best-effort frame keeping the minified position."""
        return cls(
            source=frame.script_url,
            line=frame.line,
            column=frame.column,
            name=None,
            resolved=False,
        )
