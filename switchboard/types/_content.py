from typing import Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field
from typing_extensions import Annotated


class TextContentItem(BaseModel):
    """
    A unit of textual output.
    """
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    type: Literal["text"] = "text"
    text: str


class ImageContentItem(BaseModel):
    """
    A unit of image output. `data` and `mime_type` are carried exactly as the server sent them;
    `url` is set once the image has been published somewhere addressable.
    """
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    type: Literal["image"] = "image"
    data: Optional[str] = None
    mime_type: Optional[str] = Field(default=None, alias="mimeType")
    url: Optional[str] = None


class ResourceContentItem(BaseModel):
    """
    A unit of output that refers to (or embeds) a resource.
    """
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    type: Literal["resource"] = "resource"
    uri: Optional[str] = None
    url: Optional[str] = None
    mime_type: Optional[str] = Field(default=None, alias="mimeType")
    text: Optional[str] = None
    data: Optional[str] = None


ContentItem = Annotated[
    Union[TextContentItem, ImageContentItem, ResourceContentItem],
    Field(discriminator="type"),
]


class ToolCallResult(BaseModel):
    """
    The normalized result of a tool call, prompt render or resource read.
    """
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    content: List[ContentItem] = Field(default_factory=list)
    is_error: bool = Field(default=False, alias="isError")

    def to_dict(self) -> Dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class FunctionCall(BaseModel):
    """
    A function call requested by a model, to be executed as an MCP tool call.
    """
    id: Optional[str] = None
    name: str
    args: Dict[str, Any] = Field(default_factory=dict)
