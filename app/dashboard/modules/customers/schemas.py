from __future__ import annotations

import re
from collections.abc import Mapping
from dataclasses import dataclass

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic import ValidationError as PydanticValidationError
from werkzeug.datastructures import FileStorage

from app.dashboard.forms import form_errors

FIELD_MESSAGES = {
    "name": "Please enter a name.",
    "email": "Please enter a valid email address.",
    "image": "Please upload an image file.",
}

_EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


@dataclass(frozen=True)
class ImageUpload:
    filename: str
    content_type: str
    data: bytes

    @property
    def size(self) -> int:
        return len(self.data)


class CustomerForm(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True, arbitrary_types_allowed=True, frozen=True)

    name: str = Field(min_length=1, max_length=255)
    email: str = Field(max_length=320)
    image: ImageUpload | None = None

    @field_validator("email")
    @classmethod
    def _email_shape(cls, v: str) -> str:
        if not _EMAIL_RE.match(v):
            raise ValueError("invalid email")
        return v.lower()

    @field_validator("image")
    @classmethod
    def _image_type(cls, v: ImageUpload | None) -> ImageUpload | None:
        if v is not None and not v.content_type.startswith("image/"):
            raise ValueError("not an image")
        return v


def read_image(f: FileStorage | None) -> ImageUpload | None:
    """An absent or zero-byte file part means "no image"."""
    if f is None or not f.filename:
        return None
    data = f.read()
    if not data:
        return None
    return ImageUpload(
        filename=f.filename,
        content_type=(f.mimetype or "application/octet-stream").strip(),
        data=data,
    )


def parse_customer_form(form: Mapping[str, str | None], files: Mapping[str, FileStorage]) -> CustomerForm:
    raw = {
        "name": form.get("name"),
        "email": form.get("email"),
        "image": read_image(files.get("image")),
    }
    try:
        return CustomerForm.model_validate(raw)
    except PydanticValidationError as e:
        raise form_errors(e, FIELD_MESSAGES) from e
