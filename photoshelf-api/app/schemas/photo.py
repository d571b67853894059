# app/schemas/photo.py
# Wire models for the photo API. Python names are snake_case; JSON is camelCase.
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)


class ExifSummary(_CamelModel):
    date_time: str
    location: str
    camera_info: str


class PhotoRecord(_CamelModel):
    """List form: carries `exif`, no `createdDate`."""
    filename: str
    original_name: str
    extension: str
    size: int
    modified_date: str
    url: str
    exif: ExifSummary


class PhotoDetail(_CamelModel):
    """Lookup form: carries `createdDate`, no `exif`."""
    filename: str
    original_name: str
    extension: str
    size: int
    modified_date: str
    created_date: str
    url: str


class ErrorBody(BaseModel):
    error: str
