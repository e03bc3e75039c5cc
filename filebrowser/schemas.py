from __future__ import annotations

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class FileEntry(CamelModel):
    name: str
    path: str
    is_directory: bool
    size: int
    modified_time: datetime
    extension: str


class DirectoryListing(CamelModel):
    current_path: str
    parent_path: str
    items: list[FileEntry]


class FileIdentity(CamelModel):
    is_file: Literal[True] = True
    path: str
    name: str


class ErrorResponse(BaseModel):
    error: str
