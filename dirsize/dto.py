# dto.py
from datetime import datetime
from typing import Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, model_validator


class FileMetadata(BaseModel):
    """
    Description of one filesystem entry as returned to clients.

    A record is either a leaf (a file: ``compressed_size`` set, ``children`` is
    None) or a directory (``compressed_size`` is 0, ``children`` is a possibly
    empty tuple). Field aliases are the names used on the wire.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    name: str = Field(alias="filename")
    modified_at: datetime = Field(alias="last_modified_date")
    compressed_size: int = Field(0, alias="file_size_gzipped", ge=0)
    children: Optional[Tuple["FileMetadata", ...]] = Field(None, alias="files")

    @model_validator(mode="after")
    def check_leaf_or_directory(self):
        if self.children is not None and self.compressed_size != 0:
            raise ValueError(
                "A directory record cannot carry a compressed size."
            )
        return self

    @classmethod
    def leaf(cls, name: str, modified_at: datetime, compressed_size: int) -> "FileMetadata":
        return cls(name=name, modified_at=modified_at, compressed_size=compressed_size)

    @classmethod
    def directory(cls, name: str, modified_at: datetime, children) -> "FileMetadata":
        return cls(
            name=name,
            modified_at=modified_at,
            compressed_size=0,
            children=tuple(children),
        )

    @property
    def is_directory(self) -> bool:
        return self.children is not None

    def to_json(self, indent: Optional[int] = 2) -> str:
        """Serializes with wire names; ``files`` is omitted on leaf records."""
        return self.model_dump_json(by_alias=True, exclude_none=True, indent=indent)
