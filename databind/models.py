"""Request records bound by the service endpoints."""

from dataclasses import dataclass, field
from typing import List, Optional

from .binding import Uint16, tagged


class SortOrder:
    """Sort direction accepted as ``asc``/``desc`` or a leading ``-`` on the field name."""

    def __init__(self, field_name: str = "created", descending: bool = False):
        self.field_name = field_name
        self.descending = descending

    def unmarshal_param(self, value: str) -> None:
        value = value.strip()
        if not value:
            raise ValueError("sort must not be empty")
        self.descending = value.startswith("-")
        self.field_name = value.lstrip("-+")

    def to_dict(self) -> dict:
        return {"field": self.field_name, "descending": self.descending}


@dataclass
class Paging:
    page: Uint16 = tagged(1, query="page")
    per_page: Uint16 = tagged(20, query="per_page")


@dataclass
class SearchQuery:
    q: str = tagged("", query="q")
    tags: List[str] = tagged(default_factory=list, query="tag")
    exact: bool = False
    sort: SortOrder = tagged(default_factory=SortOrder, query="sort")
    paging: Paging = field(default_factory=Paging)

    def to_dict(self) -> dict:
        return {
            "q": self.q,
            "tags": self.tags,
            "exact": self.exact,
            "sort": self.sort.to_dict(),
            "page": self.paging.page,
            "per_page": self.paging.per_page,
        }


@dataclass
class Address:
    city: str = tagged("", form="city", json="city", xml="city")
    zip_code: str = tagged("", form="zip", json="zip", xml="zip")


@dataclass
class UserUpdate:
    user_id: int = tagged(0, param="user_id", json="-", xml="-")
    name: str = tagged("", form="name", json="name", xml="name")
    email: Optional[str] = tagged(None, form="email", json="email", xml="email")
    age: int = tagged(0, form="age", json="age", xml="age")
    roles: List[str] = tagged(default_factory=list, form="role", json="roles", xml="role")
    address: Address = tagged(default_factory=Address, json="address", xml="address")
    notify: bool = tagged(False, query="notify", json="notify", xml="notify,attr")
