from __future__ import annotations

from dataclasses import dataclass
from xml.etree import ElementTree

import httpx

from takeflow.request import Request

LOGOUT_REL = "take:logout"
LOGOUT_FLAG = "PsByFlag"
LOGOUT_VALUE = "PsLogout"


@dataclass(frozen=True, slots=True)
class LogoutLink:
    """Link pointing back at the current page with the logout flag set.

    Attributes:
        rel: Link relation name.
        href: Request URL with ``flag=PsLogout`` appended to its query.
    """

    rel: str
    href: str

    @classmethod
    def of(cls, request: Request, rel: str = LOGOUT_REL, flag: str = LOGOUT_FLAG) -> LogoutLink:
        """Build the logout link for ``request``."""
        url = httpx.URL(request.href).copy_add_param(flag, LOGOUT_VALUE)
        return cls(rel=rel, href=str(url))

    def to_dict(self) -> dict[str, str]:
        return {"rel": self.rel, "href": self.href}

    def to_xml(self) -> str:
        element = ElementTree.Element("link", {"rel": self.rel, "href": self.href})
        return ElementTree.tostring(element, encoding="unicode")
