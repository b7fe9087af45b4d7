from typing import Dict, Optional
from urllib.parse import urlencode


class NavigationState:
    """
    Shareable location of the form (the query string of the page URL).

    The store writes ``draftId`` here after creating a draft so a reload can
    resume the same draft, and reads it back when no id is given to load.
    """

    def __init__(self, path: str = "/form", params: Optional[Dict[str, str]] = None):
        self.path = path
        self.params: Dict[str, str] = dict(params or {})

    def get(self, name: str) -> Optional[str]:
        return self.params.get(name)

    def set(self, name: str, value) -> None:
        if value is None:
            self.params.pop(name, None)
        else:
            self.params[name] = str(value)

    def remove(self, name: str) -> None:
        self.params.pop(name, None)

    @property
    def url(self) -> str:
        if not self.params:
            return self.path
        return f"{self.path}?{urlencode(self.params)}"

    def __repr__(self) -> str:
        return f"NavigationState({self.url!r})"
