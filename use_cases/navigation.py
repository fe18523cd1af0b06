"""Screen stack manipulated by the flow and rendered by the presentation surface."""

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, FrozenSet, List, Optional

from identity import ErrorKind, IdentityError

log = logging.getLogger(__name__)

ActionHandler = Callable[..., None]


@dataclass(eq=False)
class Screen:
    """One step of the flow.

    The surface renders ``view_model`` and reports user input through
    ``send``. ``inline_error_kinds`` lists the error kinds this screen can
    show next to its inputs; anything else needs a blocking error screen.
    """

    name: str
    view_model: Dict[str, Any] = field(default_factory=dict)
    on_action: Optional[ActionHandler] = None
    inline_error_kinds: FrozenSet[ErrorKind] = frozenset()
    loading: bool = False
    inline_error: Optional[Dict[str, Optional[str]]] = None

    def send(self, action: str, **payload) -> bool:
        if self.loading:
            log.debug(f"Dropped '{action}' on '{self.name}' while loading")
            return False
        if self.on_action is None:
            return False
        self.on_action(action, **payload)
        return True

    def start_loading(self) -> None:
        self.loading = True
        self.inline_error = None

    def end_loading(self) -> None:
        self.loading = False

    def show_inline_error(self, error: Exception) -> bool:
        if not isinstance(error, IdentityError) or error.kind not in self.inline_error_kinds:
            return False
        self.inline_error = {"title": error.title, "description": error.description}
        return True

    def show_message(self, title: Optional[str], description: Optional[str]) -> None:
        self.inline_error = {"title": title, "description": description}


class NavigationStack:
    """The container handed to the presentation surface."""

    def __init__(self):
        self._screens: List[Screen] = []

    @property
    def screens(self) -> List[Screen]:
        return list(self._screens)

    @property
    def top(self) -> Optional[Screen]:
        return self._screens[-1] if self._screens else None

    @property
    def root(self) -> Optional[Screen]:
        return self._screens[0] if self._screens else None

    def __len__(self) -> int:
        return len(self._screens)

    def set_root(self, screen: Screen) -> None:
        self._screens = [screen]

    def push(self, screen: Screen) -> None:
        self._screens.append(screen)

    def pop(self) -> Optional[Screen]:
        if len(self._screens) <= 1:
            return None
        return self._screens.pop()

    def pop_to(self, screen: Screen) -> bool:
        if screen not in self._screens:
            return False
        del self._screens[self._screens.index(screen) + 1:]
        return True

    def pop_to_root(self) -> None:
        del self._screens[1:]

    def remove(self, screen: Screen) -> None:
        if screen in self._screens and screen is not self.root:
            self._screens.remove(screen)


def push_error_screen(navigation: NavigationStack, error: Exception) -> Screen:
    """Push a blocking error screen that removes itself on retry or back."""
    title = getattr(error, "title", None) or "Something went wrong"
    description = getattr(error, "description", None) or str(error)

    def handle(action: str, **_payload) -> None:
        if action in ("retry", "back", "ok"):
            navigation.remove(screen)

    screen = Screen(
        name="error",
        view_model={"title": title, "description": description},
        on_action=handle,
    )
    navigation.push(screen)
    return screen
