from .popups import PopupDef, PopupRegistry, popup_registry
from .popup_handler import PopupHandler
from .default_popups import register_default_popups

__all__ = [
    "PopupDef",
    "PopupRegistry",
    "popup_registry",
    "PopupHandler",
    "register_default_popups",
]
