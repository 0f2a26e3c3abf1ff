from afkbot.modules.ui.default_popups import DEFAULT_POPUPS, register_default_popups
from afkbot.modules.ui.popups import PopupDef, PopupRegistry


def test_all_sorted_orders_by_priority_and_skips_disabled():
    registry = PopupRegistry()
    registry.register(PopupDef(id="b", label="b", template="b.png", priority=20))
    registry.register(PopupDef(id="a", label="a", template="a.png", priority=10))
    registry.register(PopupDef(id="c", label="c", template="c.png", enabled=False))

    assert [p.id for p in registry.all_sorted()] == ["a", "b"]

    registry.unregister("a")
    assert registry.get("a") is None
    assert len(registry) == 2


def test_register_default_popups_into_fresh_registry():
    registry = register_default_popups(PopupRegistry())
    assert len(registry) == len(DEFAULT_POPUPS)
