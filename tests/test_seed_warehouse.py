from core.catalog import Color, ItemType
from scripts.seed_warehouse import build_seed_items, main


def test_seed_items_follow_set_ratios(monkeypatch):
    monkeypatch.setenv("BEDDING_SETS_PER_COLOR", "3")
    monkeypatch.setenv("BEDDING_COLORS", "white,green")
    monkeypatch.setenv("TOWEL_SETS", "5")
    monkeypatch.setenv("ROBES", "0")
    monkeypatch.setenv("MATTRESS_COVERS", "2")

    items = {(li.item_type, li.color): li.quantity for li in build_seed_items()}

    assert items[(ItemType.SHEETS, Color.GREEN)] == 3
    assert items[(ItemType.PILLOWCASES, Color.WHITE)] == 6
    assert items[(ItemType.TOWELS_LARGE, Color.GREY)] == 10
    assert items[(ItemType.MATTRESS_COVERS, Color.WHITE)] == 2
    assert (ItemType.ROBES, Color.GREY) not in items


async def test_main_seeds_through_init_stock(monkeypatch, session_maker, movements):
    monkeypatch.setenv("BEDDING_COLORS", "beige")
    monkeypatch.setenv("BEDDING_SETS_PER_COLOR", "2")
    monkeypatch.setenv("SEED_ACTOR", "ops")

    await main(session_maker)

    summary = await movements.get_stock_summary()
    assert summary["warehouse"]["duvet_covers_beige"] == 2
    events = await movements.get_events(limit=5)
    assert [(e.event_type, e.created_by) for e in events] == [("init_stock", "ops")]
