"""Tests for the cart store."""

from decimal import Decimal

import pytest
from kungfu import Error, Ok

from mealcart.cart import (
    AddOn,
    CartErrorKind,
    CartStore,
    ItemKey,
    MemoryStorage,
    MenuItem,
    StorageError,
    storage_from,
)

NASI = MenuItem("m1", "Nasi Goreng", Decimal(25000))
SATE = MenuItem("m2", "Sate Ayam", Decimal(30000))
EGG = AddOn("a1", "Telur", Decimal(5000))
CHEESE = AddOn("a2", "Keju", Decimal(7000))


async def open_store(storage=None) -> CartStore:
    match await CartStore.open(storage if storage is not None else MemoryStorage()):
        case Ok(store):
            return store
        case Error(e):
            raise AssertionError(f"open failed: {e}")


class FlakyStorage:
    """MemoryStorage whose saves can be switched off."""

    def __init__(self) -> None:
        self.inner = MemoryStorage()
        self.fail_saves = False

    async def load(self, name):
        return await self.inner.load(name)

    async def save(self, name, payload):
        if self.fail_saves:
            return Error(StorageError("disk full"))
        return await self.inner.save(name, payload)

    async def delete(self, name):
        return await self.inner.delete(name)


@pytest.mark.asyncio
async def test_identical_adds_merge_into_one_line():
    """Same menu item, notes and add-on set merge with summed quantity."""
    store = await open_store()
    for qty in (1, 2, 3):
        await store.add_item(NASI, qty, notes="pedas", addons=[EGG, CHEESE])

    assert len(store.lines) == 1
    assert store.lines[0].quantity == 6


@pytest.mark.asyncio
async def test_addon_selection_order_does_not_change_identity():
    store = await open_store()
    await store.add_item(NASI, 1, addons=[EGG, CHEESE])
    await store.add_item(NASI, 1, addons=[CHEESE, EGG])

    assert len(store.lines) == 1
    assert store.lines[0].quantity == 2


@pytest.mark.asyncio
async def test_any_differing_component_makes_a_new_line():
    store = await open_store()
    await store.add_item(NASI, 1)
    await store.add_item(NASI, 1, notes="no chili")
    await store.add_item(NASI, 1, addons=[EGG])
    await store.add_item(SATE, 1)

    assert len(store.lines) == 4
    assert len({line.key for line in store.lines}) == 4


@pytest.mark.asyncio
async def test_duplicate_addons_are_collapsed():
    store = await open_store()
    match await store.add_item(NASI, 1, addons=[EGG, EGG, CHEESE]):
        case Ok(line):
            assert [a.menu_id for a in line.addons] == ["a1", "a2"]
            assert line.addons_total == Decimal(12000)
        case Error(e):
            pytest.fail(f"unexpected error: {e}")


@pytest.mark.asyncio
async def test_total_includes_addons_times_quantity():
    store = await open_store()
    await store.add_item(NASI, 2, addons=[EGG])  # (25000 + 5000) * 2
    await store.add_plain(SATE, 3)  # 30000 * 3

    assert store.total() == Decimal(150000)
    assert store.item_count() == 5


@pytest.mark.asyncio
async def test_changing_one_line_leaves_others_alone():
    store = await open_store()
    await store.add_plain(NASI, 1)
    await store.add_plain(SATE, 1)
    sate_before = store.find(ItemKey.of("m2", "", []))

    await store.update_quantity(ItemKey.of("m1", "", []), 4)

    assert store.find(ItemKey.of("m2", "", [])) == sate_before
    assert store.total() == Decimal(25000 * 4 + 30000)


@pytest.mark.asyncio
@pytest.mark.parametrize("quantity", [0, -1, 1.5, True])
async def test_add_rejects_bad_quantity(quantity):
    storage = MemoryStorage()
    store = await open_store(storage)

    match await store.add_item(NASI, quantity):
        case Error(e):
            assert e.kind == CartErrorKind.VALIDATION
        case Ok(_):
            pytest.fail("quantity should be rejected")

    assert store.lines == ()
    assert storage.save_count == 0


@pytest.mark.asyncio
@pytest.mark.parametrize("price", [Decimal(-1), 15000.5, "15000", 15000, Decimal("NaN")])
async def test_add_rejects_malformed_price(price):
    storage = MemoryStorage()
    store = await open_store(storage)

    match await store.add_item(MenuItem("m9", "Nasi", price), 1):
        case Error(e):
            assert e.kind == CartErrorKind.VALIDATION
        case Ok(_):
            pytest.fail(f"price {price!r} should be rejected")

    assert store.lines == ()
    assert storage.save_count == 0


@pytest.mark.asyncio
async def test_add_rejects_malformed_addon_price():
    store = await open_store()
    float_egg = AddOn("a9", "Telur", 5000.0)

    match await store.add_item(NASI, 1, addons=[float_egg]):
        case Error(e):
            assert e.kind == CartErrorKind.VALIDATION
        case Ok(_):
            pytest.fail("float add-on price should be rejected")

    assert store.total() == Decimal(0)


@pytest.mark.asyncio
async def test_update_quantity_below_one_is_rejected_not_clamped():
    store = await open_store()
    await store.add_plain(NASI, 3)
    key = store.lines[0].key

    match await store.update_quantity(key, 0):
        case Error(e):
            assert e.kind == CartErrorKind.VALIDATION
        case Ok(_):
            pytest.fail("quantity 0 should be rejected")

    assert store.lines[0].quantity == 3


@pytest.mark.asyncio
async def test_update_quantity_unknown_key():
    store = await open_store()

    match await store.update_quantity(ItemKey.of("nope", "", []), 2):
        case Error(e):
            assert e.kind == CartErrorKind.NOT_FOUND
        case Ok(_):
            pytest.fail("unknown key should be NOT_FOUND")


@pytest.mark.asyncio
async def test_update_notes_rekeys_the_line():
    store = await open_store()
    await store.add_plain(NASI, 2)
    old_key = store.lines[0].key

    match await store.update_notes(old_key, "extra pedas"):
        case Ok(line):
            assert line.notes == "extra pedas"
            assert line.quantity == 2
        case Error(e):
            pytest.fail(f"unexpected error: {e}")

    assert store.find(old_key) is None
    assert store.find(ItemKey.of("m1", "extra pedas", [])) is not None


@pytest.mark.asyncio
async def test_update_notes_merges_on_collision_in_place():
    store = await open_store()
    await store.add_plain(SATE, 1)
    await store.add_item(NASI, 1, notes="pedas")
    await store.add_item(NASI, 2)

    plain_key = ItemKey.of("m1", "", [])
    match await store.update_notes(plain_key, "pedas"):
        case Ok(line):
            assert line.quantity == 3
        case Error(e):
            pytest.fail(f"unexpected error: {e}")

    assert [line.item.menu_id for line in store.lines] == ["m2", "m1"]
    assert store.item_count() == 4


@pytest.mark.asyncio
async def test_remove_item_is_noop_when_absent():
    store = await open_store()
    await store.add_plain(NASI, 1)

    key = ItemKey.of("m1", "", [])
    match await store.remove_item(key):
        case Ok(removed):
            assert removed is True
        case Error(e):
            pytest.fail(f"unexpected error: {e}")
    match await store.remove_item(key):
        case Ok(removed):
            assert removed is False
        case Error(e):
            pytest.fail(f"unexpected error: {e}")
    assert store.lines == ()


@pytest.mark.asyncio
async def test_every_mutation_is_persisted_before_returning():
    storage = MemoryStorage()
    store = await open_store(storage)

    await store.add_plain(NASI, 2)
    await store.add_item(SATE, 1, addons=[EGG])

    assert storage.save_count == 2
    match await CartStore.open(storage):
        case Ok(reopened):
            assert reopened.snapshot() == store.snapshot()
            assert reopened.total() == Decimal(25000 * 2 + 35000)
        case Error(e):
            pytest.fail(f"unexpected error: {e}")


@pytest.mark.asyncio
async def test_failed_save_leaves_cart_unchanged():
    storage = FlakyStorage()
    store = await open_store(storage)
    await store.add_plain(NASI, 1)
    before = store.snapshot()

    storage.fail_saves = True
    match await store.add_plain(SATE, 1):
        case Error(e):
            assert e.kind == CartErrorKind.STORAGE
        case Ok(_):
            pytest.fail("save failure should surface")

    assert store.snapshot() == before


@pytest.mark.asyncio
async def test_clear_empties_and_persists():
    storage = MemoryStorage()
    store = await open_store(storage)
    await store.add_plain(NASI, 1)

    match await store.clear():
        case Error(e):
            pytest.fail(f"unexpected error: {e}")
        case Ok(_):
            pass
    assert store.snapshot().is_empty
    match await CartStore.open(storage):
        case Ok(reopened):
            assert reopened.lines == ()
        case Error(e):
            pytest.fail(f"unexpected error: {e}")


@pytest.mark.asyncio
async def test_open_with_corrupt_payload_is_storage_error():
    storage = MemoryStorage({"mealcart-cart": "{not json"})

    match await CartStore.open(storage):
        case Error(e):
            assert e.kind == CartErrorKind.STORAGE
        case Ok(_):
            pytest.fail("corrupt payload should not open")


@pytest.mark.asyncio
async def test_functional_storage_wraps_plain_functions():
    saved: dict[str, str] = {}

    async def load(name):
        return Ok(saved.get(name))

    async def save(name, payload):
        saved[name] = payload
        return Ok(None)

    async def delete(name):
        return Ok(saved.pop(name, None) is not None)

    store = await open_store(storage_from(load, save, delete))
    await store.add_plain(NASI, 1)

    assert "mealcart-cart" in saved


def test_item_key_string_form():
    key = ItemKey.of("m1", "pedas", [CHEESE, EGG])
    assert str(key) == "m1-pedas-a1,a2"
