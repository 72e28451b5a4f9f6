"""Inventory rules — item categories, directives, and starting kits.

Category rules (ordered; the first rule whose keyword appears in the
lower-cased item name wins):
  1 weapon     weapon, gun, knife, sword, blade, rifle, pistol, ammo
  2 cyberware  cyberware, implant, augment, mod
  3 consumable medkit, stim, heal, food, drink, consumable
  4 tool       tool, deck, device, equipment
  - misc       anything else

Directives: "+Name" acquires one Name, "-Name" loses one Name. Matching
against the inventory is case-insensitive; the existing entry keeps its
original spelling. Anything else is not a directive.

Starting kits: every character gets a commlink and street clothes; the
first trade rule whose keyword appears in the trade description adds its
kit on top.
"""

from __future__ import annotations

from typing import Literal

from neon_threads.models import Category, InventoryItem

CATEGORY_RULES: list[tuple[tuple[str, ...], Category]] = [
    (("weapon", "gun", "knife", "sword", "blade", "rifle", "pistol", "ammo"), "weapon"),
    (("cyberware", "implant", "augment", "mod"), "cyberware"),
    (("medkit", "stim", "heal", "food", "drink", "consumable"), "consumable"),
    (("tool", "deck", "device", "equipment"), "tool"),
]

DEFAULT_CATEGORY: Category = "misc"

# (name, description, quantity, category)
BASE_KIT = [
    ("Basic Commlink", "Standard communication device", 1, "tool"),
    ("Street Clothes", "Basic clothing", 1, "misc"),
]

TRADE_KITS = [
    (("solo", "combat", "fighter"), [
        ("Pistol", "Standard handgun", 1, "weapon"),
        ("Ammo", "Pistol ammunition", 30, "consumable"),
        ("Combat Knife", "Melee weapon", 1, "weapon"),
    ]),
    (("netrunner", "hack", "tech"), [
        ("Cyberdeck", "Hacking interface", 1, "tool"),
        ("Data Shard", "Hacking tool", 3, "consumable"),
    ]),
    (("fixer", "dealer"), [
        ("Contacts List", "Network of connections", 1, "misc"),
        ("Credstick", "Digital currency storage", 1, "tool"),
    ]),
    (("medic", "doctor"), [
        ("Medkit", "Medical supplies", 1, "tool"),
        ("Stim", "Healing stimulant", 2, "consumable"),
    ]),
]

Op = Literal["+", "-"]


def classify_item(name: str) -> Category:
    """Infer an item's category from its name using CATEGORY_RULES."""
    lowered = name.lower()
    for keywords, category in CATEGORY_RULES:
        if any(k in lowered for k in keywords):
            return category
    return DEFAULT_CATEGORY


def starting_inventory(trade: str) -> list[InventoryItem]:
    """Base kit plus the kit of the first trade rule that matches."""
    trade_lower = trade.lower()
    entries = list(BASE_KIT)
    for keywords, kit in TRADE_KITS:
        if any(k in trade_lower for k in keywords):
            entries.extend(kit)
            break
    return [
        InventoryItem(name=name, description=desc, quantity=qty, category=cat)
        for name, desc, qty, cat in entries
    ]


def parse_directive(raw: str) -> tuple[Op, str] | None:
    """Split "+Name" / "-Name" into (op, name). Returns None if unusable."""
    if not isinstance(raw, str):
        return None
    text = raw.strip()
    name = text[1:].strip()
    if not name:
        return None
    if text.startswith("+"):
        return "+", name
    if text.startswith("-"):
        return "-", name
    return None


def find_item(inventory: list[InventoryItem], name: str) -> int | None:
    """Index of the entry matching name case-insensitively, or None."""
    key = name.lower()
    for i, item in enumerate(inventory):
        if item.name.lower() == key:
            return i
    return None


def acquire_item(inventory: list[InventoryItem], name: str, description: str) -> InventoryItem:
    """Add one of `name` in place. Returns the affected entry."""
    idx = find_item(inventory, name)
    if idx is not None:
        inventory[idx].quantity += 1
        return inventory[idx]
    item = InventoryItem(
        name=name,
        description=description,
        quantity=1,
        category=classify_item(name),
    )
    inventory.append(item)
    return item


def lose_item(inventory: list[InventoryItem], name: str) -> bool:
    """Remove one of `name` in place. Returns False if it wasn't held."""
    idx = find_item(inventory, name)
    if idx is None:
        return False
    if inventory[idx].quantity > 1:
        inventory[idx].quantity -= 1
    else:
        inventory.pop(idx)
    return True
