"""
服务行建议
"""
from dataclasses import dataclass
from decimal import Decimal
from typing import Optional

from lc_core.services.service_suggester import NOT_FOUND_MESSAGE, ShipmentDescriptor, suggest


@dataclass
class Tier:
    unit: str
    price: Decimal
    min_weight_kg: Optional[Decimal] = None
    max_weight_kg: Optional[Decimal] = None
    min_volume_m3: Optional[Decimal] = None
    max_volume_m3: Optional[Decimal] = None
    id: int = 0


CITY = "Казань (склад Wildberries)"

TIERS = [
    Tier("pallet", Decimal("3500.00"), Decimal("0"), Decimal("300"), id=1),
    Tier("pallet", Decimal("4500.00"), Decimal("300"), Decimal("600"), id=2),
    Tier("kg", Decimal("25.00"), id=3),
    Tier("m3", Decimal("2000.00"), min_volume_m3=Decimal("0"), id=4),
]


def _shipment(packaging_type, box_count=1, weight=None, volume=None):
    return ShipmentDescriptor(
        city_id=1,
        packaging_type=packaging_type,
        box_count=box_count,
        weight=Decimal(str(weight)) if weight is not None else None,
        volume=Decimal(str(volume)) if volume is not None else None,
    )


class TestSuggest:

    def test_pallets_priced_per_pallet(self):
        result = suggest(_shipment("pallets", box_count=3, weight=250), CITY, TIERS)
        assert result.found is True
        assert result.rate_id == 1
        assert result.quantity == Decimal("3")
        assert result.price == Decimal("3500.00")
        assert result.amount == Decimal("10500.00")
        assert result.unit == "палл"
        assert result.description == f"{CITY} — Паллет — 0–300 кг"

    def test_boxes_use_kg_tier_with_single_quantity(self):
        result = suggest(_shipment("boxes", box_count=12, weight=40), CITY, TIERS)
        assert result.found is True
        assert result.rate_id == 3
        assert result.quantity == Decimal("1")
        assert result.amount == Decimal("25.00")
        assert result.unit == "усл"

    def test_falls_back_to_volume_when_weight_misses(self):
        result = suggest(_shipment("pallets", box_count=2, weight=900, volume="1.5"), CITY, TIERS)
        assert result.found is True
        assert result.rate_id == 4
        assert result.description == f"{CITY} — м³ — 0–∞ м³"
        assert result.quantity == Decimal("1")
        assert result.unit == "усл"
        assert result.amount == Decimal("2000.00")

    def test_boxes_fall_back_to_volume_without_kg_tier(self):
        tiers = [
            Tier("pallet", Decimal("3500.00"), Decimal("0"), Decimal("300"), id=1),
            Tier("m3", Decimal("1800.00"), min_volume_m3=Decimal("0.1"), max_volume_m3=Decimal("1.0"), id=5),
        ]
        result = suggest(_shipment("boxes", box_count=6, weight=5, volume="0.5"), CITY, tiers)
        assert result.found is True
        assert result.rate_id == 5
        assert result.quantity == Decimal("1")
        assert result.unit == "усл"
        assert result.amount == Decimal("1800.00")
        assert result.description == f"{CITY} — м³ — 0.1–1 м³"

    def test_pallets_without_weight_use_volume(self):
        result = suggest(_shipment("pallets", box_count=1, volume=2), CITY, TIERS)
        assert result.rate_id == 4

    def test_not_found_is_a_normal_result(self):
        tiers = [t for t in TIERS if t.unit == "pallet"]
        result = suggest(_shipment("pallets", weight=900), CITY, tiers)
        assert result.found is False
        assert result.message == NOT_FOUND_MESSAGE
        assert result.amount is None

    def test_no_tiers(self):
        result = suggest(_shipment("boxes", weight=10), CITY, [])
        assert result.found is False
