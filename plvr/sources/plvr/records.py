# plvr/sources/plvr/records.py
#
# Record types and the explicit column tables used to map CSV headers onto
# record fields.
#
# Design decisions:
#   - One RecordSchema per record kind: an ordered tuple of
#     (header label, field name, field kind) triples. Header-label drift
#     becomes a parse error instead of a silently misaligned column.
#   - header_row / data_start are declared per kind. The published files
#     carry the localized header on line 0 and the English header on line 1;
#     the localized labels are the mapping key and data begins on line 2.
#   - ERA_DATE columns keep the raw text in `field` and the decoded calendar
#     date in `decoded_field`.
#
# Invariants:
#   - Every dataclass field of a record class is populated by exactly one
#     column of its schema (raw or decoded).
#   - TEXT fields are copied verbatim; INT fields are int or None.
from __future__ import annotations

from dataclasses import dataclass, fields
from datetime import date
from enum import Enum

from plvr.sources.plvr.regions import region_name


class RecordKind(str, Enum):
    SALE = "sale"
    NEW_HOUSE = "new_house"
    RENTAL = "rental"


class FieldKind(str, Enum):
    TEXT = "text"
    INT = "int"
    ERA_DATE = "era_date"


@dataclass(frozen=True)
class ColumnSpec:
    label: str
    field: str
    kind: FieldKind = FieldKind.TEXT
    decoded_field: str | None = None


@dataclass(frozen=True)
class _BaseRecord:
    serial_number: str | None
    district: str | None
    transaction_type: str | None
    address: str | None
    land_shifting_area_sqm: str | None
    urban_land_use: str | None
    non_urban_land_use: str | None
    non_urban_land_designation: str | None
    transaction_date_raw: str | None
    transaction_date: date | None
    transaction_pen_number: str | None
    floor: str | None
    total_floor: str | None
    building_type: str | None
    primary_use: str | None
    primary_material: str | None
    construction_complete_date_raw: str | None
    construction_complete_date: date | None
    building_area_sqm: str | None
    number_of_rooms: int | None
    number_of_living_rooms: int | None
    number_of_bathrooms: int | None
    partitioned: str | None
    has_management_organization: str | None
    total_price: int | None
    unit_price_per_sqm: int | None
    parking_type: str | None
    parking_area_sqm: str | None
    parking_price: int | None
    notes: str | None

    def describe(self, region_code: str) -> str:
        """One-line identification used in insertion error messages."""
        return (
            f"[{type(self).__name__}] [{self.serial_number}] City={region_name(region_code)} "
            f"District={self.district} TransacType={self.transaction_type} "
            f"TransacDate={self.transaction_date_raw}"
        )

    @classmethod
    def field_names(cls) -> tuple[str, ...]:
        return tuple(f.name for f in fields(cls))


@dataclass(frozen=True)
class SaleRecord(_BaseRecord):
    main_building_area_sqm: str | None
    subsidiary_building_area_sqm: str | None
    balcony_area_sqm: str | None
    elevator: str | None
    transaction_identifier: str | None


@dataclass(frozen=True)
class NewHouseRecord(_BaseRecord):
    pass


@dataclass(frozen=True)
class RentalRecord(_BaseRecord):
    has_furniture: str | None


Record = SaleRecord | NewHouseRecord | RentalRecord


@dataclass(frozen=True)
class RecordSchema:
    kind: RecordKind
    record_cls: type[_BaseRecord]
    table: str
    columns: tuple[ColumnSpec, ...]
    header_row: int = 0
    data_start: int = 2


_TEXT = FieldKind.TEXT
_INT = FieldKind.INT
_DATE = FieldKind.ERA_DATE

SALE_SCHEMA = RecordSchema(
    kind=RecordKind.SALE,
    record_cls=SaleRecord,
    table="plvr_land_house_sale",
    columns=(
        ColumnSpec("編號", "serial_number"),
        ColumnSpec("鄉鎮市區", "district"),
        ColumnSpec("交易標的", "transaction_type"),
        ColumnSpec("土地位置建物門牌", "address"),
        ColumnSpec("土地移轉總面積平方公尺", "land_shifting_area_sqm"),
        ColumnSpec("都市土地使用分區", "urban_land_use"),
        ColumnSpec("非都市土地使用分區", "non_urban_land_use"),
        ColumnSpec("非都市土地使用編定", "non_urban_land_designation"),
        ColumnSpec("交易年月日", "transaction_date_raw", _DATE, "transaction_date"),
        ColumnSpec("交易筆棟數", "transaction_pen_number"),
        ColumnSpec("移轉層次", "floor"),
        ColumnSpec("總樓層數", "total_floor"),
        ColumnSpec("建物型態", "building_type"),
        ColumnSpec("主要用途", "primary_use"),
        ColumnSpec("主要建材", "primary_material"),
        ColumnSpec("建築完成年月", "construction_complete_date_raw", _DATE, "construction_complete_date"),
        ColumnSpec("建物移轉總面積平方公尺", "building_area_sqm"),
        ColumnSpec("建物現況格局-房", "number_of_rooms", _INT),
        ColumnSpec("建物現況格局-廳", "number_of_living_rooms", _INT),
        ColumnSpec("建物現況格局-衛", "number_of_bathrooms", _INT),
        ColumnSpec("建物現況格局-隔間", "partitioned"),
        ColumnSpec("有無管理組織", "has_management_organization"),
        ColumnSpec("總價元", "total_price", _INT),
        ColumnSpec("單價元平方公尺", "unit_price_per_sqm", _INT),
        ColumnSpec("車位類別", "parking_type"),
        ColumnSpec("車位移轉總面積(平方公尺)", "parking_area_sqm"),
        ColumnSpec("車位總價元", "parking_price", _INT),
        ColumnSpec("備註", "notes"),
        ColumnSpec("主建物面積", "main_building_area_sqm"),
        ColumnSpec("附屬建物面積", "subsidiary_building_area_sqm"),
        ColumnSpec("陽台面積", "balcony_area_sqm"),
        ColumnSpec("電梯", "elevator"),
        ColumnSpec("移轉編號", "transaction_identifier"),
    ),
)

NEW_HOUSE_SCHEMA = RecordSchema(
    kind=RecordKind.NEW_HOUSE,
    record_cls=NewHouseRecord,
    table="plvr_land_new_house",
    columns=(
        ColumnSpec("編號", "serial_number"),
        ColumnSpec("鄉鎮市區", "district"),
        ColumnSpec("交易標的", "transaction_type"),
        ColumnSpec("土地位置建物門牌", "address"),
        ColumnSpec("土地移轉總面積平方公尺", "land_shifting_area_sqm"),
        ColumnSpec("都市土地使用分區", "urban_land_use"),
        ColumnSpec("非都市土地使用分區", "non_urban_land_use"),
        ColumnSpec("非都市土地使用編定", "non_urban_land_designation"),
        ColumnSpec("交易年月日", "transaction_date_raw", _DATE, "transaction_date"),
        ColumnSpec("交易筆棟數", "transaction_pen_number"),
        ColumnSpec("移轉層次", "floor"),
        ColumnSpec("總樓層數", "total_floor"),
        ColumnSpec("建物型態", "building_type"),
        ColumnSpec("主要用途", "primary_use"),
        ColumnSpec("主要建材", "primary_material"),
        ColumnSpec("建築完成年月", "construction_complete_date_raw", _DATE, "construction_complete_date"),
        ColumnSpec("建物移轉總面積平方公尺", "building_area_sqm"),
        ColumnSpec("建物現況格局-房", "number_of_rooms", _INT),
        ColumnSpec("建物現況格局-廳", "number_of_living_rooms", _INT),
        ColumnSpec("建物現況格局-衛", "number_of_bathrooms", _INT),
        ColumnSpec("建物現況格局-隔間", "partitioned"),
        ColumnSpec("有無管理組織", "has_management_organization"),
        ColumnSpec("總價元", "total_price", _INT),
        ColumnSpec("單價元平方公尺", "unit_price_per_sqm", _INT),
        ColumnSpec("車位類別", "parking_type"),
        ColumnSpec("車位移轉總面積平方公尺", "parking_area_sqm"),
        ColumnSpec("車位總價元", "parking_price", _INT),
        ColumnSpec("備註", "notes"),
    ),
)

RENTAL_SCHEMA = RecordSchema(
    kind=RecordKind.RENTAL,
    record_cls=RentalRecord,
    table="plvr_land_rental",
    columns=(
        ColumnSpec("編號", "serial_number"),
        ColumnSpec("鄉鎮市區", "district"),
        ColumnSpec("交易標的", "transaction_type"),
        ColumnSpec("土地位置建物門牌", "address"),
        ColumnSpec("土地面積平方公尺", "land_shifting_area_sqm"),
        ColumnSpec("都市土地使用分區", "urban_land_use"),
        ColumnSpec("非都市土地使用分區", "non_urban_land_use"),
        ColumnSpec("非都市土地使用編定", "non_urban_land_designation"),
        ColumnSpec("租賃年月日", "transaction_date_raw", _DATE, "transaction_date"),
        ColumnSpec("租賃筆棟數", "transaction_pen_number"),
        ColumnSpec("租賃層次", "floor"),
        ColumnSpec("總樓層數", "total_floor"),
        ColumnSpec("建物型態", "building_type"),
        ColumnSpec("主要用途", "primary_use"),
        ColumnSpec("主要建材", "primary_material"),
        ColumnSpec("建築完成年月", "construction_complete_date_raw", _DATE, "construction_complete_date"),
        ColumnSpec("建物總面積平方公尺", "building_area_sqm"),
        ColumnSpec("建物現況格局-房", "number_of_rooms", _INT),
        ColumnSpec("建物現況格局-廳", "number_of_living_rooms", _INT),
        ColumnSpec("建物現況格局-衛", "number_of_bathrooms", _INT),
        ColumnSpec("建物現況格局-隔間", "partitioned"),
        ColumnSpec("有無管理組織", "has_management_organization"),
        ColumnSpec("有無附傢俱", "has_furniture"),
        ColumnSpec("總額元", "total_price", _INT),
        ColumnSpec("單價元平方公尺", "unit_price_per_sqm", _INT),
        ColumnSpec("車位類別", "parking_type"),
        ColumnSpec("車位面積平方公尺", "parking_area_sqm"),
        ColumnSpec("車位總額元", "parking_price", _INT),
        ColumnSpec("備註", "notes"),
    ),
)

SCHEMAS: dict[RecordKind, RecordSchema] = {
    RecordKind.SALE: SALE_SCHEMA,
    RecordKind.NEW_HOUSE: NEW_HOUSE_SCHEMA,
    RecordKind.RENTAL: RENTAL_SCHEMA,
}
