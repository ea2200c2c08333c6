from dataclasses import dataclass, field
from enum import Enum

from . import fields
from .tables import metal_family_key, to_num


class Scenario(str, Enum):
    UNIQUE_CENTER = "UniqueCenter"
    UNIQUE_NO_CENTER = "UniqueNoCenter"
    REPEATING = "Repeating"
    NO_STONES = "NoStones"


class Rulebook(str, Enum):
    NATURAL = "natural"
    LAB_GROWN = "labgrown"
    NO_STONES = "nostones"
    UNKNOWN = "unknown"

    @property
    def label(self) -> str:
        return {
            Rulebook.NATURAL: "Natural",
            Rulebook.LAB_GROWN: "Lab Grown",
            Rulebook.NO_STONES: "No Stones",
            Rulebook.UNKNOWN: "Unknown",
        }[self]


class MarginSource(str, Enum):
    MARGIN_TABLE = "margin_table"
    TYPE_DEFAULT = "type_default"
    FALLBACK = "fallback"


@dataclass(frozen=True)
class SideStoneGroup:
    position: int
    carats: float
    stones: int
    shape: str
    stone_type: str


@dataclass(frozen=True)
class InputRecord:
    core_id: str
    diamond_type: str
    values: dict[str, str] = field(repr=False)
    row_number: int = 0

    def value(self, aliases: tuple[str, ...], default: str = "") -> str:
        return fields.first_value(self.values, aliases, default)

    def number(self, aliases: tuple[str, ...]) -> float | None:
        return fields.first_number(self.values, aliases)

    @property
    def category(self) -> str:
        return self.value(fields.CATEGORY)

    @property
    def subcategory(self) -> str:
        return self.value(fields.SUBCATEGORY)

    @property
    def handle_subcategory(self) -> str:
        return self.value(fields.HANDLE_SUBCATEGORY, fields.DEFAULT_SUBCATEGORY)

    @property
    def center_carat(self) -> float | None:
        return self.number(fields.CENTER_CARAT)

    @property
    def center_shape(self) -> str:
        return self.value(fields.CENTER_SHAPE)

    @property
    def base_grams(self) -> float:
        return self.grams()

    def grams(self, default: float = fields.DEFAULT_BASE_GRAMS) -> float:
        grams = self.number(fields.BASE_GRAMS)
        return grams if grams is not None and grams > 0 else default

    def side_groups(self) -> list[SideStoneGroup]:
        """Numbered side positions that carry carats or stones, in position order."""
        fallback_shapes = [s.strip() for s in self.value(fields.SIDE_SHAPES).split(",") if s.strip()]
        groups = []
        for position in fields.SIDE_POSITIONS:
            carats = self.number(fields.side_carat(position)) or 0.0
            stones = int(self.number(fields.side_stones(position)) or 0)
            if carats <= 0 and stones <= 0:
                continue
            shape = self.value(fields.side_shape(position))
            if not shape:
                index = len(groups)
                shape = fallback_shapes[index] if index < len(fallback_shapes) else "Round"
            groups.append(
                SideStoneGroup(
                    position=position,
                    carats=carats,
                    stones=stones,
                    shape=shape,
                    stone_type=self.value(fields.side_type(position), "Diamond"),
                )
            )
        return groups

    def side_carat_sum(self) -> float:
        total = sum(group.carats for group in self.side_groups())
        if total > 0:
            return round(total, 4)
        return self.number(fields.SUM_SIDE_CARAT) or 0.0

    def side_stone_count(self) -> int:
        total = sum(group.stones for group in self.side_groups())
        if total > 0:
            return total
        return int(self.number(fields.SIDE_STONE_COUNT) or 0)

    def primary_side_shape(self) -> str:
        groups = self.side_groups()
        if groups:
            return groups[0].shape
        return self.value(fields.SIDE_SHAPES, "Round").split(",")[0].strip() or "Round"


@dataclass(frozen=True)
class CoreGroup:
    core_id: str
    scenario: Scenario
    rulebook: Rulebook
    diamond_type: str
    records: tuple[InputRecord, ...]

    @property
    def representative(self) -> InputRecord:
        return self.records[0]

    @property
    def rulebook_name(self) -> str:
        if self.rulebook is Rulebook.UNKNOWN:
            return f"Unknown ({self.diamond_type})"
        return self.rulebook.label


@dataclass(frozen=True)
class CenterCombination:
    metal: str
    center_size: str
    quality: str


@dataclass(frozen=True)
class NoCenterCombination:
    metal: str
    quality: str


@dataclass(frozen=True)
class MarginBracket:
    begin: float
    end: float | None
    multiplier: float

    def contains(self, cost: float) -> bool:
        return self.begin <= cost and (self.end is None or cost < self.end)


@dataclass(frozen=True)
class DiamondPrice:
    shape: str
    min_carat: float
    max_carat: float
    quality: str
    price_per_carat: float

    def covers(self, carat: float) -> bool:
        return self.min_carat <= carat <= self.max_carat


@dataclass(frozen=True)
class RuleSet:
    name: str
    center_metals: tuple[str, ...] = ()
    center_sizes: tuple[str, ...] = ()
    center_qualities: tuple[str, ...] = ()
    no_center_metals: tuple[str, ...] = ()
    no_center_qualities: tuple[str, ...] = ()
    center_combinations: tuple[CenterCombination, ...] = ()
    no_center_combinations: tuple[NoCenterCombination, ...] = ()
    weight_index: dict[str, float] = field(default_factory=dict)
    metal_prices: dict[str, float] = field(default_factory=dict)
    labor: dict[str, float] = field(default_factory=dict)
    margins: tuple[MarginBracket, ...] = ()
    diamond_prices: tuple[DiamondPrice, ...] = ()

    def weight_multiplier(self, metal_code: str) -> float:
        return self.weight_index.get(metal_family_key(metal_code), 1.0)

    def metal_price_per_gram(self, metal_code: str, default: float) -> float:
        code = metal_code.strip().upper()
        if code in self.metal_prices:
            return self.metal_prices[code]
        return self.metal_prices.get(metal_family_key(code), default)

    def labor_rate(self, label: str, default: float) -> float:
        wanted = label.strip().lower()
        for key, rate in self.labor.items():
            if key.strip().lower() == wanted:
                return rate
        return default


@dataclass(frozen=True)
class NoStonesRuleSet:
    name: str
    metals: tuple[str, ...] = ()
    metal_prices: dict[str, float] = field(default_factory=dict)

    @property
    def margins(self) -> tuple[MarginBracket, ...]:
        return ()

    def metal_price_per_gram(self, metal_code: str, default: float) -> float:
        code = metal_code.strip().upper()
        if code in self.metal_prices:
            return self.metal_prices[code]
        return self.metal_prices.get(metal_family_key(code), default)

    def labor_rate(self, label: str, default: float) -> float:
        return default


@dataclass(frozen=True)
class RuleBooks:
    natural: RuleSet | None = None
    lab_grown: RuleSet | None = None
    no_stones: NoStonesRuleSet | None = None

    def for_rulebook(self, rulebook: Rulebook) -> RuleSet | NoStonesRuleSet | None:
        if rulebook is Rulebook.NATURAL:
            return self.natural
        if rulebook is Rulebook.LAB_GROWN:
            return self.lab_grown
        if rulebook is Rulebook.NO_STONES:
            return self.no_stones
        return None


@dataclass(frozen=True)
class VariantSeed:
    handle: str
    core_id: str
    scenario: Scenario
    rulebook: Rulebook
    metal_code: str
    record: InputRecord = field(repr=False)
    center_size: str | None = None
    quality: str | None = None

    @property
    def center_carats(self) -> float | None:
        if self.center_size is None:
            return None
        return to_num(self.center_size)


@dataclass(frozen=True)
class SideGroupPrice:
    position: int
    shape: str
    carats: float
    stones: int
    price_per_carat: float
    source: str


@dataclass(frozen=True)
class CostDetails:
    base_grams: float
    weight_multiplier: float
    weight_source: str
    metal_price_per_gram: float
    center_carats: float
    center_price_per_carat: float
    side_carats: float
    side_stone_count: int
    side_price_per_carat: float
    side_price_source: str
    side_groups: tuple[SideGroupPrice, ...]
    is_bracelet: bool
    is_pendant: bool
    is_bridal: bool


@dataclass(frozen=True)
class CostBreakdown:
    center_diamond: float
    side_diamond: float
    metal: float
    center_labor: float
    side_labor: float
    polish: float
    bracelet_fee: float
    pendant_fee: float
    cad_fee: float
    fixed_fee: float
    total_cost: float
    variant_grams: float
    details: CostDetails

    @property
    def diamond_cost(self) -> float:
        return round(self.center_diamond + self.side_diamond, 2)


@dataclass(frozen=True)
class PricingResult:
    cost: float
    multiplier: float
    sell_price: float
    compare_at_price: float
    source: MarginSource


@dataclass(frozen=True)
class PricedVariant:
    seed: VariantSeed
    cost: CostBreakdown
    pricing: PricingResult


@dataclass(frozen=True)
class ExportRow:
    handle: str
    sku: str
    is_parent: bool
    values: dict[str, str]


@dataclass(frozen=True)
class ValidationReport:
    is_valid: bool
    errors: tuple[str, ...]
    total_rows: int
    total_handles: int
    parent_rows: int
    child_rows: int
