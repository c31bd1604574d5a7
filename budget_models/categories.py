# =============================================================================
# BUDGET SCENARIO ENGINE - CATEGORY TABLES
# =============================================================================
# Closed category sets and coupling tables for each model variant.
#
# VARIANTS:
# - operating: Revenue, COGS, Marketing, Sales, R&D, G&A
# - capex: Facilities, Equipment, R&D, Tech Upgrades
#
# KEY PRINCIPLE: Pipeline stages read these tables, never hard-coded fields.
# =============================================================================

from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from typing import Dict, List, Optional, Tuple


class Kind(str, Enum):
    """Line item kind. COGS is kept apart so it is never counted as OpEx."""
    INCOME = "income"
    COGS = "cogs"
    EXPENSE = "expense"

    @property
    def is_cost(self) -> bool:
        return self is not Kind.INCOME


@dataclass(frozen=True)
class CategorySpec:
    """One budget category."""
    name: str
    label: str
    kind: Kind


@dataclass(frozen=True)
class TradeOffPools:
    """Categories on each side of the investment trade-off slider."""
    primary_label: str
    primary: Tuple[str, ...]
    secondary_label: str
    secondary: Tuple[str, ...]


@dataclass(frozen=True)
class MarketShock:
    """Multipliers applied by a market condition, keyed by kind."""
    name: str
    multipliers: Dict[Kind, Decimal] = field(default_factory=dict)
    volatile: bool = False
    title: str = ""


@dataclass(frozen=True)
class ModelSpec:
    """Category table plus the driver domains that apply to it."""
    name: str
    label: str
    categories: Tuple[CategorySpec, ...]
    revenue_coupled: Tuple[str, ...] = ()
    cut_domains: Dict[str, Tuple[Decimal, Decimal]] = field(default_factory=dict)
    # Cut on the key category also moves each listed category by weight * cut
    cut_couplings: Dict[str, Tuple[Tuple[str, Decimal], ...]] = field(default_factory=dict)
    delay_domains: Dict[str, Tuple[Decimal, Decimal]] = field(default_factory=dict)
    trade_off: Optional[TradeOffPools] = None
    revenue_growth_domain: Optional[Tuple[Decimal, Decimal]] = None
    inflation_domain: Tuple[Decimal, Decimal] = (Decimal("0"), Decimal("15"))
    market_conditions: Tuple[str, ...] = ()
    volatility_band: Decimal = Decimal("0.05")

    @property
    def category_names(self) -> List[str]:
        return [c.name for c in self.categories]

    def category(self, name: str) -> CategorySpec:
        for spec in self.categories:
            if spec.name == name:
                return spec
        raise KeyError(f"Unknown category for model {self.name}: {name}")

    def label_for(self, name: str) -> str:
        return self.category(name).label

    @property
    def has_income(self) -> bool:
        return any(c.kind is Kind.INCOME for c in self.categories)


# =============================================================================
# MARKET CONDITIONS
# =============================================================================

STABLE = "Stable"
RECESSION = "Recession"
HIGH_INFLATION = "High-Inflation"
BULLISH = "Bullish"
BEARISH = "Bearish"
VOLATILE = "Volatile"

MARKET_CONDITIONS: Dict[str, MarketShock] = {
    STABLE: MarketShock(STABLE),
    RECESSION: MarketShock(
        RECESSION,
        {Kind.INCOME: Decimal("0.90"), Kind.COGS: Decimal("0.90")},
        title="Recession scenario",
    ),
    HIGH_INFLATION: MarketShock(
        HIGH_INFLATION,
        {Kind.COGS: Decimal("1.05"), Kind.EXPENSE: Decimal("1.03")},
        title="High Inflation scenario",
    ),
    BULLISH: MarketShock(
        BULLISH,
        {Kind.INCOME: Decimal("1.08"), Kind.COGS: Decimal("1.08"), Kind.EXPENSE: Decimal("1.08")},
        title="Bullish market",
    ),
    BEARISH: MarketShock(
        BEARISH,
        {Kind.INCOME: Decimal("0.92"), Kind.COGS: Decimal("0.92"), Kind.EXPENSE: Decimal("0.92")},
        title="Bearish market",
    ),
    VOLATILE: MarketShock(VOLATILE, volatile=True),
}


def normalize_market_condition(value) -> Optional[str]:
    """Map user spellings ("high inflation", "HIGH_INFLATION") to a condition name."""
    if not isinstance(value, str):
        return None
    key = value.strip().lower().replace("_", "-").replace(" ", "-")
    for name in MARKET_CONDITIONS:
        if name.lower() == key:
            return name
    return None


# =============================================================================
# MODEL VARIANTS
# =============================================================================

def _pct(low, high) -> Tuple[Decimal, Decimal]:
    return (Decimal(str(low)), Decimal(str(high)))


OPERATING_MODEL = ModelSpec(
    name="operating",
    label="Operating Budget",
    categories=(
        CategorySpec("revenue", "Revenue", Kind.INCOME),
        CategorySpec("cogs", "COGS", Kind.COGS),
        CategorySpec("marketing", "Marketing", Kind.EXPENSE),
        CategorySpec("sales", "Sales", Kind.EXPENSE),
        CategorySpec("rd", "R&D", Kind.EXPENSE),
        CategorySpec("ga", "G&A", Kind.EXPENSE),
    ),
    revenue_coupled=("cogs", "sales"),
    cut_domains={
        "marketing": _pct(0, 50),
        "rd": _pct(0, 50),
        "ga": _pct(0, 50),
    },
    trade_off=TradeOffPools(
        primary_label="R&D",
        primary=("rd",),
        secondary_label="Sales/Marketing",
        secondary=("marketing", "sales"),
    ),
    revenue_growth_domain=_pct(-20, 20),
    inflation_domain=_pct(0, 15),
    market_conditions=(STABLE, RECESSION, HIGH_INFLATION, BULLISH, BEARISH, VOLATILE),
)

CAPEX_MODEL = ModelSpec(
    name="capex",
    label="Capital Investment Plan",
    categories=(
        CategorySpec("facilities", "Facilities", Kind.EXPENSE),
        CategorySpec("equipment", "Equipment", Kind.EXPENSE),
        CategorySpec("rd", "R&D", Kind.EXPENSE),
        CategorySpec("tech_upgrades", "Tech Upgrades", Kind.EXPENSE),
    ),
    cut_domains={
        "rd": _pct(-50, 20),
        "tech_upgrades": _pct(-30, 20),
    },
    # An R&D increase lifts tech upgrades by half as much
    cut_couplings={"rd": (("tech_upgrades", Decimal("0.5")),)},
    delay_domains={
        "facilities": _pct(0, 40),
        "equipment": _pct(0, 24),
    },
    trade_off=TradeOffPools(
        primary_label="R&D",
        primary=("rd",),
        secondary_label="Tech Upgrades",
        secondary=("tech_upgrades",),
    ),
    inflation_domain=_pct(0, 15),
    market_conditions=(STABLE, HIGH_INFLATION, BULLISH, BEARISH, VOLATILE),
)

MODELS: Dict[str, ModelSpec] = {
    OPERATING_MODEL.name: OPERATING_MODEL,
    CAPEX_MODEL.name: CAPEX_MODEL,
}


def get_model(name: str) -> ModelSpec:
    """Look up a built-in model variant by name."""
    try:
        return MODELS[str(name).strip().lower()]
    except KeyError:
        raise ValueError(
            f"Unknown model: {name} (expected one of {', '.join(MODELS)})"
        ) from None


def validate_model(model: ModelSpec) -> List[str]:
    """Check that every table in the model refers to its own categories."""
    errors: List[str] = []
    names = set(model.category_names)

    if len(names) != len(model.categories):
        errors.append(f"Duplicate category names in model {model.name}")

    for name in model.revenue_coupled:
        if name not in names:
            errors.append(f"revenue_coupled refers to unknown category: {name}")
    for table, domains in (("cut", model.cut_domains), ("delay", model.delay_domains)):
        for name, (low, high) in domains.items():
            if name not in names:
                errors.append(f"{table} domain refers to unknown category: {name}")
            if low > high:
                errors.append(f"{table} domain for {name} is inverted: [{low}, {high}]")
    for source, targets in model.cut_couplings.items():
        if source not in model.cut_domains:
            errors.append(f"cut coupling source has no cut driver: {source}")
        for target, _ in targets:
            if target not in names:
                errors.append(f"cut coupling refers to unknown category: {target}")
    if model.trade_off:
        for name in model.trade_off.primary + model.trade_off.secondary:
            if name not in names:
                errors.append(f"trade-off pool refers to unknown category: {name}")
    for condition in model.market_conditions:
        if condition not in MARKET_CONDITIONS:
            errors.append(f"Unknown market condition in model {model.name}: {condition}")

    return errors


# =============================================================================
# END OF CATEGORY TABLES
# =============================================================================
