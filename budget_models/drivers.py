# =============================================================================
# BUDGET SCENARIO ENGINE - DRIVER SET
# =============================================================================
# Named, bounded, user-adjustable scenario parameters.
#
# DRIVERS (per model variant):
# - market_condition: enum (Stable, Recession, High-Inflation, ...)
# - revenue_growth: pct, only for variants with an income category
# - cost_cut.<category>: pct per cut-able category
# - delay.<category>: pct per delay-able capital category
# - investment_allocation: 0-100, share of the pool going to the primary side
# - inflation: pct
#
# VALIDATION POLICY:
# - Numeric values outside the domain are clamped to the nearest bound
# - Unknown drivers, non-numbers and unknown enum values are rejected
# =============================================================================

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Dict, Iterable, List, Mapping, Optional, Tuple, Union

from .baseline import to_decimal
from .categories import STABLE, ModelSpec, normalize_market_condition
from .logging_config import get_logger

logger = get_logger("drivers")

DriverValue = Union[Decimal, str]

# Pipeline stages, in execution order
STAGE_MARKET = "market_shock"
STAGE_GROWTH = "revenue_growth"
STAGE_CUTS = "cost_cuts"
STAGE_DELAYS = "delays"
STAGE_ALLOCATION = "investment_allocation"
STAGE_INFLATION = "inflation"

STAGE_ORDER = (
    STAGE_MARKET,
    STAGE_GROWTH,
    STAGE_CUTS,
    STAGE_DELAYS,
    STAGE_ALLOCATION,
    STAGE_INFLATION,
)

MARKET_CONDITION = "market_condition"
REVENUE_GROWTH = "revenue_growth"
INVESTMENT_ALLOCATION = "investment_allocation"
INFLATION = "inflation"
CUT_PREFIX = "cost_cut."
DELAY_PREFIX = "delay."

NEUTRAL_ALLOCATION = Decimal("50")


class InvalidDriverValue(ValueError):
    """A driver value that cannot be clamped into its domain."""

    def __init__(self, driver: str, value, reason: str):
        self.driver = driver
        self.value = value
        self.reason = reason
        super().__init__(f"Invalid value for driver {driver}: {value!r} ({reason})")


@dataclass(frozen=True)
class DriverSpec:
    """Declaration of one driver: its domain, neutral value and stage."""
    name: str
    label: str
    stage: str
    neutral: DriverValue
    domain: Optional[Tuple[Decimal, Decimal]] = None
    choices: Tuple[str, ...] = ()
    category: Optional[str] = None

    @property
    def is_enum(self) -> bool:
        return bool(self.choices)


def cut_driver(category: str) -> str:
    return f"{CUT_PREFIX}{category}"


def delay_driver(category: str) -> str:
    return f"{DELAY_PREFIX}{category}"


def driver_specs(model: ModelSpec) -> List[DriverSpec]:
    """Build the driver declarations for a model variant, in stage order."""
    specs: List[DriverSpec] = [
        DriverSpec(
            MARKET_CONDITION, "Market & Economic Condition", STAGE_MARKET,
            neutral=STABLE, choices=tuple(model.market_conditions) or (STABLE,),
        )
    ]

    if model.revenue_growth_domain is not None:
        specs.append(DriverSpec(
            REVENUE_GROWTH, "Revenue Growth / Decline (%)", STAGE_GROWTH,
            neutral=Decimal("0"), domain=model.revenue_growth_domain,
        ))

    for category in model.category_names:
        if category in model.cut_domains:
            specs.append(DriverSpec(
                cut_driver(category), f"{model.label_for(category)} Cut (%)", STAGE_CUTS,
                neutral=Decimal("0"), domain=model.cut_domains[category], category=category,
            ))

    for category in model.category_names:
        if category in model.delay_domains:
            specs.append(DriverSpec(
                delay_driver(category), f"{model.label_for(category)} Delay Impact (%)", STAGE_DELAYS,
                neutral=Decimal("0"), domain=model.delay_domains[category], category=category,
            ))

    if model.trade_off is not None:
        specs.append(DriverSpec(
            INVESTMENT_ALLOCATION,
            f"Investment Trade-Off (% {model.trade_off.primary_label})",
            STAGE_ALLOCATION,
            neutral=NEUTRAL_ALLOCATION, domain=(Decimal("0"), Decimal("100")),
        ))

    specs.append(DriverSpec(
        INFLATION, "Inflation Rate (%)", STAGE_INFLATION,
        neutral=Decimal("0"), domain=model.inflation_domain,
    ))

    return specs


def get_driver_spec(model: ModelSpec, name: str) -> DriverSpec:
    for spec in driver_specs(model):
        if spec.name == name:
            return spec
    raise InvalidDriverValue(name, None, f"unknown driver for model {model.name}")


def validate_driver_value(spec: DriverSpec, value) -> Tuple[DriverValue, Optional[str]]:
    """
    Validate one driver value.

    Returns:
        Tuple of (accepted value, clamp note or None)

    Raises:
        InvalidDriverValue: for unknown enum values and non-numeric input
    """
    if spec.is_enum:
        condition = normalize_market_condition(value)
        if condition is None or condition not in spec.choices:
            raise InvalidDriverValue(
                spec.name, value, f"expected one of {', '.join(spec.choices)}"
            )
        return condition, None

    try:
        number = to_decimal(value)
    except ValueError:
        raise InvalidDriverValue(spec.name, value, "not a number") from None
    if not number.is_finite():
        raise InvalidDriverValue(spec.name, value, "not a finite number")

    low, high = spec.domain
    if number < low or number > high:
        clamped = low if number < low else high
        note = f"{spec.name} clamped from {number} to {clamped} (domain [{low}, {high}])"
        logger.warning(note)
        return clamped, note
    return number, None


@dataclass(frozen=True)
class DriverSet:
    """
    Immutable, validated values for every driver of a model variant.

    Build with DriverSet.neutral / DriverSet.from_mapping and derive new sets
    with with_value; an existing set is never modified.
    """
    model: ModelSpec
    values: Tuple[Tuple[str, DriverValue], ...]
    notes: Tuple[str, ...] = field(default=(), compare=False)

    @classmethod
    def neutral(cls, model: ModelSpec) -> "DriverSet":
        return cls(model, tuple((s.name, s.neutral) for s in driver_specs(model)))

    @classmethod
    def from_mapping(cls, model: ModelSpec, mapping: Optional[Mapping] = None) -> "DriverSet":
        """
        Build a driver set from a flat or nested mapping.

        Accepts flat names ("cost_cut.marketing") and the nested YAML form
        ("cost_cuts": {"marketing": 10}, "delays": {"equipment": 6}).
        Drivers not mentioned stay at their neutral value.
        """
        drivers = cls.neutral(model)
        for name, value in _flatten(mapping or {}):
            drivers = drivers.with_value(name, value)
        return drivers

    def with_value(self, name: str, value) -> "DriverSet":
        spec = get_driver_spec(self.model, name)
        accepted, note = validate_driver_value(spec, value)
        values = tuple((n, accepted if n == name else v) for n, v in self.values)
        # A clamp note only describes the latest value of its driver
        notes = tuple(n for n in self.notes if not n.startswith(f"{name} "))
        if note:
            notes += (note,)
        return DriverSet(self.model, values, notes)

    def as_dict(self) -> Dict[str, DriverValue]:
        return dict(self.values)

    def __getitem__(self, name: str) -> DriverValue:
        for n, v in self.values:
            if n == name:
                return v
        raise KeyError(name)

    def get(self, name: str, default=None):
        try:
            return self[name]
        except KeyError:
            return default

    @property
    def market_condition(self) -> str:
        return self.get(MARKET_CONDITION, STABLE)

    @property
    def revenue_growth(self) -> Decimal:
        return self.get(REVENUE_GROWTH, Decimal("0"))

    def cut(self, category: str) -> Decimal:
        return self.get(cut_driver(category), Decimal("0"))

    def delay(self, category: str) -> Decimal:
        return self.get(delay_driver(category), Decimal("0"))

    @property
    def investment_allocation(self) -> Decimal:
        return self.get(INVESTMENT_ALLOCATION, NEUTRAL_ALLOCATION)

    @property
    def inflation(self) -> Decimal:
        return self.get(INFLATION, Decimal("0"))

    def is_neutral(self, name: str) -> bool:
        return self[name] == get_driver_spec(self.model, name).neutral

    def non_neutral(self) -> List[DriverSpec]:
        """Driver specs whose value differs from neutral, in stage order."""
        return [s for s in driver_specs(self.model) if self[s.name] != s.neutral]


def _flatten(mapping: Mapping) -> Iterable[Tuple[str, object]]:
    nested = {"cost_cuts": CUT_PREFIX, "delays": DELAY_PREFIX}
    for key, value in mapping.items():
        if key in nested:
            if not isinstance(value, Mapping):
                raise InvalidDriverValue(key, value, "expected a mapping of category -> pct")
            for category, pct in value.items():
                yield f"{nested[key]}{category}", pct
        else:
            yield key, value


# =============================================================================
# END OF DRIVER SET
# =============================================================================
