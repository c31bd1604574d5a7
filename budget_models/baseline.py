# =============================================================================
# BUDGET SCENARIO ENGINE - BASELINE MODEL
# =============================================================================
# Line items and budget snapshots.
#
# KEY PRINCIPLES:
# - Snapshots cover a closed category set; amounts change, categories never do
# - Amounts are Decimal, held to cents
# - Snapshots are immutable; every change produces a new snapshot
# =============================================================================

from dataclasses import dataclass
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP, localcontext
from typing import Dict, Iterator, List, Mapping, Tuple

from .categories import Kind, ModelSpec

CENT = Decimal("0.01")
ZERO = Decimal("0")

# Baseline amounts must stay below this; scenario amounts then fit the
# default 28-digit Decimal context with room for cents
MAX_AMOUNT = Decimal("1e15")


def to_decimal(value) -> Decimal:
    """Convert int/float/str/Decimal to Decimal without binary float noise."""
    if isinstance(value, Decimal):
        return value
    if isinstance(value, bool):
        raise ValueError(f"Not a number: {value!r}")
    try:
        return Decimal(str(value).strip().replace(",", ""))
    except (InvalidOperation, ValueError):
        raise ValueError(f"Not a number: {value!r}") from None


def to_cents(amount: Decimal) -> Decimal:
    with localcontext() as ctx:
        ctx.prec = max(ctx.prec, amount.adjusted() + 3)
        return amount.quantize(CENT, rounding=ROUND_HALF_UP)


@dataclass(frozen=True)
class LineItem:
    """One category amount."""
    category: str
    kind: Kind
    amount: Decimal

    def with_amount(self, amount: Decimal) -> "LineItem":
        return LineItem(self.category, self.kind, amount)


@dataclass(frozen=True)
class BudgetSnapshot:
    """Ordered, closed set of line items for one model variant."""
    model: str
    items: Tuple[LineItem, ...]

    def __iter__(self) -> Iterator[LineItem]:
        return iter(self.items)

    def __len__(self) -> int:
        return len(self.items)

    @property
    def categories(self) -> List[str]:
        return [item.category for item in self.items]

    def item(self, category: str) -> LineItem:
        for item in self.items:
            if item.category == category:
                return item
        raise KeyError(f"Unknown category: {category}")

    def amount(self, category: str) -> Decimal:
        return self.item(category).amount

    def as_dict(self) -> Dict[str, Decimal]:
        return {item.category: item.amount for item in self.items}

    def total(self, kind: Kind) -> Decimal:
        return sum((i.amount for i in self.items if i.kind is kind), ZERO)

    def replace_amounts(self, amounts: Mapping[str, Decimal]) -> "BudgetSnapshot":
        """
        Return a new snapshot with some amounts replaced.

        Unknown categories are rejected so the category set stays closed.
        """
        unknown = set(amounts) - set(self.categories)
        if unknown:
            raise KeyError(f"Unknown categories: {sorted(unknown)}")
        return BudgetSnapshot(
            model=self.model,
            items=tuple(
                item.with_amount(amounts[item.category]) if item.category in amounts else item
                for item in self.items
            ),
        )


def validate_baseline_amounts(model: ModelSpec, amounts: Mapping) -> List[str]:
    """Validate raw baseline amounts against the model's category table."""
    errors: List[str] = []
    expected = model.category_names

    for name in expected:
        if name not in amounts:
            errors.append(f"Missing baseline category: {name}")
    for name in amounts:
        if name not in expected:
            errors.append(f"Unknown baseline category for model {model.name}: {name}")

    for name, raw in amounts.items():
        if name not in expected:
            continue
        try:
            value = to_decimal(raw)
        except ValueError as exc:
            errors.append(f"Baseline amount for {name}: {exc}")
            continue
        if not value.is_finite():
            errors.append(f"Baseline amount for {name} is not finite: {raw}")
        elif value < 0:
            errors.append(f"Baseline amount for {name} must be >= 0: {raw}")
        elif value >= MAX_AMOUNT:
            errors.append(f"Baseline amount for {name} must be < {MAX_AMOUNT:,.0f}: {raw}")

    return errors


def build_baseline(model: ModelSpec, amounts: Mapping) -> BudgetSnapshot:
    """
    Build the baseline snapshot for a model variant.

    Args:
        model: Model variant supplying the category table
        amounts: Dict of category -> amount (numbers or numeric strings)

    Returns:
        BudgetSnapshot in category-table order, amounts rounded to cents

    Raises:
        ValueError: if categories are missing or unknown, or an amount is
            not a number in [0, MAX_AMOUNT)
    """
    errors = validate_baseline_amounts(model, amounts)
    if errors:
        raise ValueError("Invalid baseline: " + "; ".join(errors))

    return BudgetSnapshot(
        model=model.name,
        items=tuple(
            LineItem(spec.name, spec.kind, to_cents(to_decimal(amounts[spec.name])))
            for spec in model.categories
        ),
    )


# =============================================================================
# END OF BASELINE MODEL
# =============================================================================
