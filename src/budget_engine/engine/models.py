"""
Data models for the price resolution engine.

Uses dataclasses for structured, type-safe data representation.
"""
from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import Optional, TYPE_CHECKING

if TYPE_CHECKING:
    from .scope import PriceOrigin


class PricebookType(str, Enum):
    """Kind of items a pricebook prices."""
    MATERIAL = "MATERIAL"
    LABOR = "LABOR"


class ProductivityType(str, Enum):
    """How a labor entry expresses productivity."""
    HH_PER_UNIT = "HH_PER_UNIT"
    UNIT_PER_HH = "UNIT_PER_HH"


@dataclass
class TraceStep:
    """A single step in the price resolution trace."""
    step: str
    description: str
    value: Optional[str] = None


@dataclass(frozen=True)
class Pricebook:
    """A scoped, time-bounded price list header."""
    id: str
    name: str
    type: PricebookType
    company_id: Optional[str] = None
    region_id: Optional[str] = None
    valid_from: Optional[date] = None
    valid_to: Optional[date] = None
    priority: int = 0  # lower = preferred
    active: bool = True

    @property
    def scope_label(self) -> str:
        parts = []
        if self.company_id:
            parts.append(f"company={self.company_id}")
        if self.region_id:
            parts.append(f"region={self.region_id}")
        return ", ".join(parts) if parts else "global"


@dataclass(frozen=True)
class PriceListEntry:
    """A single price for one item inside one pricebook."""
    id: str
    pricebook_id: str
    item_id: str
    price: float
    manufacturer_id: Optional[str] = None  # None = any manufacturer
    currency: str = "BRL"
    valid_from: Optional[date] = None
    valid_to: Optional[date] = None
    source: str = ""
    updated_at: Optional[datetime] = None
    updated_by: Optional[str] = None

    # Labor only
    productivity_value: Optional[float] = None
    productivity_type: Optional[ProductivityType] = None
    productivity_unit: Optional[str] = None


@dataclass(frozen=True)
class ItemRef:
    """Reference to a material catalog item or a labor function."""
    type: PricebookType
    item_id: str

    def __str__(self) -> str:
        return f"{self.type.value}:{self.item_id}"


@dataclass(frozen=True)
class ResolutionContext:
    """Who is buying, where, from which manufacturer, and when."""
    as_of: date
    company_id: Optional[str] = None
    region_id: Optional[str] = None
    manufacturer_id: Optional[str] = None  # materials only


@dataclass
class EffectivePrice:
    """The single price chosen for an item in a given context."""
    item_id: str
    price: float
    currency: str
    pricebook_id: str
    pricebook_name: str
    origin: "PriceOrigin"
    entry_id: str
    manufacturer_id: Optional[str] = None
    productivity_value: Optional[float] = None
    productivity_type: Optional[ProductivityType] = None
    productivity_unit: Optional[str] = None
    trace: list[TraceStep] = field(default_factory=list)

    def add_trace(self, step: str, description: str, value: str = None):
        """Add a step to the trace for this price."""
        self.trace.append(TraceStep(step=step, description=description, value=value))

    def get_trace_text(self) -> str:
        """Get human-readable trace as formatted text."""
        lines = []
        for t in self.trace:
            if t.value:
                lines.append(f"→ {t.step}: {t.description} = {t.value}")
            else:
                lines.append(f"→ {t.step}: {t.description}")
        return "\n".join(lines)


@dataclass
class PriceNotFound:
    """
    No applicable price exists for the item in this context.

    Falsy, so ``if price:`` reads naturally. Callers must surface this as
    "no price available" and never substitute zero.
    """
    item_ref: ItemRef
    context: ResolutionContext
    reason: str = "no applicable price"
    trace: list[TraceStep] = field(default_factory=list)

    def __bool__(self) -> bool:
        return False
