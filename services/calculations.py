"""
Timber calculations - Core business logic.

Pure functions: same package snapshot in, same numbers out. Every view
(load detail, dashboard, estimator, Excel export) goes through these so
on-screen and exported figures always agree.

No I/O and no logging here. Callers fetch packages from the repository
services and pass them in.
"""

import re
from collections import defaultdict
from datetime import date
from decimal import Decimal, ROUND_HALF_UP
from typing import Iterable, List, Optional, Sequence, Union

from config.timber import (
    CROSS_SECTION_WIDTH_MM,
    CROSS_SECTION_HEIGHT_MM,
    MM_PER_FOOT,
    MM3_PER_M3,
    PT_PER_M3,
    BOARD_FEET_PLACES,
    SHORT_MAX_FT,
    MEDIUM_MAX_FT,
    DISTRIBUTION_LENGTHS,
    LENGTH_GROUP_LABELS,
    SUBTOTAL_LABELS,
    MAX_LOAD_PT,
    LOAD_READY_PCT,
    LOAD_STARTED_PCT,
    SHORT_GROUP_MAX_PCT,
    MEDIUM_GROUP_REF_PCT,
    LONG_GROUP_MIN_PCT,
    STOCK_DESTINATION,
    DISPATCHED_DESTINATION,
    PACKAGE_ID_PREFIX,
    PACKAGE_ID_FLOOR,
    PACKAGE_ID_SEED,
)
from models.package import ContentLine, Package
from models.load import LoadIndex
from models.report import (
    LengthCategory,
    LoadStatusColor,
    GroupHealthStatus,
    LoadBalance,
    LengthSummaryRow,
    LengthSubtotal,
    LengthDistribution,
    ReportsData,
    GroupHealth,
    GroupBalance,
    DailyProduction,
    LoadEstimate,
)

Number = Union[int, float, Decimal]

ZERO = Decimal("0")
HUNDRED = Decimal("100")

_LEADING_INT = re.compile(r"\s*([+-]?[0-9]+)")


def to_decimal(value: Number) -> Decimal:
    """Convert int/float/Decimal to Decimal without binary float noise."""
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def round_decimal(value: Decimal, places: int = 2) -> Decimal:
    """Round Decimal to specified decimal places."""
    return value.quantize(Decimal(1).scaleb(-places), rounding=ROUND_HALF_UP)


def percentage_of(part: Decimal, total: Decimal) -> Decimal:
    """part / total * 100, or 0 when there is no total."""
    if total > 0:
        return part / total * HUNDRED
    return ZERO


# ===================
# BOARD-FEET & CLASSIFICATION
# ===================

def calculate_board_feet(length: Number, piece_count: Number) -> Decimal:
    """
    Board-feet (PT) for boards of the fixed 21x145 cross-section.

    Formula: 21 × 145 × (length_ft × 304.8) × pieces / 1e9 × 424,
    rounded half-up to 3 decimals.

    Zero or negative inputs are not rejected; they yield 0 or a
    negative value and callers filter invalid lines.

    Args:
        length: Length in feet
        piece_count: Number of boards

    Returns:
        Board-feet as Decimal with 3 decimal places
    """
    length_mm = to_decimal(length) * MM_PER_FOOT
    volume_mm3 = (
        CROSS_SECTION_WIDTH_MM * CROSS_SECTION_HEIGHT_MM * length_mm * to_decimal(piece_count)
    )
    board_feet = volume_mm3 / MM3_PER_M3 * PT_PER_M3
    return round_decimal(board_feet, BOARD_FEET_PLACES)


def classify_length(length: Number) -> LengthCategory:
    """
    Classify a length in feet.

    Cortos <= 9', Medios 10'-12', Largos >= 13'. No lower or upper bound.
    """
    if length <= SHORT_MAX_FT:
        return LengthCategory.SHORT
    if length <= MEDIUM_MAX_FT:
        return LengthCategory.MEDIUM
    return LengthCategory.LONG


def length_group_label(length: Number) -> str:
    """Storage label for a line's length group (detalles_paquete.grupo_largos)."""
    return LENGTH_GROUP_LABELS[classify_length(length).value]


# ===================
# LOAD BALANCE
# ===================

def calculate_load_balance(packages: Iterable[Package]) -> LoadBalance:
    """
    Board-feet split into Cortos / Medios / Largos for a set of packages.

    The total comes from each package's total; the split comes from
    classifying every content line. Both derive from the same line
    values so short + medium + long == total.
    """
    total = ZERO
    by_category = {category: ZERO for category in LengthCategory}

    for package in packages:
        total += package.total_board_feet
        for line in package.content:
            by_category[classify_length(line.length)] += line.board_feet

    short = by_category[LengthCategory.SHORT]
    medium = by_category[LengthCategory.MEDIUM]
    long_ = by_category[LengthCategory.LONG]

    return LoadBalance(
        total_board_feet=total,
        total_volume=total / PT_PER_M3,
        short_board_feet=short,
        medium_board_feet=medium,
        long_board_feet=long_,
        short_pct=percentage_of(short, total),
        medium_pct=percentage_of(medium, total),
        long_pct=percentage_of(long_, total),
    )


# ===================
# LENGTH DISTRIBUTION
# ===================

def calculate_length_distribution(packages: Sequence[Package]) -> LengthDistribution:
    """
    Per-length table (7'-20') plus category subtotals.

    Lines outside the table range still count in the grand total used
    as the percentage denominator, but get no row of their own.
    """
    grand_total = sum((p.total_board_feet for p in packages), ZERO)

    pieces = {length: 0 for length in DISTRIBUTION_LENGTHS}
    board_feet = {length: ZERO for length in DISTRIBUTION_LENGTHS}

    for package in packages:
        for line in package.content:
            if line.length in pieces:
                pieces[line.length] += line.piece_count
                board_feet[line.length] += line.board_feet

    rows: List[LengthSummaryRow] = []
    sub_pieces = {category: 0 for category in LengthCategory}
    sub_board_feet = {category: ZERO for category in LengthCategory}

    for length in DISTRIBUTION_LENGTHS:
        rows.append(LengthSummaryRow(
            length=length,
            piece_count=pieces[length],
            board_feet=board_feet[length],
            pct=percentage_of(board_feet[length], grand_total),
        ))
        category = classify_length(length)
        sub_pieces[category] += pieces[length]
        sub_board_feet[category] += board_feet[length]

    subtotals = [
        LengthSubtotal(
            label=SUBTOTAL_LABELS[category.value],
            category=category,
            piece_count=sub_pieces[category],
            board_feet=sub_board_feet[category],
            pct=percentage_of(sub_board_feet[category], grand_total),
        )
        for category in LengthCategory
    ]

    return LengthDistribution(rows=rows, subtotals=subtotals)


# ===================
# LOAD PROGRESS
# ===================

def calculate_load_progress(total_board_feet: Number) -> Decimal:
    """Fill percentage of a load, capped at 100 (not floored at 0)."""
    progress = to_decimal(total_board_feet) / MAX_LOAD_PT * HUNDRED
    return min(progress, HUNDRED)


def get_load_status_color(percentage: Number) -> LoadStatusColor:
    """
    Traffic light for a load's fill percentage.

    >= 95 ok (ready to dispatch), > 20 warning, otherwise info.
    """
    if percentage >= LOAD_READY_PCT:
        return LoadStatusColor.OK
    if percentage > LOAD_STARTED_PCT:
        return LoadStatusColor.WARNING
    return LoadStatusColor.INFO


def simulate_load_balance(
    packages: Sequence[Package],
    length: int,
    piece_count: int,
    package_count: int = 1,
) -> LoadEstimate:
    """
    Balance after adding package_count identical packages to a load.

    Each simulated package holds piece_count boards at length, so the
    added volume is package_count times the single-package board-feet.
    """
    simulated = Package(
        id="SIMULATED",
        content=[ContentLine(length=length, piece_count=piece_count)],
    )
    added = simulated.total_board_feet * package_count
    balance = calculate_load_balance(list(packages) + [simulated] * package_count)
    progress = calculate_load_progress(balance.total_board_feet)

    return LoadEstimate(
        added_board_feet=added,
        balance=balance,
        progress=progress,
        status_color=get_load_status_color(progress),
        exceeds_capacity=balance.total_board_feet > MAX_LOAD_PT,
        remaining_board_feet=MAX_LOAD_PT - balance.total_board_feet,
    )


# ===================
# REPORTS
# ===================

def calculate_reports(packages: Sequence[Package], load_index: LoadIndex) -> ReportsData:
    """
    Board-feet totals per destination group.

    A package pointing at a load that is in neither list (renamed or
    deleted load) only counts toward the grand total.
    """
    active = set(load_index.active_load_names)
    history = set(load_index.history_load_names)

    total = stock = active_pt = shipped = ZERO

    for package in packages:
        pt = package.total_board_feet
        total += pt
        if package.destination == STOCK_DESTINATION:
            stock += pt
        elif package.destination in active:
            active_pt += pt
        elif package.destination in history or package.destination == DISPATCHED_DESTINATION:
            shipped += pt

    return ReportsData(
        total_board_feet=total,
        active_board_feet=active_pt,
        stock_board_feet=stock,
        shipped_board_feet=shipped,
    )


def evaluate_group_health(group_label: str, percentage: Number) -> GroupHealth:
    """
    Production target check for a length group.

    Cortos should stay at or below 25%, Largos should reach 40%,
    Medios is informational only.
    """
    if "Cortos" in group_label or "7" in group_label:
        ok = percentage <= SHORT_GROUP_MAX_PCT
        return GroupHealth(
            status=GroupHealthStatus.OK if ok else GroupHealthStatus.ALERT,
            target=SHORT_GROUP_MAX_PCT,
            target_label=f"Meta máx: {SHORT_GROUP_MAX_PCT}%",
        )
    if "Medios" in group_label or "10" in group_label:
        return GroupHealth(
            status=GroupHealthStatus.INFO,
            target=MEDIUM_GROUP_REF_PCT,
            target_label=f"Ref: {MEDIUM_GROUP_REF_PCT}%",
        )
    ok = percentage >= LONG_GROUP_MIN_PCT
    return GroupHealth(
        status=GroupHealthStatus.OK if ok else GroupHealthStatus.WARNING,
        target=LONG_GROUP_MIN_PCT,
        target_label=f"Meta mín: {LONG_GROUP_MIN_PCT}%",
    )


def calculate_group_balance(packages: Sequence[Package]) -> List[GroupBalance]:
    """
    Production balance per length group, in Cortos/Medios/Largos order.

    Only groups with at least one content line are reported.
    """
    volumes = {}
    for package in packages:
        for line in package.content:
            category = classify_length(line.length)
            volumes[category] = volumes.get(category, ZERO) + line.board_feet

    total = sum(volumes.values(), ZERO)

    groups = []
    for category in LengthCategory:
        if category not in volumes:
            continue
        label = LENGTH_GROUP_LABELS[category.value]
        pct = percentage_of(volumes[category], total)
        groups.append(GroupBalance(
            group=label,
            category=category,
            board_feet=round_decimal(volumes[category], 2),
            pct=round_decimal(pct, 1),
            health=evaluate_group_health(label, pct),
        ))
    return groups


def calculate_daily_production(packages: Sequence[Package]) -> List[DailyProduction]:
    """Board-feet per packing date, oldest first. Undated packages are skipped."""
    by_day = defaultdict(lambda: ZERO)
    for package in packages:
        if package.packed_date is None:
            continue
        by_day[package.packed_date] += package.total_board_feet

    return [
        DailyProduction(packed_date=day, board_feet=round_decimal(volume, 2))
        for day, volume in sorted(by_day.items())
    ]


def filter_packages(
    packages: Sequence[Package],
    date_from: Optional[date] = None,
    date_to: Optional[date] = None,
    load_names: Optional[Sequence[str]] = None,
) -> List[Package]:
    """Dashboard filter: packing date range (inclusive) and destination names."""
    selected = []
    for package in packages:
        if date_from and (package.packed_date is None or package.packed_date < date_from):
            continue
        if date_to and (package.packed_date is None or package.packed_date > date_to):
            continue
        if load_names and package.destination not in load_names:
            continue
        selected.append(package)
    return selected


# ===================
# IDS & BUILDERS
# ===================

def _parse_package_number(package_id: str) -> int:
    """Leading ASCII integer after the PT- prefix; 0 when there is none."""
    match = _LEADING_INT.match(package_id.replace(PACKAGE_ID_PREFIX, "", 1))
    if not match:
        return 0
    try:
        return int(match.group(1))
    except ValueError:
        # Past the interpreter's int digit limit
        return 0


def generate_next_package_id(packages: Sequence[Package]) -> str:
    """
    Next sequential package id.

    Empty dataset -> PT-1270. Otherwise max(existing numbers, 1269) + 1.
    Malformed ids count as 0. Two callers working from the same snapshot
    get the same id; the repository rejects the second insert.
    """
    if not packages:
        return PACKAGE_ID_SEED

    highest = max([_parse_package_number(p.id) for p in packages] + [PACKAGE_ID_FLOOR])
    return f"{PACKAGE_ID_PREFIX}{highest + 1}"


def build_package(
    id: str,
    lines: Iterable[ContentLine],
    destination: str = STOCK_DESTINATION,
    species: str = "",
    finish: str = "",
    certification: str = "",
    packed_date: Optional[date] = None,
) -> Package:
    """Assemble a Package, dropping lines with no length or no pieces."""
    return Package(
        id=id,
        destination=destination,
        species=species,
        finish=finish,
        certification=certification,
        content=[line for line in lines if line.is_valid],
        packed_date=packed_date,
    )


def next_load_number(existing_count: int) -> str:
    """Internal number for a new load: 1ra Carga, 2da Carga, 3ra Carga, 4ta Carga..."""
    ordinal = existing_count + 1
    if ordinal in (1, 3):
        suffix = "ra"
    elif ordinal == 2:
        suffix = "da"
    else:
        suffix = "ta"
    return f"{ordinal}{suffix} Carga"
