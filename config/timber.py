"""
Timber product-line configuration.

Fixed business constants for the single decking product line:
21mm x 145mm boards cut to 7'-20' lengths, shipped in loads of up to
10,600 board-feet (PT).
"""

from decimal import Decimal

# =============================================================================
# CROSS-SECTION & CONVERSION
# =============================================================================

# Board cross-section in millimetres (espesor x ancho)
CROSS_SECTION_WIDTH_MM = Decimal("21")
CROSS_SECTION_HEIGHT_MM = Decimal("145")

# Millimetres per foot
MM_PER_FOOT = Decimal("304.8")

# mm³ -> m³
MM3_PER_M3 = Decimal("1000000000")

# Board-feet per cubic metre for this product
PT_PER_M3 = Decimal("424")

# Board-feet are reported with 3 decimals
BOARD_FEET_PLACES = 3


# =============================================================================
# LENGTH CLASSIFICATION
# =============================================================================
# Cortos:  7'-9'   (length <= SHORT_MAX_FT)
# Medios: 10'-12'  (length <= MEDIUM_MAX_FT)
# Largos: 13'+

SHORT_MAX_FT = 9
MEDIUM_MAX_FT = 12

# Per-length table range for summary reports (inclusive)
MIN_LENGTH_FT = 7
MAX_LENGTH_FT = 20
DISTRIBUTION_LENGTHS = tuple(range(MIN_LENGTH_FT, MAX_LENGTH_FT + 1))

# Storage labels for the grupo_largos column
LENGTH_GROUP_LABELS = {
    "short": "Cortos (≤9')",
    "medium": "Medios (10'-12')",
    "long": "Largos (13'+)",
}

# Summary table subtotal labels
SUBTOTAL_LABELS = {
    "short": "CORTOS (7-9)",
    "medium": "MEDIOS (10-12)",
    "long": "LARGOS (13+)",
}


# =============================================================================
# LOAD CAPACITY & STATUS
# =============================================================================

# Maximum board-feet per load
MAX_LOAD_PT = Decimal("10600")

# Fill percentage thresholds for the load status light
LOAD_READY_PCT = Decimal("95")      # >= 95%: ready to dispatch
LOAD_STARTED_PCT = Decimal("20")    # > 20%: in progress


# =============================================================================
# PRODUCTION GROUP TARGETS (dashboard)
# =============================================================================

SHORT_GROUP_MAX_PCT = Decimal("25")   # Cortos should stay at or below 25%
MEDIUM_GROUP_REF_PCT = Decimal("35")  # Medios reference only
LONG_GROUP_MIN_PCT = Decimal("40")    # Largos should reach at least 40%


# =============================================================================
# DESTINATIONS & IDS
# =============================================================================

STOCK_DESTINATION = "Stock Libres"
DISPATCHED_DESTINATION = "Despachado"

# cargas.estado values
LOAD_STATE_ACTIVE = "Activo"
LOAD_STATE_DISPATCHED = "Despachado"

PACKAGE_ID_PREFIX = "PT-"
PACKAGE_ID_FLOOR = 1269
PACKAGE_ID_SEED = f"{PACKAGE_ID_PREFIX}{PACKAGE_ID_FLOOR + 1}"

# Defaults written to paquetes on insert
DEFAULT_PRODUCT_TYPE = "Decking"
DEFAULT_QUALITY = "1ra"
DEFAULT_MOISTURE = "KD"
