# pricing_config.py

# Consumption tax applied to the crate subtotal
VAT_RATE = 0.10

# Express production: yen per linear mm of (width + depth + height)
EXPRESS_RATE_PER_MM = 5

# Reinforcement boards: flat handling fee per selected item, on top of the area price
REINFORCEMENT_HANDLING_FEE = 300
MM2_PER_M2 = 1_000_000

# Hard ceiling for any internal dimension (long edge of a 4x8 sheet)
ABSOLUTE_MAX_DIMENSION_MM = 2440

# Sheet limits per material class (mm).
# max_dimension: long edge of the stock sheet
# long_side_threshold: half of it; at most ONE dimension may exceed this
SHEET_LIMITS = {
    "plywood_lauan": {"max_dimension": 2440, "long_side_threshold": 1220},
    "plywood_standard": {"max_dimension": 1820, "long_side_threshold": 910},
}

# Sheet class stored on MaterialThickness.size
SHEET_SIZE_LABELS = {0: "3x6", 1: "4x8"}

ORDER_STATUSES = ("pending", "confirmed", "manufacturing", "shipped", "delivered")
PAYMENT_METHODS = ("credit_card", "bank_transfer", "invoice")
