"""
Module: billing_kernel.db.types
Responsibility: Column types shared by every billing model, so amounts, rates
    and short codes get identical storage everywhere.
Architecture position: Kernel > DB.  Imported by models/.  MUST NOT import
    from models/, services/ or outer layers.

Amounts need no entry here: ``Mapped[int]`` resolves to BigInteger through
Base.type_annotation_map, and every amount is an int of minor units.
"""

from sqlalchemy import BigInteger, Numeric, String, Text

# Amount in minor units (kopecks, cents).  Never a float.
MINOR_UNITS = BigInteger

# Percentage rate, e.g. 6.0000 for a 6% simplified tax
PERCENT = Numeric(7, 4)

# Expense item value: percent or major-unit amount
ITEM_VALUE = Numeric(18, 4)

# Enum values stored as text
SHORT_CODE = String(32)

# Names and titles
TITLE = String(255)

# Free-form notes and display overrides
LONG_TEXT = Text

# "100000", "A-17"
INVOICE_NUMBER = String(64)

# URL-safe random token for public invoice download
PUBLIC_TOKEN = String(64)
