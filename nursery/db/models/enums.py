# nursery/db/models/enums.py
import enum


class ProductType(str, enum.Enum):
    DIGITAL = "DIGITAL"
    DROPSHIPPED = "DROPSHIPPED"
    PHYSICAL = "PHYSICAL"
    BUNDLE = "BUNDLE"


class AvailabilityStatus(str, enum.Enum):
    IN_STOCK = "IN_STOCK"
    OUT_OF_STOCK = "OUT_OF_STOCK"
    PRE_ORDER = "PRE_ORDER"
    DISCONTINUED = "DISCONTINUED"


class ProductSource(str, enum.Enum):
    SCRAPED = "SCRAPED"
    MANUAL = "MANUAL"
    API = "API"


class ScrapingJobType(str, enum.Enum):
    FULL = "FULL"
    INCREMENTAL = "INCREMENTAL"


class ScrapingJobStatus(str, enum.Enum):
    PENDING = "PENDING"
    RUNNING = "RUNNING"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"

